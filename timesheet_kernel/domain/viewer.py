"""
Viewer and list-view configuration (``timesheet_kernel.domain.viewer``).

Responsibility
--------------
Describes who is looking at a submission list (employee or manager) and
how that list behaves: which actions a row offers, how the page size is
chosen, which columns are shown, and whether the service order is
reversed on load.  One ``ListViewConfig`` drives one shared list-view
state machine instead of two near-identical ones.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ViewerScope(str, Enum):
    """Viewer role; each role lists a different slice of timesheets."""

    EMPLOYEE = "employee"
    MANAGER = "manager"


class RecordAction(str, Enum):
    """Mutating actions a list row may offer."""

    EDIT = "edit"
    DELETE = "delete"
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class ViewerIdentity:
    """Identity injected into submissions and used to key list requests.

    For a manager viewer, ``viewer_id`` and ``manager_id`` are the same.
    """

    scope: ViewerScope
    viewer_id: str
    display_name: str = ""
    manager_id: str = ""


@dataclass(frozen=True)
class PageSizePolicy:
    """How many rows a page holds.

    Either ``fixed`` or responsive: ``breakpoints`` is a sequence of
    ``(max_width_exclusive, page_size)`` pairs checked in ascending width
    order, falling back to ``default``.
    """

    fixed: int | None = None
    breakpoints: tuple[tuple[int, int], ...] = ()
    default: int = 5

    def __post_init__(self) -> None:
        sizes = [size for _, size in self.breakpoints] + [self.default]
        if self.fixed is not None:
            sizes.append(self.fixed)
        if any(size < 1 for size in sizes):
            raise ValueError("Page sizes must be positive")


FIXED_FIVE = PageSizePolicy(fixed=5)
RESPONSIVE_MANAGER = PageSizePolicy(breakpoints=((576, 2), (768, 3)), default=5)


@dataclass(frozen=True)
class ColumnSpec:
    """A list column: record attribute (or derived property) and header."""

    key: str
    label: str


EMPLOYEE_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("start_date", "Start Date"),
    ColumnSpec("end_date", "End Date"),
    ColumnSpec("client_name", "Client Name"),
    ColumnSpec("project_name", "Project Name"),
    ColumnSpec("total_hours", "Total Hours per Week"),
    ColumnSpec("status", "Status"),
)

MANAGER_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("start_date", "Start Date"),
    ColumnSpec("end_date", "End Date"),
    ColumnSpec("employee_name", "Employee Name"),
    ColumnSpec("client_name", "Client Name"),
    ColumnSpec("project_name", "Project Name"),
    ColumnSpec("total_hours", "Total Hours"),
    ColumnSpec("status", "Status"),
)


@dataclass(frozen=True)
class ListViewConfig:
    """Capability set for one list-view variant."""

    scope: ViewerScope
    page_size_policy: PageSizePolicy
    columns: tuple[ColumnSpec, ...]
    actions: frozenset[RecordAction]
    reverse_on_load: bool = False


EMPLOYEE_LIST_VIEW = ListViewConfig(
    scope=ViewerScope.EMPLOYEE,
    page_size_policy=FIXED_FIVE,
    columns=EMPLOYEE_COLUMNS,
    actions=frozenset({RecordAction.EDIT, RecordAction.DELETE}),
    reverse_on_load=True,
)

MANAGER_LIST_VIEW = ListViewConfig(
    scope=ViewerScope.MANAGER,
    page_size_policy=RESPONSIVE_MANAGER,
    columns=MANAGER_COLUMNS,
    actions=frozenset({RecordAction.APPROVE, RecordAction.REJECT}),
    reverse_on_load=False,
)
