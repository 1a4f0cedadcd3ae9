"""
List Derivation Engine (``timesheet_engines.listing``).

Responsibility
--------------
Derives everything a submission list shows from the raw record
collection: status counts, the status-filtered subset, the visible
page, and the page size for a viewport width.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  May only import
from ``timesheet_kernel.domain``.

Invariants enforced
-------------------
* Counts are a fold over the records passed in; nothing is cached.
* Filtering runs over the full collection before any slicing and keeps
  relative order.
* ``total_pages == ceil(filtered / page_size)``; zero matches means zero
  pages and no pagination controls.
* A page beyond ``total_pages`` is empty, never an error.

Failure modes
-------------
* ``ValueError`` for ``page < 1`` or ``page_size < 1`` (programming
  errors: the list view never produces them).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from timesheet_engines.tracer import traced_engine
from timesheet_kernel.domain.timesheet import (
    StatusFilter,
    TimesheetRecord,
    TimesheetStatus,
)
from timesheet_kernel.domain.viewer import PageSizePolicy


@dataclass(frozen=True)
class StatusCounts:
    """Summary cards shown above a submission list."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "pending": self.pending,
            "approved": self.approved,
            "rejected": self.rejected,
        }


def count_by_status(records: Sequence[TimesheetRecord]) -> StatusCounts:
    """Fold records into per-status counts."""
    pending = approved = rejected = 0
    for record in records:
        if record.status is TimesheetStatus.PENDING:
            pending += 1
        elif record.status is TimesheetStatus.APPROVED:
            approved += 1
        elif record.status is TimesheetStatus.REJECTED:
            rejected += 1
    return StatusCounts(
        total=len(records),
        pending=pending,
        approved=approved,
        rejected=rejected,
    )


def filter_by_status(
    records: Sequence[TimesheetRecord],
    status_filter: StatusFilter | str = StatusFilter.ALL,
) -> tuple[TimesheetRecord, ...]:
    """Records whose status matches the filter, in their original order."""
    status_filter = StatusFilter(status_filter)
    if status_filter is StatusFilter.ALL:
        return tuple(records)
    return tuple(r for r in records if status_filter.matches(r.status))


def total_pages_for(item_count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return -(-item_count // page_size)


def paginate(
    records: Sequence[TimesheetRecord],
    page: int,
    page_size: int,
) -> tuple[TimesheetRecord, ...]:
    """Slice ``[(page-1)*page_size, page*page_size)`` of ``records``."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    start = (page - 1) * page_size
    return tuple(records[start:start + page_size])


@dataclass(frozen=True)
class PageView:
    """The visible slice of a filtered list plus its pagination state.

    ``from_index``/``to_index`` are the 1-based bounds for the
    "Showing X to Y of N results" line, both 0 when the page is empty.
    """

    page_records: tuple[TimesheetRecord, ...]
    page: int
    page_size: int
    total_pages: int
    filtered_count: int
    from_index: int
    to_index: int

    @property
    def show_pagination(self) -> bool:
        return self.total_pages > 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def page_numbers(self) -> range:
        return range(1, self.total_pages + 1)


@traced_engine(
    "page_view",
    "1.0",
    fingerprint_fields=("status_filter", "page", "page_size"),
)
def build_page_view(
    records: Sequence[TimesheetRecord],
    status_filter: StatusFilter | str = StatusFilter.ALL,
    page: int = 1,
    page_size: int = 5,
) -> PageView:
    """Filter the full collection, then cut out the requested page.

    Args:
        records: The viewer's whole collection, in display order.
        status_filter: ALL or a single status.
        page: 1-based page number; pages past the end come back empty.
        page_size: Rows per page.

    Returns:
        PageView for the requested page.
    """
    filtered = filter_by_status(records, status_filter)
    total_pages = total_pages_for(len(filtered), page_size)
    page_records = paginate(filtered, page, page_size)

    if page_records:
        from_index = (page - 1) * page_size + 1
        to_index = from_index + len(page_records) - 1
    else:
        from_index = to_index = 0

    return PageView(
        page_records=page_records,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        filtered_count=len(filtered),
        from_index=from_index,
        to_index=to_index,
    )


def page_size_for_width(policy: PageSizePolicy, width: int | None = None) -> int:
    """Resolve a page size policy for a viewport width.

    A fixed policy ignores the width.  A responsive policy uses the first
    breakpoint whose bound exceeds ``width`` (``<576 -> 2``, ``<768 -> 3``
    for the manager list), otherwise ``policy.default``.  An unknown
    width uses the default.
    """
    if policy.fixed is not None:
        return policy.fixed
    if width is None:
        return policy.default
    for max_width, size in sorted(policy.breakpoints):
        if width < max_width:
            return size
    return policy.default
