"""
Timesheet domain types (``timesheet_kernel.domain.timesheet``).

Responsibility
--------------
Pure value objects for the timesheet workflow: the status lifecycle
state machine, the submitted record, the in-progress draft, the typed
result of a successful validation, and the fixed form option sets.
Translates between Python attributes and the camelCase wire payload
used by the timesheet service.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import
only from ``timesheet_kernel.exceptions``.

Invariants enforced
-------------------
* Lifecycle state machine -- ``TIMESHEET_TRANSITIONS`` defines the only
  valid status transitions.  APPROVED and REJECTED have no outgoing
  edges.
* ``comments`` is present only on REJECTED records.
* ``start_date <= end_date`` and hours are non-negative on every record.
* Identity fields and ``submission_date`` are carried unchanged through
  every transition.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from timesheet_kernel.exceptions import InvalidTransitionError


# =========================================================================
# Status Lifecycle
# =========================================================================


class TimesheetStatus(str, Enum):
    """Timesheet lifecycle states, as spelled on the wire."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TIMESHEET_TRANSITIONS: dict[TimesheetStatus, frozenset[TimesheetStatus]] = {
    TimesheetStatus.PENDING: frozenset({
        TimesheetStatus.APPROVED,
        TimesheetStatus.REJECTED,
    }),
    TimesheetStatus.APPROVED: frozenset(),
    TimesheetStatus.REJECTED: frozenset(),
}

TERMINAL_TIMESHEET_STATUSES: frozenset[TimesheetStatus] = frozenset({
    TimesheetStatus.APPROVED,
    TimesheetStatus.REJECTED,
})


class StatusFilter(str, Enum):
    """List filter choices; ALL passes every record through."""

    ALL = "ALL"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    def matches(self, status: TimesheetStatus) -> bool:
        return self is StatusFilter.ALL or self.value == status.value


# =========================================================================
# Form option sets
# =========================================================================

TASK_TYPES: tuple[str, ...] = (
    "development",
    "design",
    "testing",
    "documentation",
    "research",
    "administration",
    "training",
    "support",
    "consulting",
    "maintenance",
    "meeting",
    "other",
)

WORK_LOCATIONS: tuple[str, ...] = (
    "office",
    "home",
    "client",
    "co-working space",
    "field",
    "hybrid",
    "on-site",
    "temporary location",
    "mobile",
)

ON_CALL_CHOICES: tuple[str, ...] = ("true", "false")

# Python attribute -> wire key for the fields the submission form edits.
DRAFT_WIRE_KEYS: dict[str, str] = {
    "start_date": "startDate",
    "end_date": "endDate",
    "number_of_hours": "numberOfHours",
    "extra_hours": "extraHours",
    "client_name": "clientName",
    "project_name": "projectName",
    "task_type": "taskType",
    "work_location": "workLocation",
    "reporting_manager": "reportingManager",
    "on_call_support": "onCallSupport",
    "task_description": "taskDescription",
}

_WIRE_TO_ATTR: dict[str, str] = {v: k for k, v in DRAFT_WIRE_KEYS.items()}


def parse_on_call(value: Any) -> bool | None:
    """Convert the form's "true"/"false" strings to bool (None if neither)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower() if value is not None else ""
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def hours_to_wire(value: Decimal | None) -> int | float | None:
    """Render hours as a JSON number.

    Whole values with fewer than 16 digits become ints; everything else
    goes through float, so huge exponents never expand into digits.
    """
    if value is None:
        return None
    if value.adjusted() < 15 and value == value.to_integral_value():
        return int(value)
    return float(value)


# =========================================================================
# Draft (form state)
# =========================================================================


@dataclass(frozen=True)
class TimesheetDraft:
    """Raw, unvalidated submission form values.

    Values are kept as the form produced them (mostly strings).  Typed
    values are accepted too so a draft can be rebuilt from a record.
    """

    start_date: str | date = ""
    end_date: str | date = ""
    number_of_hours: str | int | float | Decimal = ""
    extra_hours: str | int | float | Decimal | None = ""
    client_name: str = ""
    project_name: str = ""
    task_type: str = ""
    work_location: str = ""
    reporting_manager: str = ""
    on_call_support: str | bool = ""
    task_description: str | None = ""

    def with_field(self, name: str, value: Any) -> TimesheetDraft:
        """Return a copy with one field changed.

        ``name`` may be the attribute name or the camelCase form name.
        """
        attr = _WIRE_TO_ATTR.get(name, name)
        if attr not in DRAFT_WIRE_KEYS:
            raise ValueError(f"Unknown timesheet form field: {name!r}")
        return replace(self, **{attr: value})

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> TimesheetDraft:
        """Build a draft from camelCase form data, ignoring unknown keys."""
        values = {}
        for key, val in data.items():
            attr = _WIRE_TO_ATTR.get(key)
            if attr is not None and val is not None:
                values[attr] = val
        return cls(**values)

    @classmethod
    def from_record(cls, record: TimesheetRecord) -> TimesheetDraft:
        """Prefill the form from an existing record (edit entry)."""
        return cls(
            start_date=record.start_date.isoformat(),
            end_date=record.end_date.isoformat(),
            number_of_hours=str(record.number_of_hours),
            extra_hours="" if record.extra_hours is None else str(record.extra_hours),
            client_name=record.client_name,
            project_name=record.project_name,
            task_type=record.task_type,
            work_location=record.work_location,
            reporting_manager=record.reporting_manager,
            on_call_support="true" if record.on_call_support else "false",
            task_description=record.task_description or "",
        )

    def to_form(self) -> dict[str, Any]:
        """camelCase view of the raw values, for rendering the form."""
        return {wire: getattr(self, attr) for attr, wire in DRAFT_WIRE_KEYS.items()}


@dataclass(frozen=True)
class ValidatedDraft:
    """Typed draft that passed validation; ready to send to the service."""

    start_date: date
    end_date: date
    number_of_hours: Decimal
    client_name: str
    project_name: str
    task_type: str
    work_location: str
    reporting_manager: str
    on_call_support: bool
    extra_hours: Decimal | None = None
    task_description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "numberOfHours": hours_to_wire(self.number_of_hours),
            "clientName": self.client_name,
            "projectName": self.project_name,
            "taskType": self.task_type,
            "workLocation": self.work_location,
            "reportingManager": self.reporting_manager,
            "onCallSupport": self.on_call_support,
        }
        if self.extra_hours is not None:
            payload["extraHours"] = hours_to_wire(self.extra_hours)
        if self.task_description:
            payload["taskDescription"] = self.task_description
        return payload


# =========================================================================
# Record
# =========================================================================


@dataclass(frozen=True)
class TimesheetRecord:
    """One employee's timesheet submission for a date range. Immutable.

    Mutations produce new instances via ``with_transition`` or
    ``with_draft``; the store swaps them in.
    """

    id: str
    start_date: date
    end_date: date
    number_of_hours: Decimal
    client_name: str
    project_name: str
    task_type: str
    work_location: str
    reporting_manager: str
    on_call_support: bool
    employee_id: str
    employee_name: str
    manager_id: str
    status: TimesheetStatus = TimesheetStatus.PENDING
    extra_hours: Decimal | None = None
    task_description: str | None = None
    comments: str | None = None
    submission_date: datetime | None = None
    total_number_of_hours: Decimal | None = None

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Timesheet {self.id}: start_date {self.start_date} "
                f"is after end_date {self.end_date}"
            )
        if self.number_of_hours < 0:
            raise ValueError(f"Timesheet {self.id}: number_of_hours is negative")
        if self.extra_hours is not None and self.extra_hours < 0:
            raise ValueError(f"Timesheet {self.id}: extra_hours is negative")
        if self.comments is not None and self.status is not TimesheetStatus.REJECTED:
            raise ValueError(
                f"Timesheet {self.id}: comments only allowed on REJECTED records"
            )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TIMESHEET_STATUSES

    @property
    def total_hours(self) -> Decimal:
        """Server-computed total when supplied, otherwise hours + extra."""
        if self.total_number_of_hours is not None:
            return self.total_number_of_hours
        return self.number_of_hours + (self.extra_hours or Decimal("0"))

    def with_transition(
        self,
        to_status: TimesheetStatus,
        comments: str | None = None,
    ) -> TimesheetRecord:
        """Apply a status transition, enforcing ``TIMESHEET_TRANSITIONS``."""
        if to_status not in TIMESHEET_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.id, self.status.value, to_status.value)
        return replace(
            self,
            status=to_status,
            comments=comments if to_status is TimesheetStatus.REJECTED else None,
        )

    def with_draft(self, validated: ValidatedDraft) -> TimesheetRecord:
        """Edit self-loop: new field values, same identity and status."""
        return replace(
            self,
            start_date=validated.start_date,
            end_date=validated.end_date,
            number_of_hours=validated.number_of_hours,
            extra_hours=validated.extra_hours,
            client_name=validated.client_name,
            project_name=validated.project_name,
            task_type=validated.task_type,
            work_location=validated.work_location,
            reporting_manager=validated.reporting_manager,
            on_call_support=validated.on_call_support,
            task_description=validated.task_description,
            total_number_of_hours=None,
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        payload: dict[str, Any] = {
            "id": self.id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "numberOfHours": hours_to_wire(self.number_of_hours),
            "extraHours": hours_to_wire(self.extra_hours),
            "clientName": self.client_name,
            "projectName": self.project_name,
            "taskType": self.task_type,
            "workLocation": self.work_location,
            "reportingManager": self.reporting_manager,
            "onCallSupport": self.on_call_support,
            "taskDescription": self.task_description,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "managerId": self.manager_id,
            "status": self.status.value,
            "submissionDate": (
                self.submission_date.isoformat() if self.submission_date else None
            ),
        }
        if self.comments is not None:
            payload["comments"] = self.comments
        if self.total_number_of_hours is not None:
            payload["totalNumberOfHours"] = hours_to_wire(self.total_number_of_hours)
        return payload


# =========================================================================
# Payload parsing
# =========================================================================


def _parse_date(value: Any, key: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        # Services sometimes send full timestamps for date fields.
        return date.fromisoformat(value[:10])
    raise ValueError(f"Cannot parse {key} from {value!r}")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_hours(value: Any, key: str) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot parse {key} from {value!r}") from exc


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def record_from_payload(data: Mapping[str, Any]) -> TimesheetRecord:
    """
    Parse a service payload into a ``TimesheetRecord``.

    Comments on non-REJECTED records are dropped, and a blank comment on a
    REJECTED record is normalized to None.

    Raises:
        KeyError: if ``id``, ``startDate`` or ``endDate`` is missing.
        ValueError: if a date, hours or status value cannot be parsed.
    """
    status = TimesheetStatus(str(data.get("status") or "PENDING").upper())
    comments = _optional_text(data.get("comments"))
    if status is not TimesheetStatus.REJECTED:
        comments = None
    on_call = parse_on_call(data.get("onCallSupport"))

    return TimesheetRecord(
        id=str(data["id"]),
        start_date=_parse_date(data["startDate"], "startDate"),
        end_date=_parse_date(data["endDate"], "endDate"),
        number_of_hours=_parse_hours(data.get("numberOfHours"), "numberOfHours")
        or Decimal("0"),
        extra_hours=_parse_hours(data.get("extraHours"), "extraHours"),
        client_name=str(data.get("clientName") or ""),
        project_name=str(data.get("projectName") or ""),
        task_type=str(data.get("taskType") or ""),
        work_location=str(data.get("workLocation") or ""),
        reporting_manager=str(data.get("reportingManager") or ""),
        on_call_support=bool(on_call),
        task_description=_optional_text(data.get("taskDescription")),
        employee_id=str(data.get("employeeId") or ""),
        employee_name=str(data.get("employeeName") or ""),
        manager_id=str(data.get("managerId") or ""),
        status=status,
        comments=comments,
        submission_date=_parse_timestamp(
            data.get("submissionDate", data.get("SubmissionDate"))
        ),
        total_number_of_hours=_parse_hours(
            data.get("totalNumberOfHours"), "totalNumberOfHours"
        ),
    )
