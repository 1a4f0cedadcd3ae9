"""
Draft Validation Engine (``timesheet_engines.validation``).

Responsibility
--------------
Checks a submission form draft before it is sent to the timesheet
service, and converts the raw form values into a typed
``ValidatedDraft`` when they pass.

* Required fields must be non-empty after trimming.
* ``numberOfHours`` must be present, numeric and non-negative.
* ``startDate`` must not be after ``endDate``.
* ``extraHours``, when given, must be numeric and non-negative.
* ``taskType`` / ``workLocation`` must come from the form's option sets.
* ``onCallSupport`` must be a bool or the strings "true"/"false".

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
May only import from ``timesheet_kernel.domain``.

Failure modes
-------------
* Returns a ``DraftValidation`` result (not an exception) for any
  business rule violation.  The message is a single aggregate sentence;
  the per-field ``problems`` tuple exists for logging only.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from timesheet_engines.tracer import traced_engine
from timesheet_kernel.domain.timesheet import (
    TASK_TYPES,
    WORK_LOCATIONS,
    TimesheetDraft,
    ValidatedDraft,
    parse_on_call,
)

GENERIC_ERROR_MESSAGE = "Please fill all required fields correctly."
DATE_ORDER_MESSAGE = "Ensure that the start date is before the end date."

REQUIRED_FIELDS: tuple[str, ...] = (
    "start_date",
    "end_date",
    "client_name",
    "project_name",
    "task_type",
    "work_location",
    "reporting_manager",
    "on_call_support",
)

# Exclusive upper bound on the magnitude of hours values.
HOURS_LIMIT = Decimal("1000000")


@dataclass(frozen=True)
class DraftValidation:
    """Result of validating a draft.

    ``validated`` is set exactly when ``is_valid`` is True; ``message`` is
    set exactly when it is False.
    """

    is_valid: bool
    message: str | None = None
    problems: tuple[str, ...] = ()
    date_order_violated: bool = False
    validated: ValidatedDraft | None = None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_hours(value: Any) -> Decimal | None:
    """Parse an hours value from the form.

    None if empty, not a finite number, or at least ``HOURS_LIMIT`` in
    magnitude (exponent forms like "1e5000000" included).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    if not parsed.is_finite() or abs(parsed) >= HOURS_LIMIT:
        return None
    return parsed


def parse_form_date(value: Any) -> date | None:
    """Parse a ``YYYY-MM-DD`` form value; None if empty or malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def match_option(value: Any, options: Iterable[str]) -> str | None:
    """Case-insensitive lookup of a form choice; returns the canonical spelling."""
    text = _text(value).lower()
    for option in options:
        if option == text:
            return option
    return None


@traced_engine("draft_validation", "1.0", fingerprint_fields=("draft",))
def validate_draft(draft: TimesheetDraft) -> DraftValidation:
    """Validate a submission draft.

    Args:
        draft: Raw form values.

    Returns:
        DraftValidation.  On failure the message is
        "Please fill all required fields correctly." with the date-order
        sentence appended when the start date is after the end date (or
        either date cannot be read).
    """
    problems: list[str] = [f for f in REQUIRED_FIELDS if not _text(getattr(draft, f))]

    hours = parse_hours(draft.number_of_hours)
    if hours is None or hours < 0:
        problems.append("number_of_hours")

    extra_hours: Decimal | None = None
    if _text(draft.extra_hours):
        extra_hours = parse_hours(draft.extra_hours)
        if extra_hours is None or extra_hours < 0:
            problems.append("extra_hours")

    task_type = match_option(draft.task_type, TASK_TYPES)
    if _text(draft.task_type) and task_type is None:
        problems.append("task_type")

    work_location = match_option(draft.work_location, WORK_LOCATIONS)
    if _text(draft.work_location) and work_location is None:
        problems.append("work_location")

    on_call = parse_on_call(draft.on_call_support)
    if _text(draft.on_call_support) and on_call is None:
        problems.append("on_call_support")

    start = parse_form_date(draft.start_date)
    end = parse_form_date(draft.end_date)
    date_order_violated = False
    if _text(draft.start_date) and _text(draft.end_date):
        if start is None or end is None or start > end:
            date_order_violated = True
            problems.append("date_order")

    if problems:
        message = GENERIC_ERROR_MESSAGE
        if date_order_violated:
            message = f"{message} {DATE_ORDER_MESSAGE}"
        return DraftValidation(
            is_valid=False,
            message=message,
            problems=tuple(dict.fromkeys(problems)),
            date_order_violated=date_order_violated,
        )

    description = _text(draft.task_description)
    validated = ValidatedDraft(
        start_date=start,
        end_date=end,
        number_of_hours=hours,
        extra_hours=extra_hours,
        client_name=_text(draft.client_name),
        project_name=_text(draft.project_name),
        task_type=task_type,
        work_location=work_location,
        reporting_manager=_text(draft.reporting_manager),
        on_call_support=on_call,
        task_description=description or None,
    )
    return DraftValidation(is_valid=True, validated=validated)
