"""
timesheet_services.gateway -- Access to the remote timesheet service.

Responsibility:
    Defines the ``TimesheetGateway`` protocol the lifecycle controller and
    list views talk to, plus two implementations:

    * ``HttpTimesheetGateway`` -- the REST binding used in production.
    * ``InMemoryTimesheetGateway`` -- a process-local service used by the
      CLI demo mode and the test suite.

Architecture position:
    Services -- the only I/O boundary toward the timesheet service.
    May import from timesheet_kernel.

Failure modes:
    - DuplicateSubmissionError when create is refused because the employee
      already has a timesheet for the dates.
    - RemoteServiceError for any other transport, HTTP or payload failure.
      Nothing is retried.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol
from urllib.parse import quote

import requests

from timesheet_kernel.domain.timesheet import (
    TimesheetRecord,
    TimesheetStatus,
    record_from_payload,
)
from timesheet_kernel.exceptions import (
    DuplicateSubmissionError,
    InvalidTransitionError,
    RemoteServiceError,
)
from timesheet_kernel.logging_config import get_logger

logger = get_logger("services.gateway")


class TimesheetGateway(Protocol):
    """CRUD-like operations offered by the timesheet service."""

    def list_by_employee(self, employee_id: str) -> list[TimesheetRecord]:
        """Timesheets submitted by an employee, in service order."""
        ...

    def list_by_manager(self, manager_id: str) -> list[TimesheetRecord]:
        """Timesheets awaiting or past a manager's review, in service order."""
        ...

    def create(self, payload: Mapping[str, Any]) -> TimesheetRecord:
        """Create a timesheet; the service assigns the id and PENDING status."""
        ...

    def update(self, record_id: str, payload: Mapping[str, Any]) -> TimesheetRecord | None:
        """Replace the draft fields of a timesheet."""
        ...

    def delete(self, record_id: str) -> None:
        ...

    def approve(self, record_id: str) -> TimesheetRecord | None:
        ...

    def reject(self, record_id: str, comment: str) -> TimesheetRecord | None:
        ...


def _records_from(operation: str, data: Any) -> list[TimesheetRecord]:
    if not isinstance(data, list):
        raise RemoteServiceError(operation, "expected a list of timesheets")
    try:
        return [record_from_payload(item) for item in data]
    except (KeyError, ValueError, TypeError) as exc:
        raise RemoteServiceError(operation, f"malformed timesheet payload: {exc}") from exc


def _optional_record(operation: str, data: Any) -> TimesheetRecord | None:
    if not isinstance(data, dict) or "id" not in data:
        return None
    try:
        return record_from_payload(data)
    except (KeyError, ValueError, TypeError) as exc:
        raise RemoteServiceError(operation, f"malformed timesheet payload: {exc}") from exc


# =============================================================================
# HTTP binding
# =============================================================================


class HttpTimesheetGateway:
    """REST binding for the timesheet service.

    Paths (relative to ``base_url`` + ``api_prefix``):
        GET    /list/{employeeId}
        GET    /list/manager/{managerId}
        POST   /
        PUT    /{id}
        DELETE /delete/{id}
        PUT    /Approve/{id}/status/APPROVED
        PUT    /reject/{id}/status/REJECTED/comments/{comment}
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_prefix: str = "/api/timesheets",
        timeout_seconds: float = 10.0,
        duplicate_status_codes: Iterable[int] = (409,),
        session: requests.Session | None = None,
    ) -> None:
        self._root = base_url.rstrip("/") + "/" + api_prefix.strip("/")
        self._timeout = timeout_seconds
        self._duplicate_status_codes = frozenset(duplicate_status_codes)
        self._session = session or requests.Session()

    def _url(self, *parts: str) -> str:
        if not parts:
            return self._root
        return self._root + "/" + "/".join(quote(str(p), safe="") for p in parts)

    def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        json: Mapping[str, Any] | None = None,
        duplicate: DuplicateSubmissionError | None = None,
    ) -> Any:
        try:
            response = self._session.request(method, url, json=json, timeout=self._timeout)
        except requests.RequestException as exc:
            raise RemoteServiceError(operation, str(exc)) from exc

        if duplicate is not None and response.status_code in self._duplicate_status_codes:
            raise duplicate
        if not response.ok:
            raise RemoteServiceError(
                operation, response.reason or "request failed", status_code=response.status_code
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteServiceError(
                operation, "response is not JSON", status_code=response.status_code
            ) from exc

    def list_by_employee(self, employee_id: str) -> list[TimesheetRecord]:
        data = self._request("list_by_employee", "GET", self._url("list", employee_id))
        return _records_from("list_by_employee", data)

    def list_by_manager(self, manager_id: str) -> list[TimesheetRecord]:
        data = self._request("list_by_manager", "GET", self._url("list", "manager", manager_id))
        return _records_from("list_by_manager", data)

    def create(self, payload: Mapping[str, Any]) -> TimesheetRecord:
        duplicate = DuplicateSubmissionError(
            employee_id=payload.get("employeeId"),
            start_date=payload.get("startDate"),
            end_date=payload.get("endDate"),
        )
        data = self._request("create", "POST", self._url(), json=payload, duplicate=duplicate)
        record = _optional_record("create", data)
        if record is None:
            raise RemoteServiceError("create", "service did not return the created timesheet")
        return record

    def update(self, record_id: str, payload: Mapping[str, Any]) -> TimesheetRecord | None:
        data = self._request("update", "PUT", self._url(record_id), json=payload)
        return _optional_record("update", data)

    def delete(self, record_id: str) -> None:
        self._request("delete", "DELETE", self._url("delete", record_id))

    def approve(self, record_id: str) -> TimesheetRecord | None:
        data = self._request(
            "approve", "PUT",
            self._url("Approve", record_id, "status", TimesheetStatus.APPROVED.value),
        )
        return _optional_record("approve", data)

    def reject(self, record_id: str, comment: str) -> TimesheetRecord | None:
        data = self._request(
            "reject", "PUT",
            self._url(
                "reject", record_id, "status", TimesheetStatus.REJECTED.value,
                "comments", comment,
            ),
        )
        return _optional_record("reject", data)


# =============================================================================
# In-memory service
# =============================================================================


def _sequential_ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: str(next(counter))


class InMemoryTimesheetGateway:
    """Process-local timesheet service.

    Keeps records in insertion order, assigns ids and PENDING status on
    create, and refuses a create when the same employee already has a
    timesheet whose date range overlaps the new one.  ``calls`` records
    every operation name, in order.
    """

    def __init__(
        self,
        records: Iterable[TimesheetRecord] = (),
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._records: dict[str, TimesheetRecord] = {r.id: r for r in records}
        self._next_id = id_factory or _sequential_ids()
        self.calls: list[str] = []

    @property
    def records(self) -> tuple[TimesheetRecord, ...]:
        return tuple(self._records.values())

    def _get(self, operation: str, record_id: str) -> TimesheetRecord:
        record = self._records.get(record_id)
        if record is None:
            raise RemoteServiceError(operation, f"timesheet {record_id} not found", status_code=404)
        return record

    def list_by_employee(self, employee_id: str) -> list[TimesheetRecord]:
        self.calls.append("list_by_employee")
        return [r for r in self._records.values() if r.employee_id == employee_id]

    def list_by_manager(self, manager_id: str) -> list[TimesheetRecord]:
        self.calls.append("list_by_manager")
        return [r for r in self._records.values() if r.manager_id == manager_id]

    def create(self, payload: Mapping[str, Any]) -> TimesheetRecord:
        self.calls.append("create")
        try:
            candidate = record_from_payload(
                {**payload, "id": "pending-id", "status": TimesheetStatus.PENDING.value}
            )
        except (KeyError, ValueError) as exc:
            raise RemoteServiceError("create", f"invalid timesheet: {exc}", status_code=400) from exc
        for existing in self._records.values():
            if (
                existing.employee_id == candidate.employee_id
                and existing.start_date <= candidate.end_date
                and candidate.start_date <= existing.end_date
            ):
                raise DuplicateSubmissionError(
                    employee_id=candidate.employee_id,
                    start_date=candidate.start_date.isoformat(),
                    end_date=candidate.end_date.isoformat(),
                )
        record_id = self._next_id()
        while record_id in self._records:
            record_id = self._next_id()
        record = record_from_payload(
            {**payload, "id": record_id, "status": TimesheetStatus.PENDING.value}
        )
        self._records[record_id] = record
        logger.debug("in_memory_timesheet_created", extra={"record_id": record_id})
        return record

    def update(self, record_id: str, payload: Mapping[str, Any]) -> TimesheetRecord:
        self.calls.append("update")
        existing = self._get("update", record_id)
        if existing.is_terminal:
            raise RemoteServiceError(
                "update", f"timesheet {record_id} is {existing.status.value}", status_code=409
            )
        current = existing.to_payload()
        merged = {**current, **payload}
        for key in ("id", "employeeId", "employeeName", "managerId", "status", "submissionDate"):
            merged[key] = current[key]
        merged.pop("totalNumberOfHours", None)
        record = record_from_payload(merged)
        self._records[record_id] = record
        return record

    def delete(self, record_id: str) -> None:
        self.calls.append("delete")
        self._get("delete", record_id)
        del self._records[record_id]

    def _transition(
        self,
        operation: str,
        record_id: str,
        status: TimesheetStatus,
        comment: str | None = None,
    ) -> TimesheetRecord:
        existing = self._get(operation, record_id)
        try:
            record = existing.with_transition(status, comment)
        except InvalidTransitionError as exc:
            raise RemoteServiceError(operation, str(exc), status_code=409) from exc
        self._records[record_id] = record
        return record

    def approve(self, record_id: str) -> TimesheetRecord:
        self.calls.append("approve")
        return self._transition("approve", record_id, TimesheetStatus.APPROVED)

    def reject(self, record_id: str, comment: str) -> TimesheetRecord:
        self.calls.append("reject")
        return self._transition("reject", record_id, TimesheetStatus.REJECTED, comment)
