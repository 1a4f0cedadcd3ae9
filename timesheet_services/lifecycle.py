"""
timesheet_services.lifecycle -- Timesheet lifecycle controller.

Responsibility:
    Orchestrates every change to a timesheet: submit (create), edit,
    delete, approve and reject.  Validates drafts through the pure
    validation engine, calls the remote service, and only then updates
    the viewer's SubmissionStore.

Architecture position:
    Services.  May import from timesheet_kernel and timesheet_engines.

State machine (per record):
    PENDING --approve--> APPROVED          (terminal)
    PENDING --reject(comment)--> REJECTED  (terminal)
    PENDING --edit--> PENDING              (fields updated)
    PENDING --delete--> removed

Invariants enforced:
    - Terminal records are never sent to the service for mutation.
    - Fail-closed: a failed remote call leaves the store untouched.
    - One action per record at a time: a per-record in-flight flag blocks
      a second approve/reject (double click) until the first completes.
    - Identity fields and submission date never change on edit.

Failure modes:
    - DraftValidationError -- draft failed validation; nothing was sent.
    - DuplicateSubmissionError -- the service already holds a timesheet
      for the same employee and dates.
    - RejectionCommentRequiredError -- reject committed without a comment.
    - RecordNotFoundError -- id not in the viewer's store.
    - RecordImmutableError -- record is APPROVED or REJECTED.
    - ActionInFlightError -- another action on the record is running.
    - RemoteServiceError -- transport/server failure (logged, re-raised).
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from timesheet_engines.validation import validate_draft
from timesheet_kernel.domain.clock import Clock, SystemClock
from timesheet_kernel.domain.timesheet import (
    TimesheetDraft,
    TimesheetRecord,
    TimesheetStatus,
    ValidatedDraft,
)
from timesheet_kernel.domain.viewer import ViewerIdentity
from timesheet_kernel.exceptions import (
    ActionInFlightError,
    DraftValidationError,
    DuplicateSubmissionError,
    RecordImmutableError,
    RejectionCommentRequiredError,
    RemoteServiceError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_services.gateway import TimesheetGateway
from timesheet_services.submission_store import SubmissionStore

logger = get_logger("services.lifecycle")

_LOADING_ACTIONS = frozenset({"approve", "reject"})


@dataclass(frozen=True)
class RejectionIntent:
    """Open rejection dialog: the record being rejected and the comment so far."""

    record_id: str
    comment: str = ""

    def with_comment(self, comment: str) -> RejectionIntent:
        return replace(self, comment=comment)


class LifecycleController:
    """Drives timesheet status transitions against the remote service."""

    def __init__(
        self,
        gateway: TimesheetGateway,
        store: SubmissionStore,
        identity: ViewerIdentity,
        clock: Clock | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._identity = identity
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._in_flight: dict[str, str] = {}

    # ------------------------------------------------------------------
    # In-flight tracking
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        """True while any approve or reject is waiting on the service."""
        with self._lock:
            return any(a in _LOADING_ACTIONS for a in self._in_flight.values())

    def is_in_flight(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._in_flight

    @contextmanager
    def _claim(self, record_id: str, action: str) -> Iterator[None]:
        with self._lock:
            if record_id in self._in_flight:
                raise ActionInFlightError(record_id, action)
            self._in_flight[record_id] = action
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.pop(record_id, None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pending_record(self, record_id: str, action: str) -> TimesheetRecord:
        record = self._store.get(record_id)
        if record.is_terminal:
            logger.warning(
                "timesheet_action_on_terminal_record",
                extra={"status": record.status.value},
            )
            raise RecordImmutableError(record_id, record.status.value, action)
        return record

    def _validated(self, draft: TimesheetDraft) -> ValidatedDraft:
        result = validate_draft(draft)
        if not result.is_valid:
            logger.info(
                "timesheet_draft_invalid",
                extra={"problems": list(result.problems)},
            )
            raise DraftValidationError(result.message, result.problems)
        return result.validated

    def _apply_transition(
        self,
        record_id: str,
        returned: TimesheetRecord | None,
        target: TimesheetStatus,
        comment: str | None = None,
    ) -> TimesheetRecord:
        current = self._store.get(record_id)
        if returned is not None and returned.status is target:
            updated = returned
            if comment is not None and returned.comments is None:
                updated = replace(returned, comments=comment)
        else:
            updated = current.with_transition(target, comment)
        self._store.replace(record_id, updated)
        return updated

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def submit(self, draft: TimesheetDraft) -> TimesheetRecord:
        """Validate a draft and create it on the service (status PENDING).

        The store is not touched here; the submission confirmation step
        adds the record once the employee confirms it.
        """
        with LogContext.bind(action="submit"):
            validated = self._validated(draft)
            payload = {
                **validated.to_payload(),
                "employeeId": self._identity.viewer_id,
                "employeeName": self._identity.display_name,
                "managerId": self._identity.manager_id,
                "submissionDate": self._clock.now().isoformat(),
            }
            try:
                record = self._gateway.create(payload)
            except DuplicateSubmissionError:
                logger.warning(
                    "timesheet_submission_duplicate",
                    extra={
                        "start_date": payload["startDate"],
                        "end_date": payload["endDate"],
                    },
                )
                raise
            except RemoteServiceError:
                logger.error("timesheet_submission_failed", exc_info=True)
                raise

            with LogContext.bind(record_id=record.id):
                logger.info(
                    "timesheet_submitted",
                    extra={"number_of_hours": validated.number_of_hours},
                )
            return record

    def approve(self, record_id: str) -> TimesheetRecord:
        """PENDING -> APPROVED."""
        with LogContext.bind(record_id=record_id, action="approve"):
            with self._claim(record_id, "approve"):
                self._pending_record(record_id, "approve")
                try:
                    returned = self._gateway.approve(record_id)
                except RemoteServiceError:
                    logger.error("timesheet_approve_failed", exc_info=True)
                    raise
                updated = self._apply_transition(record_id, returned, TimesheetStatus.APPROVED)
            logger.info("timesheet_approved")
            return updated

    def begin_rejection(self, record_id: str) -> RejectionIntent:
        """First step of a rejection: open the comment dialog for a PENDING record."""
        self._pending_record(record_id, "reject")
        return RejectionIntent(record_id=record_id)

    def commit_rejection(self, intent: RejectionIntent) -> TimesheetRecord:
        """Second step of a rejection: send the collected comment."""
        return self.reject(intent.record_id, intent.comment)

    def reject(self, record_id: str, comment: str) -> TimesheetRecord:
        """PENDING -> REJECTED, attaching the manager's comment."""
        with LogContext.bind(record_id=record_id, action="reject"):
            comment = (comment or "").strip()
            if not comment:
                raise RejectionCommentRequiredError(record_id)
            with self._claim(record_id, "reject"):
                self._pending_record(record_id, "reject")
                try:
                    returned = self._gateway.reject(record_id, comment)
                except RemoteServiceError:
                    logger.error("timesheet_reject_failed", exc_info=True)
                    raise
                updated = self._apply_transition(
                    record_id, returned, TimesheetStatus.REJECTED, comment
                )
            logger.info("timesheet_rejected", extra={"comments": comment})
            return updated

    def edit(self, record_id: str, draft: TimesheetDraft) -> TimesheetRecord:
        """PENDING -> PENDING with new field values."""
        with LogContext.bind(record_id=record_id, action="edit"):
            with self._claim(record_id, "edit"):
                current = self._pending_record(record_id, "edit")
                validated = self._validated(draft)
                payload = {
                    **validated.to_payload(),
                    "id": record_id,
                    "employeeId": current.employee_id,
                    "employeeName": current.employee_name,
                    "managerId": current.manager_id,
                }
                try:
                    returned = self._gateway.update(record_id, payload)
                except RemoteServiceError:
                    logger.error("timesheet_update_failed", exc_info=True)
                    raise
                if returned is None:
                    updated = current.with_draft(validated)
                else:
                    updated = replace(
                        returned,
                        employee_id=current.employee_id,
                        employee_name=current.employee_name,
                        manager_id=current.manager_id,
                        submission_date=current.submission_date or returned.submission_date,
                    )
                self._store.replace(record_id, updated)
            logger.info("timesheet_updated")
            return updated

    def delete(self, record_id: str) -> None:
        """Remove a PENDING record; the store changes only after the service confirms."""
        with LogContext.bind(record_id=record_id, action="delete"):
            with self._claim(record_id, "delete"):
                self._pending_record(record_id, "delete")
                try:
                    self._gateway.delete(record_id)
                except RemoteServiceError:
                    logger.error("timesheet_delete_failed", exc_info=True)
                    raise
                self._store.remove(record_id)
            logger.info("timesheet_deleted")
