"""
Tests for the LifecycleController.

Tests cover:
- submit: validation gate, identity injection, duplicate handling
- approve / reject: PENDING-only, comment requirement, two-step reject
- edit / delete: PENDING-only, identity preservation
- Fail-closed behaviour when the service errors
- Per-record in-flight guard (double click protection)
- End-to-end: employee submits, manager rejects
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from timesheet_engines.validation import DATE_ORDER_MESSAGE, GENERIC_ERROR_MESSAGE
from timesheet_kernel.domain.timesheet import TimesheetStatus
from timesheet_kernel.exceptions import (
    ActionInFlightError,
    DUPLICATE_SUBMISSION_MESSAGE,
    DraftValidationError,
    DuplicateSubmissionError,
    RecordImmutableError,
    RecordNotFoundError,
    RejectionCommentRequiredError,
    RemoteServiceError,
)
from timesheet_services.gateway import InMemoryTimesheetGateway
from timesheet_services.lifecycle import LifecycleController
from timesheet_services.submission_store import SubmissionStore

from tests.factories import EMPLOYEE_ID, MANAGER_ID, make_draft, make_record, make_records

P, A, R = TimesheetStatus.PENDING, TimesheetStatus.APPROVED, TimesheetStatus.REJECTED


# =========================================================================
# Test doubles
# =========================================================================


class FailingGateway(InMemoryTimesheetGateway):
    """Every mutation fails after being recorded."""

    def _fail(self, operation):
        self.calls.append(operation)
        raise RemoteServiceError(operation, "Service Unavailable", status_code=503)

    def create(self, payload):
        self._fail("create")

    def update(self, record_id, payload):
        self._fail("update")

    def delete(self, record_id):
        self._fail("delete")

    def approve(self, record_id):
        self._fail("approve")

    def reject(self, record_id, comment):
        self._fail("reject")


class SilentGateway(InMemoryTimesheetGateway):
    """Acknowledges transitions and updates without returning a body."""

    def approve(self, record_id):
        super().approve(record_id)
        return None

    def reject(self, record_id, comment):
        super().reject(record_id, comment)
        return None

    def update(self, record_id, payload):
        super().update(record_id, payload)
        return None


class CommentlessGateway(InMemoryTimesheetGateway):
    """Returns the REJECTED record but leaves the comment out of the body."""

    def reject(self, record_id, comment):
        return replace(super().reject(record_id, comment), comments=None)


class BlockingGateway(InMemoryTimesheetGateway):
    """approve() waits until the test releases it."""

    def __init__(self, records=()):
        super().__init__(records)
        self.entered = threading.Event()
        self.release = threading.Event()

    def approve(self, record_id):
        self.entered.set()
        assert self.release.wait(timeout=5)
        return super().approve(record_id)


def _controller(identity, gateway, records=(), clock=None):
    store = SubmissionStore(records)
    return LifecycleController(gateway, store, identity, clock), store


# =========================================================================
# Submit
# =========================================================================


class TestSubmit:

    def test_creates_pending_record_with_identity(self, employee_identity, gateway, clock):
        controller, store = _controller(employee_identity, gateway, clock=clock)
        record = controller.submit(make_draft())

        assert record.status is P
        assert record.employee_id == EMPLOYEE_ID
        assert record.employee_name == "Alex"
        assert record.manager_id == MANAGER_ID
        assert record.submission_date == clock.now()
        assert len(store) == 0  # confirmation step adds it
        assert gateway.calls == ["create"]

    def test_invalid_draft_is_never_sent(self, employee_identity, gateway):
        controller, _ = _controller(employee_identity, gateway)
        with pytest.raises(DraftValidationError) as exc_info:
            controller.submit(make_draft(start_date="2024-01-08", end_date="2024-01-01"))
        assert exc_info.value.user_message == f"{GENERIC_ERROR_MESSAGE} {DATE_ORDER_MESSAGE}"
        assert "date_order" in exc_info.value.problems
        assert gateway.calls == []

    def test_duplicate_dates(self, employee_identity):
        gateway = InMemoryTimesheetGateway([make_record()])
        controller, _ = _controller(employee_identity, gateway)
        with pytest.raises(DuplicateSubmissionError) as exc_info:
            controller.submit(make_draft())
        assert exc_info.value.user_message == DUPLICATE_SUBMISSION_MESSAGE

    def test_remote_failure_propagates(self, employee_identity, captured_logs):
        controller, _ = _controller(employee_identity, FailingGateway())
        with pytest.raises(RemoteServiceError):
            controller.submit(make_draft())
        failures = [r for r in captured_logs() if r["message"] == "timesheet_submission_failed"]
        assert failures and failures[0]["exc_status_code"] == 503

    def test_submission_logged(self, employee_identity, gateway, captured_logs):
        controller, _ = _controller(employee_identity, gateway)
        record = controller.submit(make_draft())
        logs = [r for r in captured_logs() if r["message"] == "timesheet_submitted"]
        assert logs[0]["record_id"] == record.id
        assert logs[0]["action"] == "submit"


# =========================================================================
# Approve / reject
# =========================================================================


class TestApproveReject:

    def test_approve(self, manager_identity, captured_logs):
        records = make_records([P, P])
        controller, store = _controller(manager_identity, InMemoryTimesheetGateway(records), records)
        updated = controller.approve("2")
        assert updated.status is A
        assert store.get("2").status is A
        assert store.get("1").status is P
        assert any(
            r["message"] == "timesheet_approved" and r["record_id"] == "2"
            for r in captured_logs()
        )

    def test_reject_strips_comment(self, manager_identity):
        records = make_records([P])
        controller, store = _controller(manager_identity, InMemoryTimesheetGateway(records), records)
        controller.reject("1", "  incomplete  ")
        assert store.get("1").comments == "incomplete"
        assert store.get("1").status is R

    @pytest.mark.parametrize("comment", ["", "   ", None])
    def test_reject_requires_comment(self, manager_identity, comment):
        records = make_records([P])
        gateway = InMemoryTimesheetGateway(records)
        controller, store = _controller(manager_identity, gateway, records)
        with pytest.raises(RejectionCommentRequiredError):
            controller.reject("1", comment)
        assert gateway.calls == []
        assert store.get("1").status is P

    def test_two_step_rejection(self, manager_identity):
        records = make_records([P])
        controller, store = _controller(manager_identity, InMemoryTimesheetGateway(records), records)
        intent = controller.begin_rejection("1")
        assert intent.comment == ""
        controller.commit_rejection(intent.with_comment("wrong project"))
        assert store.get("1").comments == "wrong project"

    def test_begin_rejection_on_terminal_record(self, manager_identity):
        records = make_records([A])
        controller, _ = _controller(manager_identity, InMemoryTimesheetGateway(records), records)
        with pytest.raises(RecordImmutableError):
            controller.begin_rejection("1")

    @pytest.mark.parametrize("status", [A, R])
    @pytest.mark.parametrize("action", ["approve", "reject"])
    def test_terminal_records_never_sent(self, manager_identity, status, action):
        records = make_records([status])
        gateway = InMemoryTimesheetGateway(records)
        controller, store = _controller(manager_identity, gateway, records)
        with pytest.raises(RecordImmutableError) as exc_info:
            if action == "approve":
                controller.approve("1")
            else:
                controller.reject("1", "again")
        assert exc_info.value.status == status.value
        assert gateway.calls == []
        assert store.get("1") == records[0]

    def test_unknown_record(self, manager_identity, gateway):
        controller, _ = _controller(manager_identity, gateway)
        with pytest.raises(RecordNotFoundError):
            controller.approve("nope")

    def test_remote_failure_leaves_store_untouched(self, manager_identity):
        records = make_records([P])
        controller, store = _controller(manager_identity, FailingGateway(records), records)
        with pytest.raises(RemoteServiceError):
            controller.approve("1")
        with pytest.raises(RemoteServiceError):
            controller.reject("1", "no")
        assert store.records == tuple(records)
        assert not controller.loading
        assert not controller.is_in_flight("1")

    def test_transition_applied_locally_without_body(self, manager_identity):
        records = make_records([P, P])
        controller, store = _controller(manager_identity, SilentGateway(records), records)
        controller.approve("1")
        controller.reject("2", "late")
        assert store.get("1").status is A
        assert store.get("2").status is R
        assert store.get("2").comments == "late"

    def test_reject_body_without_comment_keeps_entered_comment(self, manager_identity):
        records = make_records([P])
        controller, store = _controller(manager_identity, CommentlessGateway(records), records)
        updated = controller.reject("1", "missing hours")
        assert updated.status is R
        assert updated.comments == "missing hours"
        assert store.get("1").comments == "missing hours"


class TestInFlightGuard:
    """A second action on a busy record is refused."""

    @pytest.mark.slow_locks
    def test_double_approve_blocked(self, manager_identity):
        records = make_records([P, P])
        gateway = BlockingGateway(records)
        controller, store = _controller(manager_identity, gateway, records)
        outcome = {}

        def first_click():
            outcome["record"] = controller.approve("1")

        worker = threading.Thread(target=first_click)
        worker.start()
        assert gateway.entered.wait(timeout=5)
        try:
            assert controller.loading
            assert controller.is_in_flight("1")
            with pytest.raises(ActionInFlightError):
                controller.approve("1")
            with pytest.raises(ActionInFlightError):
                controller.reject("1", "changed my mind")
            assert not controller.is_in_flight("2")
        finally:
            gateway.release.set()
            worker.join(timeout=5)

        assert outcome["record"].status is A
        assert gateway.calls == ["approve"]
        assert not controller.loading
        assert store.get("1").status is A


# =========================================================================
# Edit / delete
# =========================================================================


class TestEditDelete:

    def test_edit_updates_fields_and_keeps_identity(self, employee_identity):
        original = make_record()
        controller, store = _controller(
            employee_identity, InMemoryTimesheetGateway([original]), [original]
        )
        updated = controller.edit("1", make_draft(client_name="Globex", number_of_hours="32"))
        assert updated.client_name == "Globex"
        assert str(updated.number_of_hours) == "32"
        assert updated.id == "1"
        assert updated.status is P
        assert updated.employee_id == original.employee_id
        assert updated.submission_date == original.submission_date
        assert store.get("1") == updated

    def test_edit_without_body_applies_draft(self, employee_identity):
        original = make_record()
        controller, store = _controller(employee_identity, SilentGateway([original]), [original])
        controller.edit("1", make_draft(project_name="Billing"))
        assert store.get("1").project_name == "Billing"
        assert store.get("1").submission_date == original.submission_date

    def test_edit_invalid_draft(self, employee_identity):
        original = make_record()
        gateway = InMemoryTimesheetGateway([original])
        controller, store = _controller(employee_identity, gateway, [original])
        with pytest.raises(DraftValidationError):
            controller.edit("1", make_draft(reporting_manager=""))
        assert gateway.calls == []
        assert store.get("1") == original

    @pytest.mark.parametrize("status", [A, R])
    def test_terminal_records_cannot_be_edited_or_deleted(self, employee_identity, status):
        records = make_records([status])
        gateway = InMemoryTimesheetGateway(records)
        controller, store = _controller(employee_identity, gateway, records)
        with pytest.raises(RecordImmutableError):
            controller.edit("1", make_draft())
        with pytest.raises(RecordImmutableError):
            controller.delete("1")
        assert gateway.calls == []
        assert len(store) == 1

    def test_delete(self, employee_identity, captured_logs):
        records = make_records([P, A])
        gateway = InMemoryTimesheetGateway(records)
        controller, store = _controller(employee_identity, gateway, records)
        controller.delete("1")
        assert "1" not in store
        assert [r.id for r in gateway.records] == ["2"]
        assert any(r["message"] == "timesheet_deleted" for r in captured_logs())

    def test_delete_failure_keeps_record(self, employee_identity):
        records = make_records([P])
        controller, store = _controller(employee_identity, FailingGateway(records), records)
        with pytest.raises(RemoteServiceError):
            controller.delete("1")
        assert "1" in store


# =========================================================================
# End to end
# =========================================================================


class TestSubmitThenReject:
    """Employee submits a week; the manager rejects it with a comment."""

    def test_round_trip(self, employee_identity, manager_identity, clock):
        service = InMemoryTimesheetGateway()

        employee, employee_store = _controller(employee_identity, service, clock=clock)
        submitted = employee.submit(make_draft(
            start_date="2024-01-01", end_date="2024-01-07", number_of_hours="40",
        ))
        employee_store.add(submitted)
        assert submitted.status is P

        manager, manager_store = _controller(
            manager_identity, service, service.list_by_manager(MANAGER_ID)
        )
        rejected = manager.reject(submitted.id, "incomplete")

        assert rejected.status is R
        assert rejected.comments == "incomplete"
        assert manager_store.counts().rejected == 1
        assert service.list_by_employee(EMPLOYEE_ID)[0].status is R
        assert rejected.submission_date == datetime(2024, 1, 8, 9, 0, tzinfo=timezone.utc)
