"""Tests for the submission form, confirmation step and entry messages."""

from timesheet_engines.validation import GENERIC_ERROR_MESSAGE
from timesheet_kernel.domain.timesheet import TimesheetStatus
from timesheet_kernel.domain.viewer import EMPLOYEE_LIST_VIEW
from timesheet_kernel.exceptions import DUPLICATE_SUBMISSION_MESSAGE
from timesheet_services.gateway import InMemoryTimesheetGateway
from timesheet_services.list_view import ListViewState
from timesheet_services.submission_flow import (
    HIDDEN_CONFIRMATION_KEYS,
    EditSaved,
    EditSubmission,
    NewSubmission,
    ResumeDraft,
    SubmissionConfirmation,
    SubmissionForm,
)

from tests.factories import make_draft, make_record


def _view(identity, records=(), clock=None):
    view = ListViewState(
        EMPLOYEE_LIST_VIEW, identity, InMemoryTimesheetGateway(records), clock=clock
    )
    view.refresh()
    return view


def _fill(form, draft):
    for wire_key, value in draft.to_form().items():
        form.change(wire_key, value)


class TestSubmissionForm:

    def test_new_form_is_blank(self, employee_identity):
        form = SubmissionForm(_view(employee_identity).controller, NewSubmission())
        assert not form.is_editing
        assert form.title == "Submit Timesheet"
        assert form.draft.client_name == ""

    def test_invalid_submit_sets_error(self, employee_identity):
        form = SubmissionForm(_view(employee_identity).controller)
        assert form.submit() is None
        assert form.error == GENERIC_ERROR_MESSAGE
        assert not form.submitting

    def test_change_clears_error(self, employee_identity):
        form = SubmissionForm(_view(employee_identity).controller)
        form.submit()
        form.change("clientName", "Acme")
        assert form.error is None
        assert form.draft.client_name == "Acme"

    def test_successful_submit_returns_confirmation(self, employee_identity, clock):
        view = _view(employee_identity, clock=clock)
        form = SubmissionForm(view.controller)
        _fill(form, make_draft())
        outcome = form.submit()
        assert isinstance(outcome, SubmissionConfirmation)
        assert outcome.record.status is TimesheetStatus.PENDING
        assert outcome.draft == form.draft
        assert len(view.store) == 0

    def test_duplicate_submit_shows_message(self, employee_identity):
        view = _view(employee_identity, [make_record()])
        form = SubmissionForm(view.controller)
        _fill(form, make_draft())
        assert form.submit() is None
        assert form.error == DUPLICATE_SUBMISSION_MESSAGE

    def test_edit_entry_prefills(self, employee_identity):
        record = make_record(client_name="Initech")
        form = SubmissionForm(_view(employee_identity, [record]).controller, EditSubmission(record))
        assert form.is_editing
        assert form.title == "Edit Timesheet"
        assert form.submit_label == "Update Timesheet"
        assert form.draft.client_name == "Initech"

    def test_edit_submit_updates_record(self, employee_identity):
        record = make_record()
        view = _view(employee_identity, [record])
        form = SubmissionForm(view.controller, EditSubmission(record))
        form.change("projectName", "Billing")
        outcome = form.submit()
        assert isinstance(outcome, EditSaved)
        assert outcome.record.project_name == "Billing"
        assert view.store.get(record.id).project_name == "Billing"

    def test_resume_draft_entry(self, employee_identity):
        draft = make_draft(client_name="Umbrella")
        form = SubmissionForm(_view(employee_identity).controller, ResumeDraft(draft))
        assert form.draft == draft
        assert not form.is_editing


class TestSubmissionConfirmation:

    def _confirmation(self, identity, clock, **draft_overrides):
        view = _view(identity, clock=clock)
        form = SubmissionForm(view.controller)
        _fill(form, make_draft(**draft_overrides))
        return view, form.submit()

    def test_hidden_fields_not_displayed(self, employee_identity, clock):
        _, confirmation = self._confirmation(employee_identity, clock)
        labels = {label for label, _ in confirmation.display_rows()}
        for key in HIDDEN_CONFIRMATION_KEYS:
            assert key[:1].upper() + key[1:] not in labels
        assert "StartDate" in labels
        assert "EmployeeId" in labels

    def test_on_call_rendered_as_yes_no(self, employee_identity, clock):
        _, confirmation = self._confirmation(employee_identity, clock, on_call_support="true")
        assert dict(confirmation.display_rows())["OnCallSupport"] == "Yes"

    def test_missing_values_rendered_as_na(self, employee_identity, clock):
        _, confirmation = self._confirmation(employee_identity, clock)
        rows = dict(confirmation.display_rows())
        assert rows["ExtraHours"] == "N/A"
        assert rows["OnCallSupport"] == "No"

    def test_back_to_form_keeps_draft(self, employee_identity, clock):
        view, confirmation = self._confirmation(employee_identity, clock, client_name="Hooli")
        entry = confirmation.back_to_form()
        assert isinstance(entry, ResumeDraft)
        form = SubmissionForm(view.controller, entry)
        assert form.draft.client_name == "Hooli"

    def test_confirm_adds_to_top_of_list(self, employee_identity, clock):
        view, confirmation = self._confirmation(employee_identity, clock)
        record = confirmation.confirm(view)
        assert view.store.records[0] == record
        assert view.counts().pending == 1
