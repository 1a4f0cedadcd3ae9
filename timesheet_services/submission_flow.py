"""
timesheet_services.submission_flow -- Submission form and confirmation.

Responsibility:
    The create/edit form and the confirmation step that follows a
    successful create.  State moves between them as explicit typed
    entry messages instead of ambient navigation payloads:

        NewSubmission()          -> blank form
        EditSubmission(record)   -> form prefilled from a PENDING record
        ResumeDraft(draft)       -> form restored from the confirmation's
                                    "Back to Form"
        SubmissionConfirmation   -> returned by a successful create

Architecture position:
    Services (view contracts).  May import from timesheet_kernel and
    sibling services.

Failure modes:
    - Validation, duplicate and remote failures are surfaced through
      ``SubmissionForm.error`` (the message shown under the form); the
      draft is left as typed so the user can fix it and resubmit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from timesheet_kernel.domain.timesheet import TimesheetDraft, TimesheetRecord
from timesheet_kernel.exceptions import (
    DraftValidationError,
    DuplicateSubmissionError,
    RemoteServiceError,
)
from timesheet_kernel.logging_config import get_logger
from timesheet_services.lifecycle import LifecycleController
from timesheet_services.list_view import ListViewState

logger = get_logger("services.submission_flow")


# =============================================================================
# Entry messages
# =============================================================================


@dataclass(frozen=True)
class NewSubmission:
    """Open an empty form."""


@dataclass(frozen=True)
class EditSubmission:
    """Open the form to edit an existing PENDING record."""

    record: TimesheetRecord


@dataclass(frozen=True)
class ResumeDraft:
    """Reopen the form with a draft the user already typed."""

    draft: TimesheetDraft


FormEntry = Union[NewSubmission, EditSubmission, ResumeDraft]


# =============================================================================
# Confirmation
# =============================================================================

# Keys the confirmation table never shows.
HIDDEN_CONFIRMATION_KEYS: frozenset[str] = frozenset({
    "id",
    "employeeName",
    "comments",
    "manager",
    "managerName",
    "status",
    "emailId",
})


def _display_value(key: str, value: Any) -> str:
    if key == "onCallSupport":
        return "Yes" if value is True else "No"
    if value is None:
        return "N/A"
    return str(value)


@dataclass(frozen=True)
class SubmissionConfirmation:
    """The created record, shown for review before returning to the list."""

    record: TimesheetRecord
    draft: TimesheetDraft

    def display_rows(self) -> list[tuple[str, str]]:
        """(Field, Value) pairs for the confirmation table."""
        return [
            (key[:1].upper() + key[1:], _display_value(key, value))
            for key, value in self.record.to_payload().items()
            if key not in HIDDEN_CONFIRMATION_KEYS
        ]

    def back_to_form(self) -> ResumeDraft:
        return ResumeDraft(self.draft)

    def confirm(self, view: ListViewState) -> TimesheetRecord:
        """"Submit and Return Home": show the record in the employee list."""
        view.record_submitted(self.record)
        return self.record


@dataclass(frozen=True)
class EditSaved:
    """Outcome of a successful edit."""

    record: TimesheetRecord


# =============================================================================
# Form
# =============================================================================


class SubmissionForm:
    """Create/edit form state.

    Every field change clears the current error so the next submit
    re-validates from scratch.
    """

    def __init__(
        self,
        controller: LifecycleController,
        entry: FormEntry | None = None,
    ) -> None:
        self._controller = controller
        self._editing: TimesheetRecord | None = None
        self.error: str | None = None
        self.submitting = False

        if isinstance(entry, EditSubmission):
            self._editing = entry.record
            self.draft = TimesheetDraft.from_record(entry.record)
        elif isinstance(entry, ResumeDraft):
            self.draft = entry.draft
        else:
            self.draft = TimesheetDraft()

    @property
    def is_editing(self) -> bool:
        return self._editing is not None

    @property
    def title(self) -> str:
        return "Edit Timesheet" if self.is_editing else "Submit Timesheet"

    @property
    def submit_label(self) -> str:
        return "Update Timesheet" if self.is_editing else "Submit Timesheet"

    def change(self, field: str, value: Any) -> None:
        self.draft = self.draft.with_field(field, value)
        self.error = None

    def submit(self) -> SubmissionConfirmation | EditSaved | None:
        """Send the draft; None means ``error`` now holds the message to show."""
        self.submitting = True
        try:
            if self._editing is not None:
                record = self._controller.edit(self._editing.id, self.draft)
                return EditSaved(record)
            record = self._controller.submit(self.draft)
            return SubmissionConfirmation(record=record, draft=self.draft)
        except (DraftValidationError, DuplicateSubmissionError, RemoteServiceError) as exc:
            self.error = exc.user_message
            logger.info("submission_form_rejected", extra={"error_code": exc.code})
            return None
        finally:
            self.submitting = False
