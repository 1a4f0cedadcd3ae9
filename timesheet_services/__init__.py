"""
timesheet_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the pure engines: the gateway to the
    remote timesheet service, the per-viewer submission store, the
    lifecycle controller, the shared list view and the submission form
    flow.  This is the only layer that performs I/O or reads the clock.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_layer_boundary.py):
        timesheet_services/ -> timesheet_engines/  (allowed)
        timesheet_services/ -> timesheet_kernel/   (allowed)
        timesheet_engines/  -> timesheet_services/ (FORBIDDEN)
        timesheet_kernel/   -> timesheet_services/ (FORBIDDEN)

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from timesheet_services.gateway import (
    HttpTimesheetGateway,
    InMemoryTimesheetGateway,
    TimesheetGateway,
)
from timesheet_services.lifecycle import LifecycleController, RejectionIntent
from timesheet_services.list_view import ListViewState
from timesheet_services.submission_flow import (
    EditSaved,
    EditSubmission,
    NewSubmission,
    ResumeDraft,
    SubmissionConfirmation,
    SubmissionForm,
)
from timesheet_services.submission_store import SubmissionStore

__all__ = [
    "EditSaved",
    "EditSubmission",
    "HttpTimesheetGateway",
    "InMemoryTimesheetGateway",
    "LifecycleController",
    "ListViewState",
    "NewSubmission",
    "RejectionIntent",
    "ResumeDraft",
    "SubmissionConfirmation",
    "SubmissionForm",
    "SubmissionStore",
    "TimesheetGateway",
]
