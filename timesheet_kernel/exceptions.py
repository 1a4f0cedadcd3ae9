"""
Typed Exception Hierarchy for the Timesheet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The list views and the submission form react differently to each failure:
a validation problem is shown inline under the form, a duplicate submission
gets its own message, and a remote failure is logged and reported
generically.  Callers must be able to tell these apart by type, never by
parsing message text.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        controller.submit(draft)
    except Exception as e:
        if "already been submitted" in str(e):  # FRAGILE
            show_duplicate_banner()

Example - RIGHT way (what this module enables):
    try:
        controller.submit(draft)
    except DuplicateSubmissionError as e:
        form.error = e.user_message
    except DraftValidationError as e:
        form.error = e.user_message

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TimesheetKernelError:

    TimesheetKernelError (base)
    |
    +-- ValidationError
    |   +-- DraftValidationError
    |   +-- RejectionCommentRequiredError
    |
    +-- SubmissionError
    |   +-- DuplicateSubmissionError
    |
    +-- RemoteServiceError
    |
    +-- LifecycleError
        +-- RecordNotFoundError
        +-- InvalidTransitionError
        +-- RecordImmutableError
        +-- ActionInFlightError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | DRAFT_VALIDATION_FAILED     | Draft fails required/number/date checks
                | REJECTION_COMMENT_REQUIRED  | Reject committed with a blank comment
----------------|-----------------------------|-----------------------------------------
Submission      | DUPLICATE_SUBMISSION        | Service reports an existing timesheet
                |                             | for the same employee and dates
----------------|-----------------------------|-----------------------------------------
Remote          | REMOTE_SERVICE_ERROR        | Transport or server failure
----------------|-----------------------------|-----------------------------------------
Lifecycle       | RECORD_NOT_FOUND            | Record id not in the viewer's store
                | INVALID_TRANSITION          | Status change not in the state machine
                | RECORD_IMMUTABLE            | Mutating an APPROVED/REJECTED record
                | ACTION_IN_FLIGHT            | Second action on a record whose
                |                             | approve/reject is still in flight

===============================================================================
HANDLING PATTERNS
===============================================================================

1. NO STATE CHANGE ON FAILURE:
   Every exception below is raised before the store is touched.  The
   triggering action is over; the user re-triggers it.

2. USE STRUCTURED DATA (not message parsing):

    except RemoteServiceError as e:
        logger.error("approve_failed", extra={"operation": e.operation,
                                              "status_code": e.status_code})

===============================================================================
"""


class TimesheetKernelError(Exception):
    """
    Base exception for all timesheet kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMESHEET_KERNEL_ERROR"


# Validation exceptions


class ValidationError(TimesheetKernelError):
    """Base exception for locally detected input problems."""

    code: str = "VALIDATION_ERROR"


class DraftValidationError(ValidationError):
    """
    Draft failed validation before submission or update.

    ``user_message`` is the single aggregate message shown under the form;
    ``problems`` names the offending fields for logs only.
    """

    code: str = "DRAFT_VALIDATION_FAILED"

    def __init__(self, user_message: str, problems: tuple[str, ...] = ()):
        self.user_message = user_message
        self.problems = problems
        super().__init__(user_message)


class RejectionCommentRequiredError(ValidationError):
    """Rejection was committed without a comment."""

    code: str = "REJECTION_COMMENT_REQUIRED"

    def __init__(self, record_id: str):
        self.record_id = record_id
        self.user_message = "Please enter a comment explaining the rejection."
        super().__init__(f"Rejection of timesheet {record_id} requires a comment")


# Submission exceptions


class SubmissionError(TimesheetKernelError):
    """Base exception for remote-reported submission problems."""

    code: str = "SUBMISSION_ERROR"


DUPLICATE_SUBMISSION_MESSAGE = (
    "A timesheet for the selected dates has already been submitted. "
    "Please check and try again."
)


class DuplicateSubmissionError(SubmissionError):
    """The service already holds a timesheet for this employee and dates."""

    code: str = "DUPLICATE_SUBMISSION"

    def __init__(
        self,
        employee_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ):
        self.employee_id = employee_id
        self.start_date = start_date
        self.end_date = end_date
        self.user_message = DUPLICATE_SUBMISSION_MESSAGE
        super().__init__(DUPLICATE_SUBMISSION_MESSAGE)


# Remote exceptions


class RemoteServiceError(TimesheetKernelError):
    """
    Transport or server failure talking to the timesheet service.

    Local state is never partially applied when this is raised.
    """

    code: str = "REMOTE_SERVICE_ERROR"

    def __init__(
        self,
        operation: str,
        reason: str,
        status_code: int | None = None,
    ):
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        self.user_message = "Something went wrong. Please try again."
        detail = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Timesheet service {operation} failed{detail}: {reason}")


# Lifecycle exceptions


class LifecycleError(TimesheetKernelError):
    """Base exception for record lifecycle violations."""

    code: str = "LIFECYCLE_ERROR"


class RecordNotFoundError(LifecycleError):
    """Record with given ID is not in the viewer's collection."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Timesheet not found: {record_id}")


class InvalidTransitionError(LifecycleError):
    """Requested status change is not an edge of the state machine."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, record_id: str, from_status: str, to_status: str):
        self.record_id = record_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for timesheet {record_id}: "
            f"{from_status} -> {to_status}"
        )


class RecordImmutableError(LifecycleError):
    """
    Attempted to mutate a record in a terminal status.

    APPROVED and REJECTED timesheets are never edited, deleted, approved
    or rejected again.
    """

    code: str = "RECORD_IMMUTABLE"

    def __init__(self, record_id: str, status: str, action: str):
        self.record_id = record_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} timesheet {record_id}: status is {status}"
        )


class ActionInFlightError(LifecycleError):
    """An approve/reject for this record has not completed yet."""

    code: str = "ACTION_IN_FLIGHT"

    def __init__(self, record_id: str, action: str):
        self.record_id = record_id
        self.action = action
        super().__init__(
            f"Cannot {action} timesheet {record_id}: another action is in flight"
        )
