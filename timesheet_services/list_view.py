"""
timesheet_services.list_view -- Shared submission list state machine.

Responsibility:
    One list-view state for both viewers.  A ``ListViewConfig`` decides
    the variant (employee or manager): how the collection is ordered on
    load, how the page size is chosen, which columns render and which
    row actions exist.  The state owns the viewer's SubmissionStore and
    LifecycleController and derives the visible page on demand.

Architecture position:
    Services.  May import from timesheet_kernel, timesheet_engines and
    sibling services.

Invariants enforced:
    - Changing the status filter resets the page to 1 in the same call,
      so no page is ever derived with a stale page number.
    - The current page is clamped into range whenever the collection or
      the page size changes.  Row actions go through ``approve``,
      ``reject`` and ``delete`` here, not the controller directly, so a
      filtered page that empties is pulled back into range.
    - Terminal records and records with an action in flight offer no
      row actions.
    - Counts always come from the full collection, not the filtered one.

Failure modes:
    - ``refresh`` absorbs RemoteServiceError: the failure is logged and
      the previous (possibly empty) list stays displayed.
"""

from __future__ import annotations

from collections.abc import Iterable

from timesheet_engines.listing import (
    PageView,
    StatusCounts,
    build_page_view,
    filter_by_status,
    page_size_for_width,
    total_pages_for,
)
from timesheet_kernel.domain.clock import Clock
from timesheet_kernel.domain.timesheet import StatusFilter, TimesheetRecord
from timesheet_kernel.domain.viewer import (
    ListViewConfig,
    RecordAction,
    ViewerIdentity,
    ViewerScope,
)
from timesheet_kernel.exceptions import RemoteServiceError
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_services.gateway import TimesheetGateway
from timesheet_services.lifecycle import LifecycleController, RejectionIntent
from timesheet_services.submission_store import SubmissionStore

logger = get_logger("services.list_view")


def format_cell(record: TimesheetRecord, key: str) -> str:
    """Render one column value of a record for display."""
    value = getattr(record, key)
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


class ListViewState:
    """Filter, page and action state for one viewer's submission list."""

    def __init__(
        self,
        config: ListViewConfig,
        identity: ViewerIdentity,
        gateway: TimesheetGateway,
        *,
        clock: Clock | None = None,
        viewport_width: int | None = None,
    ) -> None:
        if config.scope is not identity.scope:
            raise ValueError(
                f"{config.scope.value} list view cannot be opened for a "
                f"{identity.scope.value} viewer"
            )
        self._config = config
        self._identity = identity
        self._gateway = gateway
        self._store = SubmissionStore()
        self._controller = LifecycleController(gateway, self._store, identity, clock)
        self._status_filter = StatusFilter.ALL
        self._page = 1
        self._viewport_width = viewport_width

    @property
    def config(self) -> ListViewConfig:
        return self._config

    @property
    def store(self) -> SubmissionStore:
        return self._store

    @property
    def controller(self) -> LifecycleController:
        return self._controller

    @property
    def status_filter(self) -> StatusFilter:
        return self._status_filter

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return page_size_for_width(self._config.page_size_policy, self._viewport_width)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, records: Iterable[TimesheetRecord]) -> None:
        """Replace the collection, applying this variant's ordering policy."""
        ordered = list(records)
        if self._config.reverse_on_load:
            ordered.reverse()
        self._store.load(ordered)
        self._clamp_page()

    def refresh(self) -> bool:
        """Fetch the viewer's list from the service.

        Returns False (and keeps the previous list) if the fetch failed.
        """
        with LogContext.bind(
            viewer_id=self._identity.viewer_id,
            viewer_scope=self._identity.scope.value,
        ):
            try:
                if self._identity.scope is ViewerScope.EMPLOYEE:
                    records = self._gateway.list_by_employee(self._identity.viewer_id)
                else:
                    records = self._gateway.list_by_manager(
                        self._identity.manager_id or self._identity.viewer_id
                    )
            except RemoteServiceError:
                logger.warning("submission_list_load_failed", exc_info=True)
                return False
            self.load(records)
            logger.info("submission_list_loaded", extra={"record_count": len(records)})
            return True

    def record_submitted(self, record: TimesheetRecord) -> None:
        """Show a freshly confirmed submission without a full reload."""
        if record.id in self._store:
            return
        if self._config.reverse_on_load:
            self._store.load((record, *self._store.records))
        else:
            self._store.add(record)

    # ------------------------------------------------------------------
    # Row actions
    # ------------------------------------------------------------------

    def approve(self, record_id: str) -> TimesheetRecord:
        """Approve through the controller, then keep the page in range."""
        record = self._controller.approve(record_id)
        self._clamp_page()
        return record

    def reject(self, intent: RejectionIntent) -> TimesheetRecord:
        """Commit a rejection dialog, then keep the page in range."""
        record = self._controller.commit_rejection(intent)
        self._clamp_page()
        return record

    def delete(self, record_id: str) -> None:
        self._controller.delete(record_id)
        self._clamp_page()

    # ------------------------------------------------------------------
    # Filter and paging
    # ------------------------------------------------------------------

    def set_filter(self, status_filter: StatusFilter | str) -> None:
        """Switch the status filter and return to page 1."""
        self._status_filter, self._page = StatusFilter(status_filter), 1
        logger.debug("submission_list_filtered", extra={"status_filter": self._status_filter})

    def go_to_page(self, page: int) -> None:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self._page = page

    def next_page(self) -> None:
        if self._page < self._total_pages():
            self._page += 1

    def previous_page(self) -> None:
        if self._page > 1:
            self._page -= 1

    def resize(self, viewport_width: int) -> None:
        """Apply a new viewport width; the page size may change with it."""
        self._viewport_width = viewport_width
        self._clamp_page()

    def _total_pages(self) -> int:
        filtered = filter_by_status(self._store.records, self._status_filter)
        return total_pages_for(len(filtered), self.page_size)

    def _clamp_page(self) -> None:
        self._page = max(1, min(self._page, self._total_pages()))

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def counts(self) -> StatusCounts:
        return self._store.counts()

    def current_view(self) -> PageView:
        return build_page_view(
            self._store.records,
            status_filter=self._status_filter,
            page=self._page,
            page_size=self.page_size,
        )

    def available_actions(self, record: TimesheetRecord) -> frozenset[RecordAction]:
        """Row actions to render; empty for terminal or busy records."""
        if record.is_terminal or self._controller.is_in_flight(record.id):
            return frozenset()
        return self._config.actions

    def rows(self) -> list[tuple[str, ...]]:
        """Cell text for the visible page, in column order."""
        return [
            tuple(format_cell(record, column.key) for column in self._config.columns)
            for record in self.current_view().page_records
        ]
