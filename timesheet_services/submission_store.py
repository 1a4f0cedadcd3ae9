"""
timesheet_services.submission_store -- Authoritative in-memory list.

Responsibility:
    Holds the timesheet collection for one viewer session and is its only
    writer.  Counts are derived from the current records on every call.

Architecture position:
    Services.  No I/O; the lifecycle controller and list view call the
    mutators only after the remote service has confirmed a change.

Invariants enforced:
    - Single writer: callers get tuples, never the internal list.
    - ``counts()`` is a fold over current records, never a cached value.
    - ``load`` replaces the collection wholesale, in the order given;
      display ordering (e.g. most-recent-first) is the caller's policy.

Failure modes:
    - RecordNotFoundError from ``remove``/``replace``/``get`` on an
      unknown id.
"""

from __future__ import annotations

from collections.abc import Iterable

from timesheet_engines.listing import StatusCounts, count_by_status
from timesheet_kernel.domain.timesheet import TimesheetRecord
from timesheet_kernel.exceptions import RecordNotFoundError
from timesheet_kernel.logging_config import get_logger

logger = get_logger("services.submission_store")


class SubmissionStore:
    """In-memory timesheet collection for the current viewer."""

    def __init__(self, records: Iterable[TimesheetRecord] = ()) -> None:
        self._records: list[TimesheetRecord] = list(records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return any(r.id == record_id for r in self._records)

    @property
    def records(self) -> tuple[TimesheetRecord, ...]:
        return tuple(self._records)

    def _index_of(self, record_id: str) -> int:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        raise RecordNotFoundError(record_id)

    def get(self, record_id: str) -> TimesheetRecord:
        return self._records[self._index_of(record_id)]

    def load(self, records: Iterable[TimesheetRecord]) -> None:
        """Replace the whole collection."""
        self._records = list(records)
        logger.debug("submission_store_loaded", extra={"record_count": len(self._records)})

    def add(self, record: TimesheetRecord) -> None:
        """Append a newly created record."""
        self._records.append(record)

    def remove(self, record_id: str) -> TimesheetRecord:
        """Drop a record after the service confirmed its deletion."""
        return self._records.pop(self._index_of(record_id))

    def replace(self, record_id: str, record: TimesheetRecord) -> None:
        """Swap in the updated version of a record, keeping its position."""
        self._records[self._index_of(record_id)] = record

    def counts(self) -> StatusCounts:
        return count_by_status(self._records)
