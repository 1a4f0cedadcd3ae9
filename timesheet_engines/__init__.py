"""
Module: timesheet_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    engine sub-modules.  This is the canonical import surface for
    ``timesheet_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import timesheet_kernel (domain types, logging).
    MUST NOT import timesheet_services or timesheet_config.

Invariants enforced:
    - Purity: engines never read the clock or touch the network.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from timesheet_engines import validate_draft, build_page_view, count_by_status
"""

from timesheet_engines.listing import (
    PageView,
    StatusCounts,
    build_page_view,
    count_by_status,
    filter_by_status,
    page_size_for_width,
    paginate,
    total_pages_for,
)
from timesheet_engines.validation import (
    DATE_ORDER_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    REQUIRED_FIELDS,
    DraftValidation,
    validate_draft,
)

__all__ = [
    "DATE_ORDER_MESSAGE",
    "GENERIC_ERROR_MESSAGE",
    "REQUIRED_FIELDS",
    "DraftValidation",
    "PageView",
    "StatusCounts",
    "build_page_view",
    "count_by_status",
    "filter_by_status",
    "page_size_for_width",
    "paginate",
    "total_pages_for",
    "validate_draft",
]
