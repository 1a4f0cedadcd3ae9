"""
Application configuration schema.

Frozen dataclasses the loader parses ``defaults.yaml`` (or an override
file) into.  Viewer identities and page size policies reuse the kernel's
own value objects so nothing has to be translated at the service seam.
"""

from __future__ import annotations

from dataclasses import dataclass

from timesheet_kernel.domain.viewer import PageSizePolicy, ViewerIdentity

# ---------------------------------------------------------------------------
# Remote service
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServiceConfig:
    """Where the timesheet service lives and how to talk to it."""

    base_url: str
    api_prefix: str = "/api/timesheets"
    timeout_seconds: float = 10.0
    duplicate_status_codes: tuple[int, ...] = (409,)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewPolicies:
    """Page size policy for each list view."""

    employee: PageSizePolicy
    manager: PageSizePolicy


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimesheetAppConfig:
    """Everything a front end needs to wire the services."""

    service: ServiceConfig
    employee: ViewerIdentity
    manager: ViewerIdentity
    views: ViewPolicies
    log_level: str = "INFO"
    source: str = ""
