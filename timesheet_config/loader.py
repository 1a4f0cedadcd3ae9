"""
Configuration Loader (``timesheet_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``timesheet_config.schema`` dataclasses.  Runtime callers go through
``timesheet_config.get_active_config()`` instead of calling this module.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends only on the kernel
domain value objects it builds.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong value types or non-positive sizes  -> ``ValueError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from timesheet_config.schema import ServiceConfig, TimesheetAppConfig, ViewPolicies
from timesheet_kernel.domain.viewer import PageSizePolicy, ViewerIdentity, ViewerScope


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return value


def parse_service(data: dict[str, Any]) -> ServiceConfig:
    """Parse the ``service`` section.  ``base_url`` is required."""
    base_url = data["base_url"]
    if not isinstance(base_url, str) or not base_url.strip():
        raise ValueError(f"service.base_url must be a non-empty string, got {base_url!r}")
    timeout = data.get("timeout_seconds", 10.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"service.timeout_seconds must be positive, got {timeout!r}")
    codes = data.get("duplicate_status_codes", [409])
    if not isinstance(codes, list):
        raise ValueError("service.duplicate_status_codes must be a list")
    return ServiceConfig(
        base_url=base_url.strip(),
        api_prefix=str(data.get("api_prefix", "/api/timesheets")),
        timeout_seconds=float(timeout),
        duplicate_status_codes=tuple(
            _positive_int(c, "service.duplicate_status_codes[]") for c in codes
        ),
    )


def parse_employee(data: dict[str, Any]) -> ViewerIdentity:
    """Parse ``viewers.employee``; ``employee_id`` and ``manager_id`` are required."""
    return ViewerIdentity(
        scope=ViewerScope.EMPLOYEE,
        viewer_id=str(data["employee_id"]),
        display_name=str(data.get("employee_name", "")),
        manager_id=str(data["manager_id"]),
    )


def parse_manager(data: dict[str, Any]) -> ViewerIdentity:
    """Parse ``viewers.manager``; the manager is keyed by ``manager_id``."""
    manager_id = str(data["manager_id"])
    return ViewerIdentity(
        scope=ViewerScope.MANAGER,
        viewer_id=manager_id,
        display_name=str(data.get("manager_name", "")),
        manager_id=manager_id,
    )


def parse_page_size_policy(data: dict[str, Any], key: str) -> PageSizePolicy:
    """
    Parse a page size policy: either ``fixed`` or ``breakpoints`` + ``default``.

    Raises:
        ValueError: if both forms are given or a size is not a positive integer.
    """
    if "fixed" in data:
        if "breakpoints" in data:
            raise ValueError(f"{key}: 'fixed' and 'breakpoints' are mutually exclusive")
        return PageSizePolicy(fixed=_positive_int(data["fixed"], f"{key}.fixed"))
    breakpoints = tuple(
        (
            _positive_int(bp["max_width"], f"{key}.breakpoints[].max_width"),
            _positive_int(bp["page_size"], f"{key}.breakpoints[].page_size"),
        )
        for bp in data.get("breakpoints", [])
    )
    return PageSizePolicy(
        breakpoints=breakpoints,
        default=_positive_int(data.get("default", 5), f"{key}.default"),
    )


def parse_config(data: dict[str, Any], source: str = "") -> TimesheetAppConfig:
    """Parse a whole configuration document."""
    viewers = data["viewers"]
    views = data.get("views", {})
    log_level = str(data.get("log_level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"log_level {log_level!r} is not a logging level")
    return TimesheetAppConfig(
        service=parse_service(data["service"]),
        employee=parse_employee(viewers["employee"]),
        manager=parse_manager(viewers["manager"]),
        views=ViewPolicies(
            employee=parse_page_size_policy(views.get("employee", {"fixed": 5}), "views.employee"),
            manager=parse_page_size_policy(views.get("manager", {}), "views.manager"),
        ),
        log_level=log_level,
        source=source,
    )
