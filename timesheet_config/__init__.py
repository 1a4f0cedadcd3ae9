"""
timesheet_config -- single public entrypoint for application configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``timesheet_kernel`` and beside
    ``timesheet_services``.  The kernel and engines MUST NEVER import
    from ``timesheet_config``; front ends read the config and hand plain
    values (identities, page size policies, URLs) to the services.

Lookup order:
    1. the ``path`` argument,
    2. the ``TIMESHEET_CONFIG_PATH`` environment variable,
    3. the packaged ``defaults.yaml``.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` / ``ValueError`` -- schema violations.

Every successful call emits a ``TIMESHEET_CONFIG_TRACE`` log entry naming
the source file, the service URL and both viewer ids.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from timesheet_config.loader import load_yaml_file, parse_config
from timesheet_config.schema import ServiceConfig, TimesheetAppConfig, ViewPolicies

_logger = logging.getLogger("timesheet_kernel.config")

CONFIG_PATH_ENV = "TIMESHEET_CONFIG_PATH"
DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Pick the configuration file according to the lookup order."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def get_active_config(path: Path | str | None = None) -> TimesheetAppConfig:
    """The ONLY public configuration entrypoint.

    Does not cache: callers hold the returned config for the lifetime of
    their session.

    Args:
        path: Explicit configuration file; overrides the environment.

    Returns:
        Frozen ``TimesheetAppConfig``.

    Raises:
        FileNotFoundError: If the configuration file is missing.
        KeyError: If a required key is missing.
        ValueError: If a value fails validation.
    """
    config_file = resolve_config_path(path)
    config = parse_config(load_yaml_file(config_file), source=str(config_file))

    _logger.info(
        "TIMESHEET_CONFIG_TRACE",
        extra={
            "trace_type": "TIMESHEET_CONFIG_TRACE",
            "config_source": config.source,
            "service_base_url": config.service.base_url,
            "employee_id": config.employee.viewer_id,
            "manager_id": config.manager.viewer_id,
            "log_level": config.log_level,
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_FILE",
    "ServiceConfig",
    "TimesheetAppConfig",
    "ViewPolicies",
    "get_active_config",
    "resolve_config_path",
]
