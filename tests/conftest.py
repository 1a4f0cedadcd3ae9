"""
Pytest fixtures for the timesheet workflow test suite.

Provides:
- Structured logging for the whole session, with LogContext cleared
  between tests
- ``captured_logs`` for asserting on emitted JSON log records
- Viewer identities, a deterministic clock and an in-memory service
"""

import json
import logging
from io import StringIO

import pytest

from timesheet_kernel.domain.clock import DeterministicClock
from timesheet_kernel.domain.viewer import ViewerIdentity, ViewerScope
from timesheet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from timesheet_services.gateway import InMemoryTimesheetGateway

from tests.factories import EMPLOYEE_ID, MANAGER_ID


def pytest_configure(config):
    config.addinivalue_line("markers", "slow_locks: tests that coordinate threads")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture timesheet_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, controller):
            controller.approve("1")
            logs = captured_logs()
            assert any(r["message"] == "timesheet_approved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("timesheet_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


@pytest.fixture
def employee_identity() -> ViewerIdentity:
    return ViewerIdentity(
        scope=ViewerScope.EMPLOYEE,
        viewer_id=EMPLOYEE_ID,
        display_name="Alex",
        manager_id=MANAGER_ID,
    )


@pytest.fixture
def manager_identity() -> ViewerIdentity:
    return ViewerIdentity(
        scope=ViewerScope.MANAGER,
        viewer_id=MANAGER_ID,
        display_name="Morgan",
        manager_id=MANAGER_ID,
    )


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def gateway() -> InMemoryTimesheetGateway:
    return InMemoryTimesheetGateway()
