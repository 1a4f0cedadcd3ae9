"""
Tests for timesheet_config: YAML loading, schema parsing and the
get_active_config() lookup order.
"""

import textwrap

import pytest
import yaml

from timesheet_config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_FILE,
    get_active_config,
    resolve_config_path,
)
from timesheet_config.loader import load_yaml_file, parse_page_size_policy, parse_service
from timesheet_engines.listing import page_size_for_width
from timesheet_kernel.domain.viewer import ViewerScope

MINIMAL = textwrap.dedent(
    """
    service:
      base_url: https://timesheets.example.com
    viewers:
      employee: {employee_id: 7, manager_id: 70}
      manager: {manager_id: 70}
    """
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "timesheets.yaml"
    path.write_text(MINIMAL)
    return path


class TestPackagedDefaults:

    def test_defaults_load(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        config = get_active_config()
        assert config.source == str(DEFAULT_CONFIG_FILE)
        assert config.service.duplicate_status_codes == (409,)
        assert config.employee.scope is ViewerScope.EMPLOYEE
        assert config.manager.viewer_id == config.employee.manager_id

    def test_default_view_policies(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        views = get_active_config().views
        assert page_size_for_width(views.employee, 300) == 5
        assert page_size_for_width(views.manager, 500) == 2
        assert page_size_for_width(views.manager, 700) == 3
        assert page_size_for_width(views.manager, 1200) == 5


class TestLookupOrder:

    def test_explicit_path_wins(self, config_file, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "ignored.yaml"))
        assert resolve_config_path(config_file) == config_file

    def test_environment_variable(self, config_file, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))
        assert get_active_config().service.base_url == "https://timesheets.example.com"

    def test_fallback_to_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        assert resolve_config_path() == DEFAULT_CONFIG_FILE

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestParsing:

    def test_minimal_file_gets_defaults(self, config_file):
        config = get_active_config(config_file)
        assert config.employee.viewer_id == "7"
        assert config.employee.manager_id == "70"
        assert config.manager.manager_id == "70"
        assert config.service.timeout_seconds == 10.0
        assert config.views.employee.fixed == 5
        assert config.log_level == "INFO"

    def test_trace_emitted(self, config_file, captured_logs):
        get_active_config(config_file)
        traces = [r for r in captured_logs() if r["message"] == "TIMESHEET_CONFIG_TRACE"]
        assert traces[0]["config_source"] == str(config_file)
        assert traces[0]["manager_id"] == "70"

    def test_missing_viewers(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("service: {base_url: http://x}\n")
        with pytest.raises(KeyError):
            get_active_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("service: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)

    def test_unknown_log_level(self, tmp_path):
        path = tmp_path / "level.yaml"
        path.write_text(MINIMAL + "log_level: chatty\n")
        with pytest.raises(ValueError, match="log_level"):
            get_active_config(path)

    @pytest.mark.parametrize(
        "service",
        [
            {"base_url": ""},
            {"base_url": "http://x", "timeout_seconds": 0},
            {"base_url": "http://x", "duplicate_status_codes": 409},
            {"base_url": "http://x", "duplicate_status_codes": [True]},
        ],
    )
    def test_bad_service_section(self, service):
        with pytest.raises(ValueError):
            parse_service(service)

    def test_responsive_policy(self):
        policy = parse_page_size_policy(
            {"breakpoints": [{"max_width": 600, "page_size": 4}], "default": 9}, "views.x"
        )
        assert policy.breakpoints == ((600, 4),)
        assert policy.default == 9

    def test_fixed_and_breakpoints_are_exclusive(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            parse_page_size_policy({"fixed": 5, "breakpoints": []}, "views.x")

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError, match="positive"):
            parse_page_size_policy({"fixed": 0}, "views.x")
