"""Unit tests for the config command group."""

from unittest.mock import patch

from typer.testing import CliRunner

from famtrack.commands.config import _parse_value, app
from famtrack.config import get_config_manager

runner = CliRunner()


class TestParseValue:
    def test_scalars(self):
        assert _parse_value("true") is True
        assert _parse_value("False") is False
        assert _parse_value("48") == 48
        assert _parse_value("1.5") == 1.5
        assert _parse_value("DEBUG") == "DEBUG"

    def test_lists(self):
        assert _parse_value("Parent, Guardian,") == ["Parent", "Guardian"]


class TestSetGet:
    def test_set_then_get(self):
        result = runner.invoke(app, ["set", "parental.request_expiry_hours", "48"])
        assert result.exit_code == 0
        assert get_config_manager().get("parental.request_expiry_hours") == 48

        result = runner.invoke(app, ["get", "parental.request_expiry_hours"])
        assert result.exit_code == 0
        assert "48" in result.stdout

    def test_set_resets_service_context(self):
        with patch("famtrack.commands.config.reset_service_context") as reset:
            runner.invoke(app, ["set", "logging.level", "DEBUG"])
        reset.assert_called_once()

    def test_single_value_for_list_setting(self):
        result = runner.invoke(app, ["set", "parental.guardian_roles", "Guardian"])

        assert result.exit_code == 0
        assert get_config_manager().get("parental.guardian_roles") == ["Guardian"]

    def test_invalid_value(self):
        result = runner.invoke(app, ["set", "parental.request_expiry_hours", "0"])

        assert result.exit_code == 1
        assert "Invalid value" in result.stdout
        assert get_config_manager().get("parental.request_expiry_hours") == 24

    def test_unknown_key(self):
        result = runner.invoke(app, ["get", "parental.nope"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_get_section(self):
        result = runner.invoke(app, ["get", "database"])

        assert result.exit_code == 0
        assert "max_retries" in result.stdout


class TestReset:
    def test_reset_key_with_yes(self):
        get_config_manager().set("parental.recent_requests_count", 9)

        result = runner.invoke(app, ["reset", "parental.recent_requests_count", "--yes"])

        assert result.exit_code == 0
        assert get_config_manager().get("parental.recent_requests_count") == 5

    def test_reset_declined(self):
        get_config_manager().set("parental.recent_requests_count", 9)

        result = runner.invoke(app, ["reset"], input="n\n")

        assert result.exit_code == 0
        assert get_config_manager().get("parental.recent_requests_count") == 9

    def test_reset_all_confirmed(self):
        get_config_manager().set("logging.level", "DEBUG")

        result = runner.invoke(app, ["reset"], input="y\n")

        assert result.exit_code == 0
        assert "reset to defaults" in result.stdout
        assert get_config_manager().get("logging.level") == "INFO"
