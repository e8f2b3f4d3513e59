"""Tests for configuration management."""

import json

import pytest
from pydantic import ValidationError

from famtrack.config import Config, ConfigManager, get_config_manager


@pytest.fixture
def manager():
    return ConfigManager()


def test_defaults(manager):
    config = manager.config

    assert config.database.max_retries == 3
    assert config.parental.request_expiry_hours == 24
    assert config.parental.default_daily_limit_minutes == 120
    assert config.parental.guardian_roles == ["Parent", "Guardian"]
    assert config.logging.level == "INFO"


def test_database_path_defaults_to_data_dir(manager, tmp_path):
    assert manager.database_path == tmp_path / "data" / "famtrack.db"

    manager.set("database.path", str(tmp_path / "elsewhere.db"))
    assert manager.database_path == tmp_path / "elsewhere.db"


def test_set_persists(manager):
    manager.set("parental.request_expiry_hours", 48)

    saved = json.loads(manager.config_file.read_text())
    assert saved["parental"]["request_expiry_hours"] == 48
    assert ConfigManager().get("parental.request_expiry_hours") == 48


def test_set_rejects_invalid_values(manager):
    with pytest.raises(ValidationError):
        manager.set("parental.request_expiry_hours", 0)

    assert manager.get("parental.request_expiry_hours") == 24


def test_get_unknown_key(manager):
    assert manager.get("parental.nope") is None
    assert manager.get("nope.deeper") is None


def test_reset_single_key_and_all(manager):
    manager.set("parental.recent_requests_count", 9)
    manager.set("logging.level", "DEBUG")

    manager.reset("parental.recent_requests_count")
    assert manager.get("parental.recent_requests_count") == 5
    assert manager.get("logging.level") == "DEBUG"

    manager.reset()
    assert manager.config == Config()


def test_corrupted_file_falls_back_to_defaults(manager):
    manager.config_file.write_text("{not json")
    assert ConfigManager().config == Config()


def test_profiles_use_separate_files(tmp_path):
    work = get_config_manager("work")
    work.set("logging.level", "DEBUG")

    assert work.config_file == tmp_path / "config" / "work.json"
    assert get_config_manager().get("logging.level") == "INFO"
    assert get_config_manager() is get_config_manager()
