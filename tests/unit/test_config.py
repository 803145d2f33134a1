"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

import stepwise.persistence as persistence
from stepwise.config import load_config
from stepwise.persistence import SQLiteStateStore, get_store


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("STEPWISE_DATABASE_URL", "DATABASE_URL", "STEPWISE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
database_url: sqlite:///tmp/runs.db
log_level: DEBUG
"""
    )
    monkeypatch.setenv("STEPWISE_CONFIG", str(config_path))

    config = load_config()
    assert config.database_url == "sqlite:///tmp/runs.db"
    assert config.log_level == "DEBUG"


def test_defaults_without_file(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.database_url is None
    assert config.log_level == "INFO"


def test_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite:///from/file.db\n")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///from/env.db")
    monkeypatch.setenv("STEPWISE_LOG_LEVEL", "warning")

    config = load_config(str(config_path))
    assert config.database_url == "sqlite:///from/env.db"
    assert config.log_level == "WARNING"


def test_invalid_log_level_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("STEPWISE_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        load_config(str(tmp_path / "absent.yaml"))


def test_get_store_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"database_url: sqlite://{tmp_path / 'cfg.db'}\n")
    monkeypatch.setenv("STEPWISE_CONFIG", str(config_path))
    monkeypatch.setattr(persistence, "_store_instance", None)

    store = get_store()
    assert isinstance(store, SQLiteStateStore)
    assert store.db_path == str(tmp_path / "cfg.db")
