"""Tests for settings loading."""

import logging
from pathlib import Path

import yaml

from symbio.config import CredibilityWeights, load_settings


def _write(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults_without_file(tmp_path, monkeypatch):
    for var in ("SYMBIO_CONFIG", "SYMBIO_DATA_DIR", "SYMBIO_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)

    settings = load_settings(tmp_path / "missing.yaml")

    assert settings.log_level == "INFO"
    assert settings.credibility == CredibilityWeights()


def test_yaml_file(tmp_path, monkeypatch):
    monkeypatch.delenv("SYMBIO_DATA_DIR", raising=False)
    monkeypatch.delenv("SYMBIO_LOG_LEVEL", raising=False)
    config = _write(tmp_path / "symbio.yaml", {
        "data_dir": str(tmp_path / "store"),
        "log_level": "debug",
        "credibility": {"rating": 0.6, "completed_projects": 0.2, "completed_target": 5},
    })

    settings = load_settings(config)

    assert settings.data_dir == tmp_path / "store"
    assert settings.log_level == "DEBUG"
    assert settings.credibility.rating == 0.6
    assert settings.credibility.completed_target == 5
    assert settings.credibility.on_time_milestones == 0.2


def test_env_overrides_file(tmp_path, monkeypatch):
    config = _write(tmp_path / "custom.yaml", {"data_dir": "/from/file", "log_level": "INFO"})
    monkeypatch.setenv("SYMBIO_CONFIG", str(config))
    monkeypatch.setenv("SYMBIO_DATA_DIR", str(tmp_path / "env"))
    monkeypatch.setenv("SYMBIO_LOG_LEVEL", "warning")

    settings = load_settings()

    assert settings.data_dir == Path(tmp_path / "env")
    assert settings.log_level == "WARNING"


def test_unknown_weight_is_ignored(tmp_path, monkeypatch, caplog):
    monkeypatch.delenv("SYMBIO_DATA_DIR", raising=False)
    monkeypatch.delenv("SYMBIO_LOG_LEVEL", raising=False)
    config = _write(tmp_path / "symbio.yaml", {"credibility": {"rating": 0.4, "vibes": 1.0}})

    with caplog.at_level(logging.WARNING, logger="symbio.config"):
        settings = load_settings(config)

    assert settings.credibility.rating == 0.4
    assert "vibes" in caplog.text


def test_empty_file(tmp_path, monkeypatch):
    monkeypatch.delenv("SYMBIO_LOG_LEVEL", raising=False)
    config = tmp_path / "symbio.yaml"
    config.write_text("")

    assert load_settings(config).log_level == "INFO"


def test_default_data_dir_follows_working_directory(tmp_path, monkeypatch):
    monkeypatch.delenv("SYMBIO_CONFIG", raising=False)
    monkeypatch.delenv("SYMBIO_DATA_DIR", raising=False)
    monkeypatch.chdir(tmp_path)

    assert load_settings().data_dir.resolve() == (tmp_path / "data").resolve()
