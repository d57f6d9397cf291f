"""
Tests for layered configuration loading.

Covers:
  - Committed defaults load and validate
  - Explicit TOML file, sibling local.toml merge
  - CRS_PLANNER_* environment overrides
  - Validation failures and a missing file
  - deep_merge / resolve_project_path helpers
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from crs_planner.config import AppConfig, deep_merge, load_config, resolve_project_path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CRS_PLANNER_POLICY_OVERRIDE", "CRS_PLANNER_LOG_LEVEL", "CRS_PLANNER_DEBUG"):
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_committed_defaults(self):
        config = load_config()
        assert config.policy.registry_path == "config/policies.toml"
        assert config.planner.average_cutoff == 516
        assert config.optimizer.forecast_blend == pytest.approx(0.30)
        assert config.forecast.streams == ["general_program", "category_based"]
        assert config.logging.level == "INFO"

    def test_explicit_file(self, tmp_path):
        path = _write(tmp_path / "app.toml", "[planner]\ntop_n = 3\n[logging]\nlevel = \"debug\"\n")
        config = load_config(path)
        assert config.planner.top_n == 3
        assert config.planner.average_cutoff == 516
        assert config.logging.level == "DEBUG"

    def test_local_overrides_merge(self, tmp_path):
        path = _write(tmp_path / "app.toml", "[forecast]\nwindow = 6\nbase_confidence = 55\n")
        _write(tmp_path / "local.toml", "[forecast]\nwindow = 4\n")
        config = load_config(path)
        assert config.forecast.window == 4
        assert config.forecast.base_confidence == 55

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "app.toml", "")
        monkeypatch.setenv("CRS_PLANNER_POLICY_OVERRIDE", "ircc-2024-01-01-v1")
        monkeypatch.setenv("CRS_PLANNER_LOG_LEVEL", "warning")
        monkeypatch.setenv("CRS_PLANNER_DEBUG", "yes")
        config = load_config(path)
        assert config.policy.override_id == "ircc-2024-01-01-v1"
        assert config.logging.level == "WARNING"
        assert config.debug is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "nope.toml")

    @pytest.mark.parametrize("body", [
        "[logging]\nlevel = \"LOUD\"\n",
        "[planner]\ntop_n = 0\n",
        "[optimizer]\nforecast_blend = 1.5\n",
        "[forecast]\nwindow = 0\n",
    ])
    def test_invalid_values(self, tmp_path, body):
        path = _write(tmp_path / "app.toml", body)
        with pytest.raises(ValidationError):
            load_config(path)


class TestHelpers:
    def test_deep_merge_does_not_mutate(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        merged = deep_merge(base, {"a": {"y": 3}, "c": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
        assert base["a"]["y"] == 2

    def test_relative_path_resolves_to_root(self):
        resolved = resolve_project_path("config/policies.toml")
        assert resolved.is_absolute()
        assert resolved.exists()

    def test_absolute_path_unchanged(self, tmp_path):
        assert resolve_project_path(tmp_path) == tmp_path

    def test_config_is_frozen(self):
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.debug = True
