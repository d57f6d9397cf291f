"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local overrides (gitignored)
  4. Environment variables       : ``CRS_PLANNER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The scoring, planning, optimizing and forecasting functions never read
configuration themselves.  The CLI (or any other host) loads an ``AppConfig``
once and passes the relevant sub-config values down explicitly.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class PolicyConfig(BaseModel):
    """Where the rule-set catalogue lives and which snapshot to pin."""

    model_config = ConfigDict(frozen=True)

    registry_path: str = "config/policies.toml"
    override_id: str = ""


class DataConfig(BaseModel):
    """Filesystem paths for injected reference data."""

    model_config = ConfigDict(frozen=True)

    signals_path: str = "config/signals.toml"
    draws_path: str = "config/draws/recent_draws.json"


class PlannerConfig(BaseModel):
    """Path planner parameters."""

    model_config = ConfigDict(frozen=True)

    top_n: int = 5
    average_cutoff: int = 516

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"top_n must be >= 1, got {v}.")
        return v


class OptimizerConfig(BaseModel):
    """Strategy optimizer parameters."""

    model_config = ConfigDict(frozen=True)

    path_lane_count: int = 2
    forecast_blend: float = 0.30

    @field_validator("forecast_blend")
    @classmethod
    def validate_blend(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"forecast_blend must be in [0.0, 1.0], got {v}.")
        return v


class ForecastConfig(BaseModel):
    """Cutoff forecast settings."""

    model_config = ConfigDict(frozen=True)

    window: int = 8
    base_confidence: float = 60.0
    score_floor: int = 250
    score_ceiling: int = 900
    streams: list[str] = ["general_program", "category_based"]

    @field_validator("window")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"window must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = ConfigDict(frozen=True)

    policy: PolicyConfig = PolicyConfig()
    data: DataConfig = DataConfig()
    planner: PlannerConfig = PlannerConfig()
    optimizer: OptimizerConfig = OptimizerConfig()
    forecast: ForecastConfig = ForecastConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Nearest ancestor of this module holding ``pyproject.toml``."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a config-relative path against the project root.

    Absolute paths are returned unchanged.
    """
    p = Path(path)
    if p.is_absolute():
        return p
    return _find_project_root() / p


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Build the ``AppConfig`` for this process.

    Args:
        config_path: Base TOML file; ``config/default.toml`` under the
            project root when omitted.  A ``local.toml`` next to it is
            merged on top.

    Raises:
        FileNotFoundError:        The base file is missing.
        pydantic.ValidationError: A merged value is out of range.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base`` (neither input is mutated)."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CRS_PLANNER_* env vars to the raw config dict.

    Supported overrides:
      CRS_PLANNER_POLICY_OVERRIDE  → raw["policy"]["override_id"]
      CRS_PLANNER_LOG_LEVEL        → raw["logging"]["level"]
      CRS_PLANNER_DEBUG            → raw["debug"]
    """
    if override_id := os.environ.get("CRS_PLANNER_POLICY_OVERRIDE"):
        raw.setdefault("policy", {})["override_id"] = override_id

    if log_level := os.environ.get("CRS_PLANNER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("CRS_PLANNER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Validate each TOML section into its sub-model."""
    return AppConfig(
        policy=PolicyConfig(**raw.get("policy", {})),
        data=DataConfig(**raw.get("data", {})),
        planner=PlannerConfig(**raw.get("planner", {})),
        optimizer=OptimizerConfig(**raw.get("optimizer", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", False),
    )
