"""
crs-planner CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load inputs (profile JSON, policy registry, reference data).
  4. Run the engine.
  5. Print an ASCII report, or the raw model as JSON with ``--json``.

Install and run::

    pip install -e .
    crs-planner --help
    crs-planner validate-config
    crs-planner list-policies --as-of 2024-06-01
    crs-planner score profile.json
    crs-planner plan profile.json --target 520
    crs-planner optimize profile.json --constraints constraints.json
    crs-planner action-plan profile.json --cutoff 520
    crs-planner forecast profile.json --with-strategy

Profile files hold either snake_case ``Profile`` fields or the flat wizard
record (``celpip_listening``, ``hasPNP`` ...).
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="crs-planner",
    help="Express Entry CRS score calculator, path planner and draw forecaster.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from crs_planner.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from crs_planner.utils.logging import configure_logging
    configure_logging(config.logging)


def _parse_date_or_exit(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid date format: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_json_or_exit(path: str, what: str) -> Any:
    file_path = Path(path)
    if not file_path.exists():
        typer.echo(f"[ERROR] {what} file not found: {file_path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] {what} file is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_profile_or_exit(path: str):
    from crs_planner.models.profile import Profile

    raw = _load_json_or_exit(path, "Profile")
    if not isinstance(raw, dict):
        typer.echo("[ERROR] Profile file must contain a JSON object.", err=True)
        raise typer.Exit(code=1)
    return Profile.from_mapping(raw)


def _resolve_policy_or_exit(config, as_of: Optional[str], policy_id: Optional[str]):
    """Resolve the active snapshot; ``--policy`` beats the config override."""
    from crs_planner.policy.registry import load_policy_registry, resolve_policy

    try:
        registry = load_policy_registry(config.policy.registry_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Policy registry failed validation: {exc}", err=True)
        raise typer.Exit(code=1)

    override = policy_id or config.policy.override_id or None
    return registry, resolve_policy(_parse_date_or_exit(as_of), override, registry=registry)


def _load_signals_or_exit(config):
    from crs_planner.signals.loader import load_signal_catalog

    try:
        return load_signal_catalog(config.data.signals_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Signals file failed validation: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_draws_or_exit(config, draws_path: Optional[str]):
    from crs_planner.forecast.loader import load_draw_history

    try:
        return load_draw_history(draws_path or config.data.draws_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Draw history failed validation: {exc}", err=True)
        raise typer.Exit(code=1)


def _run_forecast(config, history, current_score: int, as_of: Optional[date] = None):
    from crs_planner.forecast.engine import forecast

    fc_cfg = config.forecast
    return forecast(
        history,
        current_score,
        fc_cfg.base_confidence,
        as_of=as_of,
        window=fc_cfg.window,
        score_floor=fc_cfg.score_floor,
        score_ceiling=fc_cfg.score_ceiling,
        streams=tuple(fc_cfg.streams),
    )


def _echo_json(model) -> None:
    typer.echo(model.model_dump_json(indent=2))


# Shared options
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")
_AS_OF_OPTION = typer.Option(
    None, "--as-of", help="Resolve the policy in effect on this date (ISO, default today).",
)
_POLICY_OPTION = typer.Option(None, "--policy", help="Pin a policy id (overrides --as-of).")
_JSON_OPTION = typer.Option(False, "--json", help="Print the raw result as JSON.")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration and every data file it points at.

    Exits with code 1 if anything fails validation.
    """
    config = _load_config_or_exit(config_path)
    registry, resolved = _resolve_policy_or_exit(config, None, None)
    catalog = _load_signals_or_exit(config)
    history = _load_draws_or_exit(config, None)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Policy registry:  {config.policy.registry_path} ({len(registry.snapshots)} snapshots)")
    typer.echo(f"  Active policy:    {resolved.id} ({resolved.source})")
    typer.echo(f"  Signals:          {len(catalog.categories)} categories, {len(catalog.provinces)} provinces")
    typer.echo(f"  Draw history:     {len(history)} draws (updated {history.last_updated})")
    typer.echo(f"  Planner top N:    {config.planner.top_n}")
    typer.echo(f"  Forecast window:  {config.forecast.window}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("list-policies")
def list_policies(
    as_of: Optional[str] = _AS_OF_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List CRS rule-set snapshots and mark the active one."""
    from crs_planner.reporting.formatters import format_policy_list

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    registry, resolved = _resolve_policy_or_exit(config, as_of, None)
    typer.echo(format_policy_list(registry.snapshots, registry.meta(), resolved.id))


@app.command("score")
def score_cmd(
    profile_path: str = typer.Argument(..., help="Profile JSON file."),
    as_of: Optional[str] = _AS_OF_OPTION,
    policy_id: Optional[str] = _POLICY_OPTION,
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Compute the CRS score for one profile."""
    from crs_planner.reporting.formatters import format_score
    from crs_planner.scoring.engine import score

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    profile = _load_profile_or_exit(profile_path)
    _, resolved = _resolve_policy_or_exit(config, as_of, policy_id)

    result = score(profile, resolved)
    if as_json:
        _echo_json(result)
    else:
        typer.echo(format_score(result))


@app.command("plan")
def plan_cmd(
    profile_path: str = typer.Argument(..., help="Profile JSON file."),
    target: Optional[int] = typer.Option(
        None, "--target", help="Target score (default: derived from the average cutoff).",
    ),
    as_of: Optional[str] = _AS_OF_OPTION,
    policy_id: Optional[str] = _POLICY_OPTION,
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Rank improvement paths for one profile."""
    from crs_planner.planning.planner import build_plans
    from crs_planner.reporting.formatters import format_plans
    from crs_planner.scoring.engine import score

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    profile = _load_profile_or_exit(profile_path)
    _, resolved = _resolve_policy_or_exit(config, as_of, policy_id)

    result = score(profile, resolved)
    plan_set = build_plans(profile, result, resolved, target, planner_config=config.planner)
    if as_json:
        _echo_json(plan_set)
    else:
        typer.echo(format_plans(plan_set))


@app.command("optimize")
def optimize_cmd(
    profile_path: str = typer.Argument(..., help="Profile JSON file."),
    cutoff: Optional[int] = typer.Option(
        None, "--cutoff", help="Reference cutoff (default: the planner's average cutoff).",
    ),
    constraints_path: Optional[str] = typer.Option(
        None, "--constraints", help="JSON file with budget / hours / exam / relocation limits.",
    ),
    use_forecast: bool = typer.Option(
        True, "--forecast/--no-forecast", help="Blend draw-forecast confidence into the report.",
    ),
    as_of: Optional[str] = _AS_OF_OPTION,
    policy_id: Optional[str] = _POLICY_OPTION,
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Rank plans, category draws and provincial lanes under constraints."""
    from crs_planner.reporting.formatters import format_strategy
    from crs_planner.scoring.engine import score
    from crs_planner.signals.categories import evaluate_categories
    from crs_planner.signals.provinces import match_provinces
    from crs_planner.strategy.optimizer import optimize_strategy

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    profile = _load_profile_or_exit(profile_path)
    _, resolved = _resolve_policy_or_exit(config, as_of, policy_id)
    catalog = _load_signals_or_exit(config)
    constraints = _load_json_or_exit(constraints_path, "Constraints") if constraints_path else None

    result = score(profile, resolved)
    fc = (
        _run_forecast(config, _load_draws_or_exit(config, None), result.total, _parse_date_or_exit(as_of))
        if use_forecast else None
    )

    report = optimize_strategy(
        profile,
        result,
        cutoff if cutoff is not None else config.planner.average_cutoff,
        evaluate_categories(profile, catalog.categories, resolved),
        match_provinces(profile, catalog.provinces, resolved),
        constraints,
        policy=resolved,
        forecast=fc,
        optimizer_config=config.optimizer,
        planner_config=config.planner,
    )
    if as_json:
        _echo_json(report)
    else:
        typer.echo(format_strategy(report))


@app.command("action-plan")
def action_plan_cmd(
    profile_path: str = typer.Argument(..., help="Profile JSON file."),
    cutoff: Optional[int] = typer.Option(
        None, "--cutoff", help="Reference cutoff (default: the planner's average cutoff).",
    ),
    constraints_path: Optional[str] = typer.Option(
        None, "--constraints", help="JSON file with budget / hours / exam / relocation limits.",
    ),
    as_of: Optional[str] = _AS_OF_OPTION,
    policy_id: Optional[str] = _POLICY_OPTION,
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List quick wins and lay the top strategy lane out over 90 days."""
    from crs_planner.planning.suggestions import generate_suggestions
    from crs_planner.reporting.formatters import format_action_plan, format_suggestions
    from crs_planner.scoring.engine import score
    from crs_planner.signals.categories import evaluate_categories
    from crs_planner.signals.provinces import match_provinces
    from crs_planner.strategy.action_plan import build_action_plan
    from crs_planner.strategy.optimizer import optimize_strategy

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    profile = _load_profile_or_exit(profile_path)
    _, resolved = _resolve_policy_or_exit(config, as_of, policy_id)
    catalog = _load_signals_or_exit(config)
    constraints = _load_json_or_exit(constraints_path, "Constraints") if constraints_path else None

    result = score(profile, resolved)
    suggestions = generate_suggestions(profile, resolved, result)
    report = optimize_strategy(
        profile,
        result,
        cutoff if cutoff is not None else config.planner.average_cutoff,
        evaluate_categories(profile, catalog.categories, resolved),
        match_provinces(profile, catalog.provinces, resolved),
        constraints,
        policy=resolved,
        optimizer_config=config.optimizer,
        planner_config=config.planner,
    )
    plan = build_action_plan(report, suggestions)
    if as_json:
        typer.echo(json.dumps(
            {
                "suggestions": [s.model_dump(mode="json") for s in suggestions],
                "action_plan": plan.model_dump(mode="json"),
            },
            indent=2,
        ))
    else:
        typer.echo(format_suggestions(suggestions))
        typer.echo(format_action_plan(plan))


@app.command("forecast")
def forecast_cmd(
    profile_path: str = typer.Argument(..., help="Profile JSON file."),
    draws_path: Optional[str] = typer.Option(
        None, "--draws", help="Draw history JSON (default: config data.draws_path).",
    ),
    with_strategy: bool = typer.Option(
        False, "--with-strategy", help="Phase in the top strategy lane's gain over each horizon.",
    ),
    as_of: Optional[str] = _AS_OF_OPTION,
    policy_id: Optional[str] = _POLICY_OPTION,
    as_json: bool = _JSON_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Project upcoming cutoffs and 3/6/12-month invitation chances."""
    from crs_planner.forecast.outlook import build_invitation_outlook
    from crs_planner.reporting.formatters import format_forecast
    from crs_planner.scoring.engine import score

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    profile = _load_profile_or_exit(profile_path)
    _, resolved = _resolve_policy_or_exit(config, as_of, policy_id)
    history = _load_draws_or_exit(config, draws_path)

    result = score(profile, resolved)
    fc = _run_forecast(config, history, result.total, _parse_date_or_exit(as_of))
    if fc is None:
        if as_json:
            typer.echo("null")
        else:
            typer.echo(format_forecast(None))
        return

    top_option = None
    strategy_confidence = None
    if with_strategy:
        from crs_planner.signals.categories import evaluate_categories
        from crs_planner.signals.provinces import match_provinces
        from crs_planner.strategy.optimizer import optimize_strategy

        catalog = _load_signals_or_exit(config)
        report = optimize_strategy(
            profile,
            result,
            fc.projected_next_cutoff,
            evaluate_categories(profile, catalog.categories, resolved),
            match_provinces(profile, catalog.provinces, resolved),
            policy=resolved,
            forecast=fc,
            optimizer_config=config.optimizer,
            planner_config=config.planner,
        )
        top_option = report.top
        strategy_confidence = report.overall_confidence

    outlook = build_invitation_outlook(
        result.total, fc, top_option=top_option, overall_confidence=strategy_confidence,
    )
    if as_json:
        typer.echo(json.dumps(
            {
                "forecast": fc.model_dump(mode="json"),
                "outlook": outlook.model_dump(mode="json"),
            },
            indent=2,
        ))
    else:
        typer.echo(format_forecast(fc, outlook))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
