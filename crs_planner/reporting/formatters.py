"""
ASCII terminal formatters for CLI commands.

All formatters accept result models and return plain multi-line strings
suitable for ``typer.echo()``.  No colour, no third-party rendering.

Policy banner
-------------
Every score-derived output starts with the rule set it was computed under,
so a reader can tell which policy produced the number::

  [POLICY] ircc-2025-03-25-v2 (effective 2025-03-25, source: effective_date)
"""

from __future__ import annotations

from typing import Optional, Sequence

from crs_planner.models.forecast import ForecastResult, InvitationOutlook
from crs_planner.models.plan import PlanSet, Suggestion
from crs_planner.models.policy import PolicySnapshot, RegistryMeta
from crs_planner.models.score import PolicyStamp, ScoreResult
from crs_planner.models.strategy import ActionPlan, RiskFlag, StrategyReport


def format_policy_banner(stamp: PolicyStamp) -> str:
    return (
        f"  [POLICY] {stamp.version} "
        f"(effective {stamp.effective_date.isoformat()}, source: {stamp.source})"
    )


def _format_flags(flags: Sequence[RiskFlag], indent: str = "    ") -> list[str]:
    return [f"{indent}[{f.severity.upper():<6}] {f.label}" for f in flags]


# ── Score ─────────────────────────────────────────────────────────────────────


def format_score(result: ScoreResult) -> str:
    """Bucket totals followed by per-factor detail."""
    b, d = result.breakdown, result.details
    lines = [
        "",
        "=== CRS Score ===",
        format_policy_banner(result.policy),
        "",
        f"  {'Core / human capital':<28} {b.core_human_capital:>5}",
        f"  {'Spouse factors':<28} {b.spouse_factors:>5}",
        f"  {'Skill transferability':<28} {b.skill_transferability:>5}",
        f"  {'Additional points':<28} {b.additional_points:>5}",
        "  " + "-" * 34,
        f"  {'TOTAL':<28} {result.total:>5}",
        "",
        "  Detail:",
        f"    age {d.age}  education {d.education}  "
        f"first language {d.first_language}  second language {d.second_language}",
        f"    canadian work {d.canadian_work}  foreign work (years) {d.foreign_work}",
    ]
    return "\n".join(lines)


# ── Plans ─────────────────────────────────────────────────────────────────────


def format_plans(plan_set: PlanSet, show_milestones: bool = True) -> str:
    """Ranked improvement paths as an ASCII table.

    Example::

          Rank  Path                             Gain  Score  Months  Difficulty  Likelihood
          ----------------------------------------------------------------------------------
             1  English Accelerator Path          +24    513       4      Medium        high
             2  Canadian Work Ladder Path         +13    502      12        Hard      medium
    """
    lines = [
        "",
        "=== Improvement Paths ===",
        f"  Current score: {plan_set.current_score}",
        f"  Target score:  {plan_set.target_score}",
    ]
    if not plan_set.plans:
        lines.append("")
        lines.append("  (no improvement path found for this profile)")
        return "\n".join(lines)

    header = (
        f"  {'Rank':>4}  {'Path':<30}  {'Gain':>5}  {'Score':>5}  "
        f"{'Months':>6}  {'Difficulty':>10}  {'Likelihood':>10}"
    )
    lines.append("")
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for rank, plan in enumerate(plan_set.plans, start=1):
        goal = " *" if plan.goal_reached else ""
        lines.append(
            f"  {rank:>4}  {plan.title[:30]:<30}  {'+' + str(plan.potential_gain):>5}  "
            f"{plan.projected_score:>5}  {plan.estimated_months:>6}  "
            f"{plan.difficulty:>10}  {plan.likelihood:>10}{goal}"
        )
        if show_milestones:
            for m in plan.milestones:
                lines.append(f"          - {m.title} (+{m.expected_gain}, ~{m.eta_weeks}w)")
    lines.append("")
    lines.append("  * reaches the target score")
    return "\n".join(lines)


# ── Strategy ──────────────────────────────────────────────────────────────────


def format_strategy(report: StrategyReport) -> str:
    """Ranked options, bottlenecks and risk flags."""
    lines = [
        "",
        "=== Strategy ===",
        f"  Score {report.score} vs cutoff {report.cutoff} (gap {report.gap:+d})",
        f"  Confidence: {report.overall_confidence} ({report.confidence_band})",
        f"  {report.guidance_summary}",
    ]

    if report.ranked:
        header = (
            f"  {'Rank':>4}  {'Option':<30}  {'Lane':<16}  {'Gain':>5}  "
            f"{'Months':>6}  {'Score':>5}  {'Fit':>4}"
        )
        lines.append("")
        lines.append(header)
        lines.append("  " + "-" * (len(header) - 2))
        for rank, option in enumerate(report.ranked, start=1):
            lines.append(
                f"  {rank:>4}  {option.title[:30]:<30}  {option.lane[:16]:<16}  "
                f"{'+' + str(option.score_gain):>5}  {option.months:>6}  "
                f"{option.score:>5}  {option.constraint_fit_score:>4}"
            )

    if report.bottlenecks:
        lines.append("")
        lines.append("  Bottlenecks:")
        for b in report.bottlenecks:
            lines.append(f"    {b.label:<28} {b.value:>4} pts  headroom {b.headroom}%")

    if report.global_risk_flags:
        lines.append("")
        lines.append("  Risk flags:")
        lines.extend(_format_flags(report.global_risk_flags))
    return "\n".join(lines)


# ── Quick wins and action plan ────────────────────────────────────────────────


def format_suggestions(suggestions: Sequence[Suggestion]) -> str:
    lines = ["", "=== Quick Wins ==="]
    if not suggestions:
        lines.append("  (no quick win found for this profile)")
        return "\n".join(lines)
    for s in suggestions:
        lines.append(
            f"  {'+' + str(s.potential_gain):>5}  {s.title[:36]:<36}  {s.difficulty:<6}  {s.timeframe}"
        )
    return "\n".join(lines)


def format_action_plan(plan: ActionPlan) -> str:
    """Dated tasks, then the three 30-day milestones."""
    lines = ["", "=== 90-Day Action Plan ==="]
    for task in plan.tasks:
        impact = f" (+{task.impact})" if task.impact else ""
        lines.append(f"  {task.window:<10}  [{task.priority.upper():<6}] {task.title}{impact}")
        lines.append(f"              {task.rationale}")
    lines.append("")
    lines.append("  Milestones:")
    for m in plan.milestones:
        lines.append(f"    {m.label:<11} {m.objective} (+{m.expected_gain})")
    return "\n".join(lines)


# ── Forecast ──────────────────────────────────────────────────────────────────


def format_forecast(fc: Optional[ForecastResult], outlook: Optional[InvitationOutlook] = None) -> str:
    """Projected cutoffs plus the optional 3/6/12-month outlook."""
    lines = ["", "=== Cutoff Forecast ==="]
    if fc is None:
        lines.append("  (forecast unavailable: no draw history)")
        return "\n".join(lines)

    projected = ", ".join(str(v) for v in fc.projected_draws)
    lines.extend([
        f"  Draws used:       {fc.sample_size} (latest {fc.latest_draw_date.isoformat()}, "
        f"cutoff {fc.latest_observed_cutoff})",
        f"  Trend:            {fc.trend_label} ({fc.slope_per_draw:+.2f}/draw, "
        f"volatility {fc.volatility:.1f})",
        f"  Next cutoffs:     {projected} (avg {fc.projected_three_draw_avg})",
        f"  Your gap:         {fc.user_gap_to_next:+d} -> likelihood {fc.invitation_likelihood}",
        f"  Confidence:       {fc.confidence_score} ({fc.confidence_band})",
    ])

    if outlook is not None:
        header = (
            f"  {'Horizon':<10}  {'Cutoff':>6}  {'Score':>5}  "
            f"{'Base':>5}  {'Best':>5}  {'Worst':>5}  {'Range':>9}"
        )
        lines.append("")
        lines.append(header)
        lines.append("  " + "-" * (len(header) - 2))
        for h in outlook.horizons:
            mark = " <" if h.id == outlook.recommended_horizon_id else ""
            interval = f"{h.interval_low}-{h.interval_high}%"
            lines.append(
                f"  {h.label:<10}  {h.projected_cutoff:>6}  {h.expected_score:>5}  "
                f"{h.base_probability:>4}%  {h.best_probability:>4}%  "
                f"{h.worst_probability:>4}%  {interval:>9}{mark}"
            )
        lines.append("")
        lines.append(f"  {outlook.summary}")
    return "\n".join(lines)


# ── Policies ──────────────────────────────────────────────────────────────────


def format_policy_list(snapshots: Sequence[PolicySnapshot], meta: RegistryMeta, active_id: str) -> str:
    lines = [
        "",
        "=== CRS Policy Registry ===",
        f"  Registry version: {meta.version}",
        "",
    ]
    for snap in snapshots:
        marker = "*" if snap.id == active_id else " "
        lines.append(f"  {marker} {snap.id:<24} {snap.effective_date.isoformat()}  {snap.label}")
    if meta.aliases:
        lines.append("")
        lines.append("  Aliases:")
        for legacy, canonical in sorted(meta.aliases.items()):
            lines.append(f"    {legacy} -> {canonical}")
    lines.append("")
    lines.append("  * active for the requested date")
    return "\n".join(lines)
