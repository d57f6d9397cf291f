"""
Strategy optimizer: ranks plans, category draws and provincial nomination as
comparable options under the applicant's constraints.

Pipeline
--------
  1. Normalize constraints; derive profile-level risk signals.
  2. Build option drafts:
       - the top ``path_lane_count`` plans from the path planner
       - one category-draw lane (confidence 82 / 64 / 38 by gap)
       - one provincial lane for the best-matching province
  3. Score each draft (crs_planner.strategy.scorer) and sort descending by
     final score.  The sort is stable: equal scores keep the order above.
  4. Merge every flag into ``global_risk_flags`` (highest severity per id).
  5. Overall confidence = mean of the top two (confidence − risk penalty),
     blended with forecast confidence when a forecast is supplied.

An empty option list is a valid outcome: the report then has ``top=None``
and a guidance message telling the host there is no actionable lane.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from crs_planner.config import OptimizerConfig, PlannerConfig
from crs_planner.models.forecast import ForecastResult
from crs_planner.models.plan import Difficulty, PlanCandidate, PlanSet
from crs_planner.models.policy import PolicySnapshot, ResolvedPolicy, as_resolved
from crs_planner.models.profile import Profile, to_int
from crs_planner.models.score import ScoreResult
from crs_planner.models.strategy import (
    Bottleneck,
    CategorySignal,
    ConfidenceBand,
    ProvinceSignal,
    RankedOption,
    StrategyReport,
)
from crs_planner.planning.planner import build_plans
from crs_planner.scoring.engine import min_first_language_level, min_french_nclc, score
from crs_planner.strategy.constraints import normalize_constraints
from crs_planner.strategy.risk import (
    category_lane_flags,
    merge_flags,
    plan_lane_flags,
    profile_signals,
    province_lane_flags,
)
from crs_planner.strategy.scorer import OptionDraft, score_option

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF = 520

LANE_LABELS: dict[str, str] = {
    "language":   "Language",
    "work":       "Work Experience",
    "education":  "Education",
    "spouse":     "Family Factors",
    "provincial": "Provincial",
    "combo":      "Combination",
}
CATEGORY_LANE = "Category Draws"
PROVINCIAL_LANE = "Provincial"

REQUIRED_HOURS: dict[str, int] = {"Easy": 4, "Medium": 8, "Hard": 12}

_BUCKET_LABELS: tuple[tuple[str, str], ...] = (
    ("core_human_capital",    "Core profile factors"),
    ("skill_transferability", "Transferability factors"),
    ("additional_points",     "Additional point factors"),
    ("spouse_factors",        "Spouse factors"),
)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def confidence_band(value: float) -> ConfidenceBand:
    if value >= 70:
        return "High"
    if value >= 45:
        return "Medium"
    return "Low"


# ── Option drafts ─────────────────────────────────────────────────────────────


def _plan_lane_fit(plan: PlanCandidate, applicant: Profile, min_level: int, french_min: int) -> float:
    if plan.id == "english-accelerator":
        return 85.0 if min_level < 9 else 55.0
    if plan.id == "french-advantage":
        return 80.0 if french_min > 0 else 55.0
    if plan.id == "canadian-work-ladder":
        return 80.0 if applicant.canadian_work_years >= 1 else 55.0
    if plan.id == "education-upgrade":
        return 45.0
    if plan.id == "spouse-optimization":
        return 70.0
    if plan.id == "pnp-fast-track":
        return 65.0
    return 60.0


def plan_option(plan: PlanCandidate, applicant: Profile, min_level: int, french_min: int) -> OptionDraft:
    return OptionDraft(
        id=f"path-{plan.id}",
        title=plan.title,
        lane=LANE_LABELS.get(plan.category, plan.category.title()),
        reason=plan.why_it_fits,
        score_gain=plan.potential_gain,
        months=plan.estimated_months,
        confidence=plan.likelihood_percent,
        effort=plan.difficulty,
        lane_fit=_plan_lane_fit(plan, applicant, min_level, french_min),
        exam_sensitive=plan.category == "language",
        cost_cad=plan.estimated_cost_cad,
        required_hours=REQUIRED_HOURS[plan.difficulty],
        risk_flags=plan_lane_flags(plan, applicant.has_french),
    )


def category_option(gap: int, eligible_count: int) -> OptionDraft:
    effort: Difficulty
    if gap <= 0:
        confidence, months, effort = 82, 1, "Easy"
    elif gap <= 20:
        confidence, months, effort = 64, 4, "Medium"
    else:
        confidence, months, effort = 38, 8, "Hard"

    if eligible_count > 0:
        reason = (
            f"You match {eligible_count} category stream(s). Improve targeted factors "
            "to close the category cutoff gap."
        )
    else:
        reason = (
            "You are not currently category-eligible; targeted profile adjustments "
            "can unlock lower-cutoff streams."
        )

    return OptionDraft(
        id="lane-category-draws",
        title="Category Draw Positioning",
        lane=CATEGORY_LANE,
        reason=reason,
        score_gain=int(_clamp(round(max(gap, 0) * 0.5), 0, 80)),
        months=months,
        confidence=confidence,
        effort=effort,
        lane_fit=85.0 if eligible_count > 0 else 45.0,
        cost_cad=0 if gap <= 0 else 300,
        required_hours=REQUIRED_HOURS[effort],
        risk_flags=category_lane_flags(eligible_count, gap),
    )


def province_option(best: ProvinceSignal, nomination_points: int = 600) -> OptionDraft:
    strong = best.match_score >= 70
    effort: Difficulty = "Medium" if strong else "Hard"
    return OptionDraft(
        id=f"lane-province-{best.id}",
        title=f"{best.name} PNP Focus",
        lane=PROVINCIAL_LANE,
        reason=f"{best.name} has the highest profile match in your province analysis.",
        score_gain=nomination_points if strong else nomination_points // 2,
        months=6 if strong else 9,
        confidence=int(_clamp(best.match_score, 35, 88)),
        effort=effort,
        lane_fit=float(best.match_score),
        cost_cad=2200,
        required_hours=REQUIRED_HOURS[effort],
        risk_flags=province_lane_flags(best.match_score),
    )


# ── Report helpers ────────────────────────────────────────────────────────────


def primary_bottlenecks(result: ScoreResult, limit: int = 2) -> tuple[Bottleneck, ...]:
    """Buckets with the most headroom (smallest share of the total)."""
    total = max(result.total, 1)
    buckets = []
    for key, label in _BUCKET_LABELS:
        value = getattr(result.breakdown, key)
        headroom = int(_clamp(100 - round(value / total * 100), 0, 100))
        buckets.append(Bottleneck(key=key, label=label, value=value, headroom=headroom))
    buckets.sort(key=lambda b: b.headroom, reverse=True)
    return tuple(buckets[:limit])


def overall_confidence(
    ranked:   Sequence[RankedOption],
    forecast: Optional[ForecastResult],
    blend:    float,
) -> int:
    leaders = ranked[:2]
    if not leaders:
        base = 0.0
    else:
        base = sum(o.confidence - o.risk_penalty for o in leaders) / len(leaders)
    if forecast is not None:
        base = base * (1.0 - blend) + forecast.confidence_score * blend
    return int(_clamp(round(base), 0, 100))


def _plans_from(plans: Any) -> tuple[PlanCandidate, ...]:
    if isinstance(plans, PlanSet):
        return plans.plans
    return tuple(plans or ())


# ── Public API ────────────────────────────────────────────────────────────────


def optimize_strategy(
    profile:          Any,
    score_result:     Optional[ScoreResult] = None,
    cutoff:           Any = DEFAULT_CUTOFF,
    category_signals: Optional[Sequence[CategorySignal]] = None,
    province_signals: Optional[Sequence[ProvinceSignal]] = None,
    constraints:      Any = None,
    *,
    policy:           PolicySnapshot | ResolvedPolicy,
    forecast:         Optional[ForecastResult] = None,
    plans:            Optional[PlanSet | Sequence[PlanCandidate]] = None,
    optimizer_config: Optional[OptimizerConfig] = None,
    planner_config:   Optional[PlannerConfig] = None,
) -> StrategyReport:
    """Rank strategy options for one profile.

    Args:
        profile:          ``Profile`` or raw mapping.
        score_result:     Baseline score; computed when None.
        cutoff:           Reference draw cutoff (unparsable → 520).
        category_signals: Output of ``signals.categories.evaluate_categories``;
                          None counts as no category streams.
        province_signals: Output of ``signals.provinces.match_provinces``;
                          None skips the provincial lane.
        constraints:      Raw or normalized optimizer constraints.
        policy:           Snapshot used for scoring and planning.
        forecast:         Optional forecast for confidence blending.
        plans:            Precomputed plans; built with ``cutoff`` as the
                          average cutoff when None.
        optimizer_config: Lane count and forecast blend weight.
        planner_config:   Passed to the planner when plans are built here.

    Returns:
        StrategyReport.  Never raises on profile or constraint data.
    """
    cfg = optimizer_config or OptimizerConfig()
    applicant = Profile.coerce(profile)
    resolved = as_resolved(policy)
    result = score_result or score(applicant, resolved)
    limits = normalize_constraints(constraints)

    current = result.total
    reference_cutoff = to_int(cutoff, DEFAULT_CUTOFF)
    gap = reference_cutoff - current

    if plans is None:
        planner_cfg = (planner_config or PlannerConfig()).model_copy(
            update={"average_cutoff": reference_cutoff}
        )
        plans = build_plans(applicant, result, resolved, planner_config=planner_cfg)
    plan_list = _plans_from(plans)

    min_level = min_first_language_level(applicant, resolved)
    french_min = min_french_nclc(applicant, resolved)
    signals = profile_signals(applicant.age, min_level, french_min, gap)

    drafts: list[OptionDraft] = [
        plan_option(plan, applicant, min_level, french_min)
        for plan in plan_list[: cfg.path_lane_count]
    ]
    eligible_count = sum(1 for c in category_signals or () if c.eligible)
    drafts.append(category_option(gap, eligible_count))
    if province_signals:
        best = max(province_signals, key=lambda p: p.match_score)
        drafts.append(province_option(best, resolved.snapshot.tables.additional_points.pnp_nomination))

    scored = [score_option(d, gap, limits) for d in drafts]
    ranked = tuple(sorted(scored, key=lambda o: o.score, reverse=True))
    top = ranked[0] if ranked else None
    next_best = ranked[1] if len(ranked) > 1 else None

    global_flags = merge_flags(
        [*signals, *(flag for option in ranked for flag in option.risk_flags)]
    )
    confidence = overall_confidence(ranked, forecast, cfg.forecast_blend)

    if top is not None:
        guidance = (
            f"Primary lane: {top.title}. Estimated gain {top.score_gain} points "
            f"in ~{top.months} months."
        )
    else:
        guidance = "No strong lane detected yet. Start by improving language and category eligibility."

    logger.info(
        "Ranked %d option(s); top=%s, confidence=%d.",
        len(ranked), top.id if top else None, confidence,
        extra={"policy_id": resolved.id},
    )

    return StrategyReport(
        score=current,
        cutoff=reference_cutoff,
        gap=gap,
        ranked=ranked,
        top=top,
        next_best=next_best,
        bottlenecks=primary_bottlenecks(result),
        profile_signals=signals,
        global_risk_flags=global_flags,
        overall_confidence=confidence,
        confidence_band=confidence_band(confidence),
        guidance_summary=guidance,
        constraints=limits,
    )
