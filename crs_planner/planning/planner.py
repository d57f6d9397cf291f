"""
Path planner: ranks single-lever improvement plans for a profile.

For every lane in ``crs_planner.planning.catalog`` that applies, the planner
re-scores the patched profile, keeps the lane when the gain is positive, and
ranks the survivors by fit score.  A synthetic combination plan is built
from the two best lanes.

Fit score
---------
    fit = clamp(round(gain / 4), 0, 80)          # gain
        + clamp(24 − 2 · months, 0, 24)          # speed
        + (32 if projected ≥ target else 0)      # goal reached
        + round(likelihood_percent / 3)          # likelihood
        + difficulty weight                      # Easy 14 / Medium 7 / Hard 0

Milestones
----------
Each lane carries heuristic per-step gains.  They are reconciled with the
real gain so that the milestones always sum to ``potential_gain``: the last
milestone takes the remainder, and earlier milestones are scaled down when
they alone would exceed the gain.

Combination plan
----------------
``combo-bridge-plan`` adds the second-best lane's gain to the best lane's
projected score (capped at the CRS maximum) without re-scoring the merged
profile.  This can overstate the combined gain when both lanes touch the
same capped bucket.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

from crs_planner.config import PlannerConfig
from crs_planner.models.plan import Difficulty, Likelihood, Milestone, PlanCandidate, PlanChecks, PlanSet
from crs_planner.models.policy import PolicySnapshot, ResolvedPolicy, as_resolved
from crs_planner.models.profile import Profile
from crs_planner.models.score import ScoreResult
from crs_planner.planning.catalog import LANE_BUILDERS, LaneDraft, StepSpec
from crs_planner.scoring.engine import score

logger = logging.getLogger(__name__)

DIFFICULTY_WEIGHT: dict[str, int] = {"Easy": 14, "Medium": 7, "Hard": 0}
LIKELIHOOD_PERCENT: dict[str, int] = {"high": 78, "medium": 58, "low": 35}

COMBO_ID = "combo-bridge-plan"
COMBO_LIKELIHOOD_PERCENT = 62
TARGET_MARGIN_OVER_CUTOFF = 10
TARGET_MARGIN_OVER_SCORE = 25


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def default_target_score(current_score: int, average_cutoff: int) -> int:
    return max(average_cutoff + TARGET_MARGIN_OVER_CUTOFF, current_score + TARGET_MARGIN_OVER_SCORE)


def compute_fit_score(
    gain:         int,
    months:       int,
    difficulty:   Difficulty,
    goal_reached: bool,
    likelihood:   Likelihood,
) -> int:
    gain_score       = int(_clamp(round(gain / 4), 0, 80))
    speed_score      = int(_clamp(24 - months * 2, 0, 24))
    goal_score       = 32 if goal_reached else 0
    likelihood_score = round(LIKELIHOOD_PERCENT.get(likelihood, 0) / 3)
    return gain_score + speed_score + goal_score + likelihood_score + DIFFICULTY_WEIGHT.get(difficulty, 0)


def distribute_gain(heuristic: Sequence[int], gain: int) -> list[int]:
    """Reconcile heuristic step gains with the real ``gain``.

    Returns non-negative integers summing exactly to ``gain``.
    """
    if not heuristic:
        return []
    gain = max(gain, 0)
    leading = [max(g, 0) for g in heuristic[:-1]]
    leading_sum = sum(leading)
    if leading_sum > gain:
        leading = [g * gain // leading_sum for g in leading]
    return leading + [gain - sum(leading)]


def build_milestones(
    plan_id: str,
    steps:   Sequence[StepSpec],
    gain:    int,
    months:  int,
) -> tuple[Milestone, ...]:
    gains = distribute_gain([s.expected_gain for s in steps], gain)
    return tuple(
        Milestone(
            id=f"{plan_id}-m{i + 1}",
            title=step.title,
            details=step.details,
            eta_weeks=step.eta_weeks,
            expected_gain=step_gain,
            month_hint=int(_clamp(math.ceil(max(step.eta_weeks, 1) / 4), 1, max(months, 1))),
        )
        for i, (step, step_gain) in enumerate(zip(steps, gains))
    )


def _evaluate_draft(
    draft:         LaneDraft,
    profile:       Profile,
    policy:        ResolvedPolicy,
    current_score: int,
    target_score:  int,
) -> Optional[PlanCandidate]:
    projected = score(profile.merged(**draft.patch), policy).total
    gain = projected - current_score
    if gain <= 0:
        logger.debug("Discarding lane %s (gain %d).", draft.id, gain, extra={"lane_id": draft.id})
        return None

    goal_reached = projected >= target_score
    return PlanCandidate(
        id=draft.id,
        title=draft.title,
        summary=draft.summary,
        category=draft.category,
        difficulty=draft.difficulty,
        estimated_months=draft.months,
        estimated_cost_cad=draft.cost_cad,
        projected_score=projected,
        potential_gain=gain,
        goal_reached=goal_reached,
        why_it_fits=draft.why_it_fits,
        likelihood=draft.likelihood,
        likelihood_percent=LIKELIHOOD_PERCENT.get(draft.likelihood, 50),
        fit_score=compute_fit_score(gain, draft.months, draft.difficulty, goal_reached, draft.likelihood),
        milestones=build_milestones(draft.id, draft.steps, gain, draft.months),
        checks=PlanChecks(
            target_score=target_score,
            current_score=current_score,
            still_needed_after_path=max(target_score - projected, 0),
        ),
    )


def build_combo_plan(
    candidates:    Sequence[PlanCandidate],
    current_score: int,
    target_score:  int,
    score_cap:     int = 1200,
) -> Optional[PlanCandidate]:
    """Chain the two highest-fit candidates into one bridge plan."""
    ranked = sorted(candidates, key=lambda c: c.fit_score, reverse=True)
    if len(ranked) < 2:
        return None
    first, second = ranked[0], ranked[1]

    projected = min(first.projected_score + second.potential_gain, score_cap)
    gain = projected - current_score
    if gain <= 0:
        return None

    difficulty: Difficulty = "Hard" if "Hard" in (first.difficulty, second.difficulty) else "Medium"
    months = round((first.estimated_months + second.estimated_months) / 2)
    goal_reached = projected >= target_score

    steps = [
        StepSpec(m.title, m.details, m.eta_weeks, m.expected_gain)
        for m in (*first.milestones[:2], *second.milestones[:2])
    ]
    steps.append(StepSpec(
        "Final score synchronization",
        "Update all achieved improvements together and reassess draw strategy.",
        4, 0,
    ))
    source_ids = [m.id for m in (*first.milestones[:2], *second.milestones[:2])]
    milestones = build_milestones(COMBO_ID, steps, gain, months)
    milestones = tuple(
        m.model_copy(update={"id": f"combo-{source_ids[i]}" if i < len(source_ids) else "combo-final-sync"})
        for i, m in enumerate(milestones)
    )

    return PlanCandidate(
        id=COMBO_ID,
        title="Bridge Combination Path",
        summary=f"Combine “{first.title}” + “{second.title}” to maximize speed while limiting risk.",
        category="combo",
        difficulty=difficulty,
        estimated_months=months,
        estimated_cost_cad=first.estimated_cost_cad + second.estimated_cost_cad,
        projected_score=projected,
        potential_gain=gain,
        goal_reached=goal_reached,
        why_it_fits="A blended route often reaches the target faster than single-track attempts.",
        likelihood="medium",
        likelihood_percent=COMBO_LIKELIHOOD_PERCENT,
        fit_score=compute_fit_score(gain, months, difficulty, goal_reached, "medium"),
        milestones=milestones,
        checks=PlanChecks(
            target_score=target_score,
            current_score=current_score,
            still_needed_after_path=max(target_score - projected, 0),
        ),
    )


def build_plans(
    profile:      Any,
    score_result: Optional[ScoreResult],
    policy:       PolicySnapshot | ResolvedPolicy,
    target_score: Optional[int] = None,
    *,
    planner_config: Optional[PlannerConfig] = None,
) -> PlanSet:
    """Generate, rank, and truncate improvement plans.

    Args:
        profile:        ``Profile`` or raw mapping.
        score_result:   Baseline score; computed here when None.
        policy:         Snapshot the baseline was (or will be) scored under.
        target_score:   Goal score; defaults to
                        max(average_cutoff + 10, current + 25).
        planner_config: ``top_n`` and ``average_cutoff``; defaults apply when None.

    Returns:
        PlanSet with at most ``top_n`` plans, highest fit first.  Ties keep
        catalogue order.  An empty plan tuple means no lever improves the score.
    """
    cfg = planner_config or PlannerConfig()
    applicant = Profile.coerce(profile)
    resolved = as_resolved(policy)
    baseline = score_result or score(applicant, resolved)
    current = baseline.total
    target = target_score if target_score and target_score > 0 else default_target_score(current, cfg.average_cutoff)

    candidates: list[PlanCandidate] = []
    for builder in LANE_BUILDERS:
        draft = builder(applicant, resolved.snapshot)
        if draft is None:
            continue
        plan = _evaluate_draft(draft, applicant, resolved, current, target)
        if plan is not None:
            candidates.append(plan)

    combo = build_combo_plan(candidates, current, target, resolved.snapshot.caps.crs_total)
    if combo is not None:
        candidates.append(combo)

    ranked = sorted(candidates, key=lambda c: c.fit_score, reverse=True)[: cfg.top_n]
    logger.info(
        "Built %d plan(s) for score %d (target %d).", len(ranked), current, target,
        extra={"policy_id": resolved.id},
    )
    return PlanSet(current_score=current, target_score=target, plans=tuple(ranked))
