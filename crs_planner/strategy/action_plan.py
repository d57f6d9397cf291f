"""
90-day action plan built from a ``StrategyReport``.

The plan is a fixed five-task schedule whose lane-specific tasks are filled
from the optimizer's top option and from the suggestion list:

  Day 1-10    plan-baseline        lock baseline and target       High
  Day 11-35   plan-primary-lane    execute the top option         High
  Day 30-55   plan-secondary-lane  second suggestion              Medium
  Day 40-70   plan-document-pack   document readiness             High
  Day 65-90   plan-profile-audit   re-check against draws         High

Windows overlap: the secondary lane starts before the primary
one ends, and the audit starts while documents are still being collected.

The secondary task uses the *second* suggestion; the first one is normally
the lever already covered by the primary lane.  Missing inputs fall back to
generic wording and default impacts (10 for the primary lane, 8 for the
secondary one).
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from crs_planner.models.plan import Suggestion
from crs_planner.models.profile import to_int
from crs_planner.models.strategy import ActionMilestone, ActionPlan, PlanTask, StrategyReport

logger = logging.getLogger(__name__)

DEFAULT_TOP_LANE = "Profile Optimization"
DEFAULT_PRIMARY_IMPACT = 10
DEFAULT_SECONDARY_IMPACT = 8
FALLBACK_GAP_TRIGGER = 15


def _task(
    id:        str,
    title:     str,
    rationale: str,
    day_from:  int,
    day_to:    int,
    impact:    int,
    lane:      str,
    priority:  str,
) -> PlanTask:
    return PlanTask(
        id=id,
        title=title,
        rationale=rationale,
        window=f"Day {day_from}-{day_to}",
        day_from=day_from,
        day_to=day_to,
        impact=impact,
        lane=lane,
        priority=priority,
    )


def build_action_plan(
    report:      Optional[StrategyReport],
    suggestions: Sequence[Suggestion] = (),
    score_gap:   Any = None,
) -> ActionPlan:
    """Lay the strategy out as five dated tasks and three 30-day milestones.

    Args:
        report:      Optimizer output; None yields the generic plan.
        suggestions: Ranked quick wins from ``generate_suggestions``.
        score_gap:   Points still needed; defaults to ``report.gap``.
                     Negative or unparsable values count as 0.
    """
    top = report.top if report is not None else None
    if score_gap is None:
        score_gap = report.gap if report is not None else 0
    gap = max(to_int(score_gap), 0)

    top_lane = top.title if top is not None and top.title else DEFAULT_TOP_LANE
    second = suggestions[1] if len(suggestions) > 1 else None

    tasks = (
        _task(
            "plan-baseline",
            "Lock baseline and target score",
            "Set a concrete target and freeze your baseline profile to avoid random changes. "
            f"Current gap: {gap} points.",
            1, 10, 0, top_lane, "High",
        ),
        _task(
            "plan-primary-lane",
            f"Execute primary lane: {top_lane}",
            (top.reason if top is not None and top.reason
             else "Follow the highest-impact lane identified by optimizer."),
            11, 35,
            (top.score_gain if top is not None else 0) or DEFAULT_PRIMARY_IMPACT,
            top_lane, "High",
        ),
        _task(
            "plan-secondary-lane",
            (f"Secondary boost: {second.title}" if second is not None
             else "Secondary boost: language and profile precision"),
            (second.description if second is not None and second.description
             else "Add one additional improvement path to reduce draw uncertainty."),
            30, 55,
            (second.potential_gain if second is not None else 0) or DEFAULT_SECONDARY_IMPACT,
            second.title if second is not None else "Secondary path",
            "Medium",
        ),
        _task(
            "plan-document-pack",
            "Prepare immigration document pack",
            "Collect and verify key documents (identity, education, work proofs, test reports, "
            "proof-of-funds readiness).",
            40, 70, 0, "Readiness", "High",
        ),
        _task(
            "plan-profile-audit",
            "Profile audit and draw readiness check",
            "Re-evaluate score vs latest draws and category cutoffs. Trigger fallback lane if "
            f"gap remains above {FALLBACK_GAP_TRIGGER} points.",
            65, 90, 0, "Risk Control", "High",
        ),
    )

    milestones = (
        ActionMilestone(label="Days 1-30", objective="Baseline lock + launch primary lane",
                        expected_gain=tasks[1].impact),
        ActionMilestone(label="Days 31-60", objective="Add secondary lane + document readiness",
                        expected_gain=tasks[2].impact),
        ActionMilestone(label="Days 61-90", objective="Audit, stabilize, and draw-position for submission",
                        expected_gain=0),
    )

    logger.debug("Built 90-day plan for lane %s (gap %d).", top_lane, gap, extra={"lane": top_lane})
    return ActionPlan(tasks=tasks, milestones=milestones)
