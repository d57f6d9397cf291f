"""
Option scoring for the strategy optimizer.

Score formula (weighted sum, range 0–100)
----------------------------------------
    base = (
        impact       * 0.34   # gain relative to the remaining gap
        + speed      * 0.18   # fewer months is better
        + confidence * 0.22   # likelihood / data confidence
        + effort     * 0.12   # ease of execution
        + lane_fit   * 0.14   # how well the lane suits this profile
    )
    final = clamp(round(base − risk_penalty + constraint_adjustment), 1, 100)

Component explanations
----------------------
impact (0–100):
    gap > 0:  gain / gap · 100, capped at 100 (closing the whole gap → 100).
    gap ≤ 0:  gain itself, capped at 100 (already above the cutoff, so any
              buffer helps but saturates quickly).

speed (0–100):
    100 − 6 · months.  Ten months → 40; seventeen or more → 0.

effort (0–100):
    Easy 90 / Medium 60 / Hard 30.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from crs_planner.models.plan import Difficulty
from crs_planner.models.strategy import OptimizerConstraints, RankedOption, RiskFlag, ScoreComponents
from crs_planner.strategy.constraints import constraint_adjustment, constraint_fit_score
from crs_planner.strategy.risk import risk_penalty

WEIGHTS: dict[str, float] = {
    "impact":     0.34,
    "speed":      0.18,
    "confidence": 0.22,
    "effort":     0.12,
    "lane_fit":   0.14,
}

EFFORT_EASE: dict[str, float] = {"Easy": 90.0, "Medium": 60.0, "Hard": 30.0}

MIN_SCORE = 1
MAX_SCORE = 100


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


@dataclass
class OptionDraft:
    """An unscored strategy option.

    Attributes:
        id:              Stable option id.
        title:           Display title.
        lane:            Display lane name (``Provincial`` drives relocation bias).
        reason:          Why this option is on the list.
        score_gain:      Estimated CRS gain.
        months:          Estimated months to realize the gain.
        confidence:      0–100.
        effort:          Easy / Medium / Hard.
        lane_fit:        0–100 profile-lane fit heuristic.
        exam_sensitive:  Outcome depends on passing a test.
        cost_cad:        Estimated cost.
        required_hours:  Weekly hours the lane needs.
        risk_flags:      Lane-specific flags.
    """

    id:             str
    title:          str
    lane:           str
    reason:         str
    score_gain:     int
    months:         int
    confidence:     int
    effort:         Difficulty
    lane_fit:       float
    exam_sensitive: bool = False
    cost_cad:       int = 0
    required_hours: int = 8
    risk_flags:     tuple[RiskFlag, ...] = field(default_factory=tuple)


def impact_score(gain: int, gap: int) -> float:
    if gap > 0:
        return min(100.0, gain / max(gap, 1) * 100.0)
    return min(100.0, float(max(gain, 0)))


def speed_score(months: int) -> float:
    return _clamp(100.0 - 6.0 * months, 0.0, 100.0)


def compute_components(draft: OptionDraft, gap: int) -> ScoreComponents:
    return ScoreComponents(
        impact=round(impact_score(draft.score_gain, gap), 2),
        speed=round(speed_score(draft.months), 2),
        confidence=round(_clamp(draft.confidence, 0.0, 100.0), 2),
        effort=EFFORT_EASE.get(draft.effort, 30.0),
        lane_fit=round(_clamp(draft.lane_fit, 0.0, 100.0), 2),
    )


def weighted_total(components: ScoreComponents) -> float:
    return (
        components.impact       * WEIGHTS["impact"]
        + components.speed      * WEIGHTS["speed"]
        + components.confidence * WEIGHTS["confidence"]
        + components.effort     * WEIGHTS["effort"]
        + components.lane_fit   * WEIGHTS["lane_fit"]
    )


def score_option(draft: OptionDraft, gap: int, constraints: OptimizerConstraints) -> RankedOption:
    """Score one draft into a ``RankedOption``."""
    components = compute_components(draft, gap)
    base = weighted_total(components)
    penalty = risk_penalty(draft.risk_flags)
    adjustment = constraint_adjustment(
        constraints,
        lane=draft.lane,
        cost_cad=draft.cost_cad,
        required_hours=draft.required_hours,
        exam_sensitive=draft.exam_sensitive,
    )
    final = int(_clamp(round(base - penalty + adjustment), MIN_SCORE, MAX_SCORE))

    return RankedOption(
        id=draft.id,
        title=draft.title,
        lane=draft.lane,
        reason=draft.reason,
        score_gain=draft.score_gain,
        months=draft.months,
        confidence=draft.confidence,
        effort=draft.effort,
        exam_sensitive=draft.exam_sensitive,
        estimated_cost_cad=draft.cost_cad,
        required_weekly_hours=draft.required_hours,
        components=components,
        base_score=round(base, 2),
        risk_penalty=penalty,
        risk_flags=draft.risk_flags,
        constraint_adjustment=adjustment,
        constraint_fit_score=constraint_fit_score(adjustment),
        score=final,
    )
