"""
Strategy optimizer models.

The optimizer turns plans and draw/province signals into ``RankedOption``
rows, each with a five-component base score, a risk penalty, and a
constraint adjustment.  ``StrategyReport`` is the complete optimizer output;
``ActionPlan`` lays its top lane out over the next 90 days.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from crs_planner.models.plan import Difficulty

Severity = Literal["low", "medium", "high"]
RelocationPreference = Literal["balanced", "province", "federal"]
ConfidenceBand = Literal["High", "Medium", "Low"]

SEVERITY_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


class RiskFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    id:       str
    label:    str
    detail:   str = ""
    severity: Severity = "low"


class OptimizerConstraints(BaseModel):
    """User-supplied execution constraints (already normalized).

    Use ``crs_planner.strategy.constraints.normalize_constraints`` to build
    one from untrusted input; this model itself enforces the same ranges.
    """

    model_config = ConfigDict(frozen=True)

    budget_cad:            int = 5000
    weekly_hours:          int = 8
    exam_attempts:         int = 2
    relocation_preference: RelocationPreference = "balanced"

    @field_validator("budget_cad")
    @classmethod
    def validate_budget(cls, v: int) -> int:
        if not 500 <= v <= 50000:
            raise ValueError(f"budget_cad must be in [500, 50000], got {v}.")
        return v

    @field_validator("weekly_hours")
    @classmethod
    def validate_hours(cls, v: int) -> int:
        if not 1 <= v <= 30:
            raise ValueError(f"weekly_hours must be in [1, 30], got {v}.")
        return v

    @field_validator("exam_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError(f"exam_attempts must be in [1, 5], got {v}.")
        return v


class CategorySignal(BaseModel):
    """One category-based draw stream and whether the profile qualifies."""

    model_config = ConfigDict(frozen=True)

    id:            str
    name:          str
    recent_cutoff: int
    eligible:      bool


class ProvinceSignal(BaseModel):
    """One province with its 0-100 profile match score."""

    model_config = ConfigDict(frozen=True)

    id:          str
    name:        str
    match_score: int

    @field_validator("match_score")
    @classmethod
    def validate_match(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"match_score must be in [0, 100], got {v}.")
        return v


class ScoreComponents(BaseModel):
    """The five normalized (0-100) sub-scores behind ``base_score``."""

    model_config = ConfigDict(frozen=True)

    impact:     float
    speed:      float
    confidence: float
    effort:     float
    lane_fit:   float


class RankedOption(BaseModel):
    """One strategy lane after scoring.

    Attributes:
        id:                     ``path-<plan id>``, ``lane-category-draws`` or
                                ``lane-province-<province id>``.
        lane:                   Display lane (Language, Provincial, Category Draws ...).
        score_gain:             Estimated CRS gain.
        months:                 Estimated months to realize the gain.
        confidence:             0-100 data confidence.
        effort:                 Easy / Medium / Hard.
        exam_sensitive:         Lane outcome hinges on a test result.
        components:             Normalized sub-scores.
        base_score:             Weighted sum of the components.
        risk_penalty:           Severity-weighted flag penalty (capped).
        risk_flags:             Lane-specific flags.
        constraint_adjustment:  Budget/hours/exam/relocation nudge (±24).
        constraint_fit_score:   ``constraint_adjustment`` mapped to 0-100.
        score:                  Final ranking score in [1, 100].
    """

    model_config = ConfigDict(frozen=True)

    id:                     str
    title:                  str
    lane:                   str
    reason:                 str
    score_gain:             int
    months:                 int
    confidence:             int
    effort:                 Difficulty
    exam_sensitive:         bool = False
    estimated_cost_cad:     int = 0
    required_weekly_hours:  int = 0
    components:             ScoreComponents
    base_score:             float
    risk_penalty:           int
    risk_flags:             tuple[RiskFlag, ...] = ()
    constraint_adjustment:  int = 0
    constraint_fit_score:   int = 50
    score:                  int

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"score must be in [1, 100], got {v}.")
        return v


class Bottleneck(BaseModel):
    model_config = ConfigDict(frozen=True)

    key:      str
    label:    str
    value:    int
    headroom: int


class StrategyReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    score:              int
    cutoff:             int
    gap:                int
    ranked:             tuple[RankedOption, ...] = ()
    top:                Optional[RankedOption] = None
    next_best:          Optional[RankedOption] = None
    bottlenecks:        tuple[Bottleneck, ...] = ()
    profile_signals:    tuple[RiskFlag, ...] = ()
    global_risk_flags:  tuple[RiskFlag, ...] = ()
    overall_confidence: int = 0
    confidence_band:    ConfidenceBand = "Low"
    guidance_summary:   str = ""
    constraints:        OptimizerConstraints = OptimizerConstraints()


# ── 90-day action plan ────────────────────────────────────────────────────────

Priority = Literal["High", "Medium", "Low"]


class PlanTask(BaseModel):
    """One dated task in the 90-day action plan.

    Attributes:
        id:        Stable task id, e.g. ``plan-primary-lane``.
        window:    Display label, ``"Day 11-35"``.
        day_from:  First day of the window (1-based).
        day_to:    Last day of the window, inclusive.
        impact:    Expected CRS gain credited to this task (0 for readiness work).
        lane:      Lane or workstream the task belongs to.
    """

    model_config = ConfigDict(frozen=True)

    id:        str
    title:     str
    rationale: str
    window:    str
    day_from:  int
    day_to:    int
    impact:    int = 0
    lane:      str
    priority:  Priority = "Medium"


class ActionMilestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    label:         str
    objective:     str
    expected_gain: int = 0


class ActionPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    tasks:      tuple[PlanTask, ...] = ()
    milestones: tuple[ActionMilestone, ...] = ()
