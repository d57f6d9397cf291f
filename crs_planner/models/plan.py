"""
Improvement-plan models produced by ``crs_planner.planning``.

Each ``PlanCandidate`` describes one lever (retake a language test, add a
year of Canadian work, ...) together with the score it would reach, rough
cost and duration, and a list of milestones whose expected gains add up to
the plan's ``potential_gain``.

``Suggestion`` is the lighter, unranked form: a single lever with its gain,
used for the quick-win list.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

Difficulty = Literal["Easy", "Medium", "Hard"]
Likelihood = Literal["high", "medium", "low"]
PlanCategory = Literal["language", "work", "education", "spouse", "provincial", "combo"]


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id:            str
    title:         str
    details:       str = ""
    eta_weeks:     int = 1
    expected_gain: int = 0
    month_hint:    int = 1

    @field_validator("expected_gain")
    @classmethod
    def validate_gain(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"expected_gain must be >= 0, got {v}.")
        return v


class PlanChecks(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_score:            int
    current_score:           int
    still_needed_after_path: int


class PlanCandidate(BaseModel):
    """One ranked improvement path.

    Attributes:
        id:                 Stable lane id, e.g. ``english-accelerator``.
        title:              Short display title.
        summary:            One-sentence description of the lever.
        category:           Lever family (language, work, education, ...).
        difficulty:         Easy / Medium / Hard.
        estimated_months:   Rough time to complete.
        estimated_cost_cad: Rough out-of-pocket cost.
        projected_score:    Score after the lever is pulled.
        potential_gain:     projected_score − current score (always > 0).
        goal_reached:       projected_score ≥ target.
        why_it_fits:        Human-readable rationale.
        likelihood:         Qualitative chance of completing the lever.
        likelihood_percent: Numeric form of ``likelihood``.
        fit_score:          Ranking key (higher is better).
        milestones:         Steps whose expected gains sum to potential_gain.
        checks:             Target / current / remaining gap after the path.
    """

    model_config = ConfigDict(frozen=True)

    id:                 str
    title:              str
    summary:            str
    category:           PlanCategory
    difficulty:         Difficulty
    estimated_months:   int
    estimated_cost_cad: int
    projected_score:    int
    potential_gain:     int
    goal_reached:       bool
    why_it_fits:        str
    likelihood:         Likelihood
    likelihood_percent: int
    fit_score:          int
    milestones:         tuple[Milestone, ...] = ()
    checks:             PlanChecks

    @model_validator(mode="after")
    def validate_gain(self) -> "PlanCandidate":
        if self.potential_gain <= 0:
            raise ValueError(f"potential_gain must be > 0, got {self.potential_gain}.")
        if self.milestones:
            total = sum(m.expected_gain for m in self.milestones)
            if total != self.potential_gain:
                raise ValueError(
                    f"Milestone gains ({total}) must sum to potential_gain "
                    f"({self.potential_gain})."
                )
        return self


class PlanSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_score: int
    target_score:  int
    plans:         tuple[PlanCandidate, ...] = ()


SuggestionIcon = Literal["language", "education", "work", "french", "province", "job", "study", "family"]


class Suggestion(BaseModel):
    """One quick what-if lever, as shown beside the score breakdown.

    ``potential_gain`` is re-scored where the lever maps onto a profile
    field, and a fixed award (nomination, Canadian study, sibling) otherwise.
    """

    model_config = ConfigDict(frozen=True)

    title:          str
    description:    str
    potential_gain: int
    difficulty:     Difficulty
    timeframe:      str
    icon:           SuggestionIcon
