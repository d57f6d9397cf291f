"""
Scoring output models.

``ScoreResult`` is what ``crs_planner.scoring.engine.score`` returns: the
capped total, the four top-level buckets, a per-factor breakdown, and a stamp
naming the policy snapshot that produced it.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict

from crs_planner.models.policy import PolicySource


class ScoreBreakdown(BaseModel):
    """The four CRS buckets, each already clamped to its cap."""

    model_config = ConfigDict(frozen=True)

    core_human_capital:    int = 0
    spouse_factors:        int = 0
    skill_transferability: int = 0
    additional_points:     int = 0

    @property
    def total(self) -> int:
        return (
            self.core_human_capital
            + self.spouse_factors
            + self.skill_transferability
            + self.additional_points
        )


class ScoreDetails(BaseModel):
    """Per-factor contributions feeding the buckets."""

    model_config = ConfigDict(frozen=True)

    age:              int = 0
    education:        int = 0
    first_language:   int = 0
    second_language:  int = 0
    canadian_work:    int = 0
    foreign_work:     int = 0
    spouse_total:     int = 0
    skill_total:      int = 0
    additional_total: int = 0


class PolicyStamp(BaseModel):
    model_config = ConfigDict(frozen=True)

    version:        str
    effective_date: date
    source:         PolicySource


class ScoreResult(BaseModel):
    """A scored profile.

    Attributes:
        total:     min(breakdown.total, crs_total cap).
        breakdown: Bucket totals.
        details:   Factor contributions.
        policy:    Snapshot id, effective date, and resolution source.
    """

    model_config = ConfigDict(frozen=True)

    total:     int
    breakdown: ScoreBreakdown
    details:   ScoreDetails
    policy:    PolicyStamp
