"""
Draw-history and cutoff-forecast models.

``ThresholdObservation`` is one historical invitation round.  ``DrawHistory``
groups rounds by stream as published in ``config/draws/recent_draws.json``.
``ForecastResult`` is recomputed on every call and never persisted here.
"""

from __future__ import annotations

from datetime import date
from typing import Iterator, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DrawStream = Literal["general_program", "category_based", "pnp_draws"]
TrendDirection = Literal["rising", "falling", "stable"]
InvitationLikelihood = Literal["High", "Medium", "Low"]

DRAW_STREAMS: tuple[str, ...] = ("general_program", "category_based", "pnp_draws")


class ThresholdObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    draw_date:   date = Field(validation_alias=AliasChoices("draw_date", "date"))
    score:       int
    invitations: Optional[int] = None
    program:     Optional[str] = None
    stream:      DrawStream = "general_program"

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: int) -> int:
        if not 0 <= v <= 1200:
            raise ValueError(f"Draw score must be in [0, 1200], got {v}.")
        return v


class DrawHistory(BaseModel):
    """Historical rounds split by stream."""

    model_config = ConfigDict(frozen=True)

    last_updated:    Optional[date] = None
    general_program: tuple[ThresholdObservation, ...] = ()
    category_based:  tuple[ThresholdObservation, ...] = ()
    pnp_draws:       tuple[ThresholdObservation, ...] = ()

    def observations(self, streams: Optional[tuple[str, ...]] = None) -> Iterator[ThresholdObservation]:
        """Yield observations from ``streams`` (all streams when None)."""
        for stream in streams or DRAW_STREAMS:
            yield from getattr(self, stream, ())

    def __len__(self) -> int:
        return len(self.general_program) + len(self.category_based) + len(self.pnp_draws)


class ForecastResult(BaseModel):
    """Linear projection of upcoming cutoffs.

    Attributes:
        sample_size:              Observations used (≤ window).
        latest_observed_cutoff:   Score of the most recent observation.
        latest_draw_date:         Date of the most recent observation.
        slope_per_draw:           Average change per draw, oldest → newest.
        volatility:               Population standard deviation of the window.
        projected_draws:          Next three projected cutoffs.
        projected_next_cutoff:    ``projected_draws[0]``.
        projected_three_draw_avg: Mean of ``projected_draws``.
        trend_direction:          rising / falling / stable (threshold ±1.5 per draw).
        trend_label:              Human-readable trend.
        confidence_score:         20-92.
        confidence_band:          High / Medium / Low.
        user_gap_to_next:         current_score − projected_next_cutoff.
        invitation_likelihood:    High / Medium / Low.
    """

    model_config = ConfigDict(frozen=True)

    sample_size:              int
    latest_observed_cutoff:   int
    latest_draw_date:         date
    slope_per_draw:           float
    volatility:               float
    projected_draws:          tuple[int, int, int]
    projected_next_cutoff:    int
    projected_three_draw_avg: int
    trend_direction:          TrendDirection
    trend_label:              str
    confidence_score:         int
    confidence_band:          InvitationLikelihood
    user_gap_to_next:         int
    invitation_likelihood:    InvitationLikelihood


class OutlookHorizon(BaseModel):
    """Invitation chances at one horizon.

    All probabilities are whole percentages in [1, 99] and satisfy
    ``worst <= interval_low <= base <= interval_high`` only loosely; each
    value is clamped independently.
    """

    model_config = ConfigDict(frozen=True)

    id:                str
    label:             str
    months:            int
    projected_cutoff:  int
    expected_gain:     int
    expected_score:    int
    score_gap:         int
    base_probability:  int
    best_probability:  int
    worst_probability: int
    interval_low:      int
    interval_high:     int
    band:              InvitationLikelihood


class InvitationOutlook(BaseModel):
    """3/6/12-month invitation outlook built on top of a ``ForecastResult``."""

    model_config = ConfigDict(frozen=True)

    current_score:          int
    horizons:               tuple[OutlookHorizon, ...]
    recommended_horizon_id: str
    confidence_score:       int
    confidence_band:        InvitationLikelihood
    top_lane:               Optional[str] = None
    key_drivers:            tuple[str, ...] = ()
    summary:                str = ""
