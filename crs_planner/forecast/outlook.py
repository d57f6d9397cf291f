"""
Invitation outlook over 3, 6 and 12 months.

Extends a ``ForecastResult`` forward in time and combines it with the
expected gain of the applicant's top strategy lane.

Per horizon
-----------
    draws_ahead      = 2 · months                     (≈ two general draws / month)
    projected_cutoff = clamp(next_cutoff + slope · (draws_ahead − 1), 250, 900)
    expected_gain    = round(top_gain · min(1, months / top_months))
    score_gap        = current + expected_gain − projected_cutoff

    base  = logistic(score_gap / spread)              spread = max(8, volatility)
    best  = logistic((score_gap + volatility) / spread)
    worst = logistic((score_gap − volatility − expected_gain) / spread)
    interval = base ± (100 − confidence) / 4 + months / 2

Every probability is a whole percentage clamped to [1, 99].  The recommended
horizon is the earliest with a base probability of at least 60%, otherwise
the horizon with the highest base probability.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from crs_planner.forecast.engine import SCORE_CEILING, SCORE_FLOOR, likelihood_band
from crs_planner.models.forecast import ForecastResult, InvitationOutlook, OutlookHorizon
from crs_planner.models.profile import to_int
from crs_planner.models.strategy import RankedOption

HORIZON_MONTHS: tuple[int, ...] = (3, 6, 12)
DRAWS_PER_MONTH = 2
RECOMMEND_THRESHOLD = 60
MIN_SPREAD = 8.0


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _probability(x: float) -> int:
    return int(_clamp(round(100.0 / (1.0 + math.exp(-x))), 1, 99))


def _horizon(
    months:        int,
    current_score: int,
    fc:            ForecastResult,
    top_gain:      int,
    top_months:    int,
    confidence:    int,
) -> OutlookHorizon:
    draws_ahead = months * DRAWS_PER_MONTH
    projected_cutoff = int(_clamp(
        round(fc.projected_next_cutoff + fc.slope_per_draw * (draws_ahead - 1)),
        SCORE_FLOOR, SCORE_CEILING,
    ))
    realized = min(1.0, months / max(top_months, 1))
    expected_gain = round(top_gain * realized)
    expected_score = min(current_score + expected_gain, 1200)
    score_gap = expected_score - projected_cutoff

    spread = max(MIN_SPREAD, fc.volatility)
    base = _probability(score_gap / spread)
    best = _probability((score_gap + fc.volatility) / spread)
    worst = _probability((score_gap - fc.volatility - expected_gain) / spread)

    half_width = (100 - confidence) / 4 + months / 2
    return OutlookHorizon(
        id=f"{months}m",
        label=f"{months} months",
        months=months,
        projected_cutoff=projected_cutoff,
        expected_gain=expected_gain,
        expected_score=expected_score,
        score_gap=score_gap,
        base_probability=base,
        best_probability=best,
        worst_probability=worst,
        interval_low=int(_clamp(round(base - half_width), 1, 99)),
        interval_high=int(_clamp(round(base + half_width), 1, 99)),
        band=likelihood_band(base),
    )


def build_invitation_outlook(
    current_score:      Any,
    fc:                 ForecastResult,
    *,
    top_option:         Optional[RankedOption] = None,
    overall_confidence: Optional[int] = None,
) -> InvitationOutlook:
    """Build the 3/6/12-month outlook.

    Args:
        current_score:      Applicant's current CRS score.
        fc:                 Forecast over recent draws.
        top_option:         Highest-ranked strategy option; its gain is phased
                            in over its estimated months.  No gain when None.
        overall_confidence: Strategy confidence; averaged with forecast
                            confidence when supplied.
    """
    current_score = to_int(current_score)
    confidence = fc.confidence_score
    if overall_confidence is not None:
        confidence = round((confidence + overall_confidence) / 2)

    top_gain = top_option.score_gain if top_option else 0
    top_months = top_option.months if top_option else 1

    horizons = tuple(
        _horizon(m, current_score, fc, top_gain, top_months, confidence)
        for m in HORIZON_MONTHS
    )

    recommended = next(
        (h for h in horizons if h.base_probability >= RECOMMEND_THRESHOLD),
        max(horizons, key=lambda h: h.base_probability),
    )

    drivers = [
        f"{fc.trend_label} ({fc.slope_per_draw:+.2f} per draw)",
        f"Current gap to next projected cutoff: {fc.user_gap_to_next:+d}",
        f"Cutoff volatility {fc.volatility:.1f}",
    ]
    if top_option is not None:
        drivers.append(f"Top lane {top_option.title} adds up to {top_option.score_gain} points")

    summary = (
        f"Best window: {recommended.label} at about {recommended.base_probability}% "
        f"(range {recommended.interval_low}-{recommended.interval_high}%)."
    )

    return InvitationOutlook(
        current_score=current_score,
        horizons=horizons,
        recommended_horizon_id=recommended.id,
        confidence_score=int(confidence),
        confidence_band=likelihood_band(confidence),
        top_lane=top_option.lane if top_option else None,
        key_drivers=tuple(drivers),
        summary=summary,
    )
