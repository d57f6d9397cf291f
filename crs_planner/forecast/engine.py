"""
Draw cutoff forecasting.

A deliberately simple linear model over the most recent draws.  It is meant
to give applicants a sense of direction, not a prediction to plan around.

Algorithm
---------
  1. Take the newest ``window`` observations (default 8).
  2. slope  = (newest − oldest) / (n − 1)          0 when n = 1
  3. projected[k] = clamp(newest + slope · k, floor, ceiling),  k = 1..3
  4. volatility = population standard deviation of the window
  5. confidence = base
                + min(18, 3 · (n − 1))            more draws → more confidence
                − min(24, 1.2 · volatility)       noisier cutoffs → less
                + recency                         +4 if newest ≤ 21 days old,
                                                  −8 if older than 60 days
     clamped to [20, 92]
  6. trend: slope > 1.5 rising, < −1.5 falling, otherwise stable
  7. invitation likelihood from current_score − projected[0]:
       ≥ 20 High · ≥ 0 Medium · < 0 Low

An empty series returns None ("forecast unavailable"), never an error.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError

from crs_planner.models.forecast import (
    DRAW_STREAMS,
    DrawHistory,
    ForecastResult,
    InvitationLikelihood,
    ThresholdObservation,
    TrendDirection,
)
from crs_planner.models.profile import to_int

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 8
DEFAULT_BASE_CONFIDENCE = 60.0
SCORE_FLOOR = 250
SCORE_CEILING = 900
PROJECTION_STEPS = 3

TREND_THRESHOLD = 1.5
CONFIDENCE_RANGE = (20, 92)

_TREND_LABELS: dict[str, str] = {
    "rising":  "Rising cutoffs",
    "falling": "Easing cutoffs",
    "stable":  "Stable cutoffs",
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def likelihood_band(value: float) -> InvitationLikelihood:
    if value >= 70:
        return "High"
    if value >= 45:
        return "Medium"
    return "Low"


def _validated(items: Iterable[Any]) -> list[ThresholdObservation]:
    observations: list[ThresholdObservation] = []
    for item in items:
        if isinstance(item, ThresholdObservation):
            observations.append(item)
        elif isinstance(item, Mapping):
            try:
                observations.append(ThresholdObservation.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed draw observation %r: %s", item, exc.errors()[0]["msg"])
    return observations


def _coerce_observations(series: Any, streams: Optional[tuple[str, ...]]) -> list[ThresholdObservation]:
    if series is None:
        return []
    if isinstance(series, DrawHistory):
        return list(series.observations(streams))
    if isinstance(series, Mapping):
        # Raw draws document keyed by stream; entries are tagged like the loader does.
        tagged: list[Any] = []
        for stream in streams or DRAW_STREAMS:
            entries = series.get(stream)
            if not isinstance(entries, (list, tuple)):
                continue
            tagged.extend({**e, "stream": stream} if isinstance(e, Mapping) else e for e in entries)
        return _validated(tagged)
    if isinstance(series, Iterable) and not isinstance(series, (str, bytes)):
        return _validated(series)
    return []


def trend_of(slope: float) -> TrendDirection:
    if slope > TREND_THRESHOLD:
        return "rising"
    if slope < -TREND_THRESHOLD:
        return "falling"
    return "stable"


def recency_adjustment(latest: date, as_of: date) -> int:
    age_days = (as_of - latest).days
    if age_days <= 21:
        return 4
    if age_days > 60:
        return -8
    return 0


def invitation_likelihood(gap: int) -> InvitationLikelihood:
    if gap >= 20:
        return "High"
    if gap >= 0:
        return "Medium"
    return "Low"


def forecast(
    series:          Any,
    current_score:   int,
    base_confidence: float = DEFAULT_BASE_CONFIDENCE,
    *,
    as_of:           Optional[date] = None,
    window:          int = DEFAULT_WINDOW,
    score_floor:     int = SCORE_FLOOR,
    score_ceiling:   int = SCORE_CEILING,
    streams:         Optional[tuple[str, ...]] = None,
) -> Optional[ForecastResult]:
    """Project the next three draw cutoffs.

    Args:
        series:          ``DrawHistory``, a raw draws mapping keyed by
                         stream, or any iterable of ``ThresholdObservation``
                         / mappings.  Malformed entries are skipped.
        current_score:   The applicant's CRS score; unparsable values
                         count as 0.
        base_confidence: Starting confidence before adjustments.
        as_of:           Reference date for recency; defaults to today.
        window:          Number of newest observations used.
        score_floor:     Lower clamp for projections.
        score_ceiling:   Upper clamp for projections.
        streams:         Streams to merge from a ``DrawHistory`` or raw
                         mapping (all when None).

    Returns:
        ForecastResult, or None when there are no observations.
    """
    observations = _coerce_observations(series, streams)
    if not observations:
        logger.debug("No draw observations; forecast unavailable.")
        return None

    newest_first = sorted(observations, key=lambda o: o.draw_date, reverse=True)[: max(window, 1)]
    chronological = list(reversed(newest_first))
    scores = [o.score for o in chronological]
    n = len(scores)

    slope = (scores[-1] - scores[0]) / (n - 1) if n > 1 else 0.0
    latest = newest_first[0]

    projected = tuple(
        int(_clamp(round(latest.score + slope * step), score_floor, score_ceiling))
        for step in range(1, PROJECTION_STEPS + 1)
    )
    volatility = statistics.pstdev(scores) if n > 1 else 0.0

    reference = as_of or date.today()
    confidence = (
        base_confidence
        + min(18.0, 3.0 * (n - 1))
        - min(24.0, 1.2 * volatility)
        + recency_adjustment(latest.draw_date, reference)
    )
    confidence_score = int(_clamp(round(confidence), *CONFIDENCE_RANGE))

    direction = trend_of(slope)
    gap = to_int(current_score) - projected[0]

    return ForecastResult(
        sample_size=n,
        latest_observed_cutoff=latest.score,
        latest_draw_date=latest.draw_date,
        slope_per_draw=round(slope, 2),
        volatility=round(volatility, 2),
        projected_draws=projected,
        projected_next_cutoff=projected[0],
        projected_three_draw_avg=round(sum(projected) / len(projected)),
        trend_direction=direction,
        trend_label=_TREND_LABELS[direction],
        confidence_score=confidence_score,
        confidence_band=likelihood_band(confidence_score),
        user_gap_to_next=gap,
        invitation_likelihood=invitation_likelihood(gap),
    )
