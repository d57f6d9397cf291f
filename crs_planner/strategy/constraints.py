"""
Optimizer constraint normalization and scoring.

``normalize_constraints()`` turns untrusted user input into a valid
``OptimizerConstraints`` (clamping every number into range, defaulting
anything unparsable).  ``constraint_adjustment()`` then nudges one option's
score up or down based on how well it fits those constraints.

Adjustment table (summed, then clamped to ±24)
----------------------------------------------
  budget coverage  (budget / option cost)
      cost 0 → +4 · ≥1.5 → +6 · ≥1.0 → +3 · ≥0.5 → −4 · else −10
  weekly hours     (available / required)
      ≥1.25 → +5 · ≥1.0 → +2 · ≥0.6 → −3 · else −8
  exam headroom    (exam-sensitive options only)
      ≥3 attempts → +5 · 2 → +2 · 1 → −4
  relocation
      province:  Provincial lanes +8, others −3
      federal:   Provincial lanes −8, others +3
      balanced:  0
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping
from typing import Any

from crs_planner.models.profile import to_number
from crs_planner.models.strategy import OptimizerConstraints

BUDGET_RANGE = (500, 50000)
HOURS_RANGE = (1, 30)
ATTEMPTS_RANGE = (1, 5)

DEFAULT_BUDGET = 5000
DEFAULT_HOURS = 8
DEFAULT_ATTEMPTS = 2

MAX_ADJUSTMENT = 24
PROVINCIAL_LANE = "Provincial"

_RELOCATION_CHOICES = ("balanced", "province", "federal")


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _bounded_int(raw: Any, default: int, bounds: tuple[int, int]) -> int:
    value = to_number(raw, float("nan"))
    if math.isnan(value):
        value = default
    return int(_clamp(round(value), *bounds))


def normalize_constraints(raw: Any = None) -> OptimizerConstraints:
    """Build valid constraints from any input; never raises.

    Accepts an ``OptimizerConstraints``, a mapping with snake_case or legacy
    camelCase keys (``budgetCad``, ``weeklyHours`` ...), or None.
    """
    if isinstance(raw, OptimizerConstraints):
        return raw
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    def pick(snake: str, camel: str) -> Any:
        return data.get(snake, data.get(camel))

    relocation = pick("relocation_preference", "relocationPreference")
    relocation = relocation.strip().lower() if isinstance(relocation, str) else ""

    return OptimizerConstraints(
        budget_cad=_bounded_int(pick("budget_cad", "budgetCad"), DEFAULT_BUDGET, BUDGET_RANGE),
        weekly_hours=_bounded_int(pick("weekly_hours", "weeklyHours"), DEFAULT_HOURS, HOURS_RANGE),
        exam_attempts=_bounded_int(pick("exam_attempts", "examAttempts"), DEFAULT_ATTEMPTS, ATTEMPTS_RANGE),
        relocation_preference=relocation if relocation in _RELOCATION_CHOICES else "balanced",
    )


def constraints_fingerprint(constraints: OptimizerConstraints) -> str:
    """Stable SHA-256 of normalized constraints, for call-boundary caching."""
    canonical = json.dumps(constraints.model_dump(mode="json"), sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ── Adjustment components ─────────────────────────────────────────────────────


def budget_adjustment(budget_cad: int, cost_cad: int) -> int:
    if cost_cad <= 0:
        return 4
    coverage = budget_cad / cost_cad
    if coverage >= 1.5:
        return 6
    if coverage >= 1.0:
        return 3
    if coverage >= 0.5:
        return -4
    return -10


def hours_adjustment(weekly_hours: int, required_hours: int) -> int:
    ratio = weekly_hours / max(required_hours, 1)
    if ratio >= 1.25:
        return 5
    if ratio >= 1.0:
        return 2
    if ratio >= 0.6:
        return -3
    return -8


def exam_adjustment(exam_attempts: int, exam_sensitive: bool) -> int:
    if not exam_sensitive:
        return 0
    if exam_attempts >= 3:
        return 5
    if exam_attempts == 2:
        return 2
    return -4


def relocation_adjustment(preference: str, lane: str) -> int:
    provincial = lane == PROVINCIAL_LANE
    if preference == "province":
        return 8 if provincial else -3
    if preference == "federal":
        return -8 if provincial else 3
    return 0


def constraint_adjustment(
    constraints:    OptimizerConstraints,
    *,
    lane:           str,
    cost_cad:       int,
    required_hours: int,
    exam_sensitive: bool,
) -> int:
    """Total constraint nudge for one option, clamped to ±24."""
    total = (
        budget_adjustment(constraints.budget_cad, cost_cad)
        + hours_adjustment(constraints.weekly_hours, required_hours)
        + exam_adjustment(constraints.exam_attempts, exam_sensitive)
        + relocation_adjustment(constraints.relocation_preference, lane)
    )
    return int(_clamp(total, -MAX_ADJUSTMENT, MAX_ADJUSTMENT))


def constraint_fit_score(adjustment: int) -> int:
    """Map an adjustment in [−24, 24] onto 0..100 (0 → 50)."""
    return int(_clamp(round(50 + adjustment * 50 / MAX_ADJUSTMENT), 0, 100))
