"""
Improvement path planning for the CRS planner.

  planning/catalog.py: Lane definitions: applicability, profile patch,
                       cost / duration / difficulty, milestone templates.
  planning/planner.py: Re-scores each lane, computes fit scores, builds the
                       combination plan, ranks and truncates.
  planning/suggestions.py: Quick-win levers with re-scored or fixed gains.
"""

from crs_planner.planning.planner import (
    build_combo_plan,
    build_plans,
    compute_fit_score,
    default_target_score,
    distribute_gain,
)
from crs_planner.planning.suggestions import generate_suggestions

__all__ = [
    "build_combo_plan",
    "build_plans",
    "compute_fit_score",
    "default_target_score",
    "distribute_gain",
    "generate_suggestions",
]
