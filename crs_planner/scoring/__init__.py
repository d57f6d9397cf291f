"""
CRS scoring for the CRS planner.

  scoring/language.py: Test-score → CLB/NCLC normalization.
  scoring/engine.py  : score(), rescore(), and language minimum helpers.

All functions here are pure: same profile + same snapshot → same result.
"""

from crs_planner.scoring.engine import (
    min_clb,
    min_first_language_level,
    min_french_nclc,
    rescore,
    score,
)

__all__ = [
    "min_clb",
    "min_first_language_level",
    "min_french_nclc",
    "rescore",
    "score",
]
