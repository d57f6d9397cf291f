"""
Draw cutoff forecasting for the CRS planner.

  forecast/loader.py : Load ``recent_draws.json`` into a DrawHistory.
  forecast/engine.py : Linear projection of the next three cutoffs.
  forecast/outlook.py: 3/6/12-month invitation probabilities.
"""

from crs_planner.forecast.engine import forecast, likelihood_band
from crs_planner.forecast.loader import build_draw_history, load_draw_history
from crs_planner.forecast.outlook import build_invitation_outlook

__all__ = [
    # Loading
    "build_draw_history",
    "load_draw_history",
    # Projection
    "forecast",
    "likelihood_band",
    "build_invitation_outlook",
]
