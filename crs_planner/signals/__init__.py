"""
Category-draw and provincial signals.

  signals/loader.py    : CategoryDefinition / ProvinceDefinition from TOML.
  signals/categories.py: Category eligibility per profile.
  signals/provinces.py : Provincial match scores per profile.
"""

from crs_planner.signals.categories import evaluate_categories
from crs_planner.signals.loader import (
    CategoryDefinition,
    ProvinceDefinition,
    SignalCatalog,
    build_signal_catalog,
    load_signal_catalog,
)
from crs_planner.signals.provinces import match_provinces

__all__ = [
    # Definitions
    "CategoryDefinition",
    "ProvinceDefinition",
    "SignalCatalog",
    "build_signal_catalog",
    "load_signal_catalog",
    # Evaluation
    "evaluate_categories",
    "match_provinces",
]
