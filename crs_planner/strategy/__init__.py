"""
Strategy optimization for the CRS planner.

  strategy/constraints.py: Normalize user constraints; budget / hours /
                           exam / relocation adjustments.
  strategy/risk.py       : Profile signals, lane risk flags, penalties.
  strategy/scorer.py     : Five-component weighted option score.
  strategy/optimizer.py  : Builds options from plans and signals, ranks them,
                           assembles the StrategyReport.
  strategy/action_plan.py: 90-day task schedule built from a StrategyReport.
"""

from crs_planner.strategy.action_plan import build_action_plan
from crs_planner.strategy.constraints import (
    constraints_fingerprint,
    normalize_constraints,
)
from crs_planner.strategy.optimizer import optimize_strategy
from crs_planner.strategy.risk import merge_flags, profile_signals, risk_penalty

__all__ = [
    "build_action_plan",
    "constraints_fingerprint",
    "merge_flags",
    "normalize_constraints",
    "optimize_strategy",
    "profile_signals",
    "risk_penalty",
]
