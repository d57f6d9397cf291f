"""
Category-based draw eligibility.

  french_floor → every French skill at or above ``min_level`` NCLC, after
                 TEF/TCF conversion under the active policy.
  occupation   → ``profile.occupation_category`` is listed in ``occupations``.
"""

from __future__ import annotations

from typing import Any, Sequence

from crs_planner.models.policy import PolicySnapshot, ResolvedPolicy
from crs_planner.models.profile import Profile
from crs_planner.models.strategy import CategorySignal
from crs_planner.scoring.engine import min_french_nclc
from crs_planner.signals.loader import CategoryDefinition


def is_eligible(definition: CategoryDefinition, profile: Profile, french_min: int) -> bool:
    if definition.kind == "french_floor":
        return french_min >= definition.min_level
    return profile.occupation_category in definition.occupations


def evaluate_categories(
    profile:     Any,
    definitions: Sequence[CategoryDefinition],
    policy:      PolicySnapshot | ResolvedPolicy,
) -> list[CategorySignal]:
    """One ``CategorySignal`` per definition, in definition order."""
    applicant = Profile.coerce(profile)
    french_min = min_french_nclc(applicant, policy)
    return [
        CategorySignal(
            id=d.id,
            name=d.name,
            recent_cutoff=d.recent_cutoff,
            eligible=is_eligible(d, applicant, french_min),
        )
        for d in definitions
    ]
