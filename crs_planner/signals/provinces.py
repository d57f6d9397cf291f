"""
Provincial nominee program matching.

Match score (0–100)
-------------------
    language    20  min English CLB ≥ province minimum
               +10  … and at least two levels above it
    education   15  education ≥ province minimum (missing → secondary)
               + 5  … and bachelor's or higher
    work        15  max(canadian, foreign) years ≥ province minimum
               + 5  … and at least three years
    sector      25  occupation category is in demand
    french       5  French ability, French-priority province

Results are sorted by match score, descending.  The sort is stable, so ties
keep definition order.
"""

from __future__ import annotations

from typing import Any, Sequence

from crs_planner.models.policy import PolicySnapshot, ResolvedPolicy
from crs_planner.models.profile import EDUCATION_ORDER, Profile
from crs_planner.models.strategy import ProvinceSignal
from crs_planner.scoring.engine import min_clb
from crs_planner.scoring.language import has_french_ability
from crs_planner.signals.loader import ProvinceDefinition

_BACHELORS_RANK = EDUCATION_ORDER.index("bachelors")


def education_rank(level: str | None) -> int:
    return EDUCATION_ORDER.index(level or "secondary")


def match_score(
    province:   ProvinceDefinition,
    clb:        int,
    edu_rank:   int,
    work_years: int,
    sector:     str | None,
    has_french: bool,
) -> int:
    points = 0
    if clb >= province.min_clb:
        points += 20
        if clb >= province.min_clb + 2:
            points += 10
    if edu_rank >= education_rank(province.min_education):
        points += 15
        if edu_rank >= _BACHELORS_RANK:
            points += 5
    if work_years >= province.min_work_years:
        points += 15
        if work_years >= 3:
            points += 5
    if sector and sector in province.demand_sectors:
        points += 25
    if has_french and province.french_priority:
        points += 5
    return min(points, 100)


def match_provinces(
    profile:   Any,
    provinces: Sequence[ProvinceDefinition],
    policy:    PolicySnapshot | ResolvedPolicy,
) -> list[ProvinceSignal]:
    """Score every province against ``profile``, best match first."""
    applicant = Profile.coerce(profile)
    clb = min_clb(applicant, policy)
    edu = education_rank(applicant.education)
    work_years = max(applicant.canadian_work_years, applicant.foreign_work_years)
    french = has_french_ability(applicant)

    signals = [
        ProvinceSignal(
            id=p.id,
            name=p.name,
            match_score=match_score(p, clb, edu, work_years, applicant.occupation_category, french),
        )
        for p in provinces
    ]
    return sorted(signals, key=lambda s: s.match_score, reverse=True)
