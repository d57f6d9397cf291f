"""
Language level normalization.

Every language lookup in the CRS tables is keyed by a Canadian Language
Benchmark level (CLB for English, NCLC for French) between 0 and 12.  Test
results arrive in test-specific units and are converted here:

  CELPIP / CLB / NCLC  → level = int(raw), clamped to 0..12
  IELTS band           → CLB via per-skill threshold rows
  TEF / TCF points     → NCLC via per-skill threshold rows

Threshold rows come from the policy snapshot (``converters``) and are sorted
highest-first: the first row whose minimum the raw score reaches wins.

Primary vs secondary
--------------------
The *primary* language is the applicant's first official language (English
unless ``first_official_language == "french"``).  The other language is
*secondary* and only counts when the applicant actually has it: a declared
English test, or ``has_french`` for French.
"""

from __future__ import annotations

from typing import Sequence

from crs_planner.models.policy import PolicySnapshot, ThresholdRow
from crs_planner.models.profile import SKILLS, LanguageScores, Profile

Levels = dict[str, int]

MAX_LEVEL = 12

_ZERO: Levels = {s: 0 for s in SKILLS}


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def level_from_thresholds(raw: float, rows: Sequence[ThresholdRow]) -> int:
    """Return the level of the first row whose minimum ``raw`` reaches."""
    for minimum, level in rows:
        if raw >= minimum:
            return int(level)
    return 0


def _direct_levels(scores: LanguageScores) -> Levels:
    return {s: _clamp(int(scores.get(s)), 0, MAX_LEVEL) for s in SKILLS}


def _converted_levels(scores: LanguageScores, table: dict[str, tuple[ThresholdRow, ...]]) -> Levels:
    return {s: level_from_thresholds(scores.get(s), table.get(s, ())) for s in SKILLS}


def english_levels(profile: Profile, policy: PolicySnapshot) -> Levels:
    """Per-skill English CLB; all zero when no English test is declared."""
    if profile.lang_test_type == "ielts":
        return _converted_levels(profile.english, policy.converters.ielts)
    if profile.lang_test_type in ("celpip", "clb"):
        return _direct_levels(profile.english)
    return dict(_ZERO)


def has_french_ability(profile: Profile) -> bool:
    return profile.has_french or profile.first_official_language == "french"


def french_levels(profile: Profile, policy: PolicySnapshot) -> Levels:
    """Per-skill French NCLC; all zero when the applicant has no French."""
    if not has_french_ability(profile):
        return dict(_ZERO)
    if profile.french_test_type == "tef":
        return _converted_levels(profile.french, policy.converters.tef)
    if profile.french_test_type == "tcf":
        return _converted_levels(profile.french, policy.converters.tcf)
    return _direct_levels(profile.french)


def spouse_levels(profile: Profile) -> Levels:
    return _direct_levels(profile.spouse_language)


def primary_levels(profile: Profile, policy: PolicySnapshot) -> Levels:
    if profile.first_official_language == "french":
        return french_levels(profile, policy)
    return english_levels(profile, policy)


def secondary_levels(profile: Profile, policy: PolicySnapshot) -> Levels:
    if profile.first_official_language == "french":
        return english_levels(profile, policy)
    if profile.has_french:
        return french_levels(profile, policy)
    return dict(_ZERO)


def minimum_level(levels: Levels) -> int:
    return min(levels.values()) if levels else 0
