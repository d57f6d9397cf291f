"""Tests for language level conversion."""

from __future__ import annotations

from crs_planner.models.profile import LanguageScores, Profile
from crs_planner.scoring.language import (
    english_levels,
    french_levels,
    has_french_ability,
    level_from_thresholds,
    minimum_level,
    primary_levels,
    secondary_levels,
    spouse_levels,
)

ROWS = ((8.0, 10), (7.0, 9), (6.5, 8), (6.0, 7))


class TestThresholds:
    def test_first_reached_row_wins(self):
        assert level_from_thresholds(7.2, ROWS) == 9
        assert level_from_thresholds(8.0, ROWS) == 10

    def test_below_every_row_is_zero(self):
        assert level_from_thresholds(5.5, ROWS) == 0
        assert level_from_thresholds(5.5, ()) == 0

    def test_minimum_level(self):
        assert minimum_level({"listening": 9, "reading": 7, "writing": 8, "speaking": 10}) == 7
        assert minimum_level({}) == 0


class TestEnglish:
    def test_ielts_per_skill(self, policy_2025):
        profile = Profile(
            lang_test_type="ielts",
            english=LanguageScores(listening=6.0, reading=6.5, writing=7.5, speaking=5.5),
        )
        levels = english_levels(profile, policy_2025.snapshot)
        assert levels == {"listening": 7, "reading": 8, "writing": 10, "speaking": 6}

    def test_clb_taken_directly(self, policy_2025):
        profile = Profile(lang_test_type="clb", english=LanguageScores.uniform(8.7))
        assert set(english_levels(profile, policy_2025.snapshot).values()) == {8}

    def test_declared_none_scores_zero(self, policy_2025):
        profile = Profile(lang_test_type="none", english=LanguageScores.uniform(9))
        assert set(english_levels(profile, policy_2025.snapshot).values()) == {0}


class TestFrench:
    def test_first_language_french_implies_ability(self):
        assert has_french_ability(Profile(first_official_language="french")) is True
        assert has_french_ability(Profile()) is False

    def test_tcf_per_skill(self, policy_2025):
        profile = Profile(
            has_french=True,
            french_test_type="tcf",
            french=LanguageScores(listening=549, reading=575, writing=14, speaking=20),
        )
        levels = french_levels(profile, policy_2025.snapshot)
        assert levels == {"listening": 7, "reading": 8, "writing": 6, "speaking": 10}

    def test_primary_and_secondary_swap(self, policy_2025):
        profile = Profile(
            first_official_language="french",
            french=LanguageScores.uniform(9),
            lang_test_type="celpip",
            english=LanguageScores.uniform(6),
        )
        snap = policy_2025.snapshot
        assert minimum_level(primary_levels(profile, snap)) == 9
        assert minimum_level(secondary_levels(profile, snap)) == 6

    def test_no_secondary_without_french(self, policy_2025):
        profile = Profile(lang_test_type="celpip", english=LanguageScores.uniform(9))
        assert minimum_level(secondary_levels(profile, policy_2025.snapshot)) == 0


def test_spouse_levels_direct():
    profile = Profile(spouse_language=LanguageScores(listening=9, reading=4, writing=7, speaking=5))
    assert spouse_levels(profile) == {"listening": 9, "reading": 4, "writing": 7, "speaking": 5}
