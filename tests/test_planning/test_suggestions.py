"""
Tests for the quick-win suggestion list.

Covers:
  - Fixed-award levers (nomination, Canadian study, sibling) and their
    policy amounts
  - Re-scored levers: language (CELPIP and IELTS), education, Canadian
    work, French, job offer, spouse language
  - Levers that no longer apply are left out
  - Ordering by gain, largest first
  - Loose inputs: mapping profile, precomputed score, empty profile
"""

from __future__ import annotations

import pytest

from crs_planner.models.profile import LanguageScores, Profile
from crs_planner.planning.suggestions import generate_suggestions
from crs_planner.scoring.engine import score


def _by_title(suggestions) -> dict:
    return {s.title: s for s in suggestions}


class TestFixedAwards:
    def test_nomination_ranks_first(self, skilled_worker, policy_2025):
        top = generate_suggestions(skilled_worker, policy_2025)[0]
        assert top.title == "Provincial Nominee Program"
        assert top.potential_gain == 600
        assert top.icon == "province"

    def test_study_and_sibling_awards(self, skilled_worker, policy_2025):
        found = _by_title(generate_suggestions(skilled_worker, policy_2025))
        assert found["Study in Canada"].potential_gain == 30
        assert found["Sibling in Canada (If Applicable)"].potential_gain == 15
        assert found["Sibling in Canada (If Applicable)"].difficulty == "Easy"

    def test_already_held_levers_skipped(self, skilled_worker, policy_2025):
        held = skilled_worker.merged(
            has_pnp=True, has_canadian_education=True, canadian_education_type="long", has_sibling=True,
        )
        titles = {s.title for s in generate_suggestions(held, policy_2025)}
        assert "Provincial Nominee Program" not in titles
        assert "Study in Canada" not in titles
        assert "Sibling in Canada (If Applicable)" not in titles


class TestRescoredLevers:
    def test_gains_match_rescoring(self, skilled_worker, policy_2025):
        baseline = score(skilled_worker, policy_2025).total
        found = _by_title(generate_suggestions(skilled_worker, policy_2025))

        work = found["Gain Canadian Work Experience"]
        assert work.potential_gain == score(skilled_worker.merged(canadian_work_years=2), policy_2025).total - baseline

        education = found["Higher Education"]
        assert education.potential_gain == score(skilled_worker.merged(education="two_or_more"), policy_2025).total - baseline
        assert "two credentials" in education.description

    def test_celpip_language_lever(self, skilled_worker, policy_2025):
        found = _by_title(generate_suggestions(skilled_worker, policy_2025))
        language = found["Improve CELPIP Scores"]
        assert language.potential_gain > 0
        assert "CLB 10" in language.description

    def test_ielts_language_lever(self, policy_2025):
        profile = Profile(age=30, education="bachelors", lang_test_type="ielts", english=LanguageScores.uniform(6.0))
        found = _by_title(generate_suggestions(profile, policy_2025))
        assert found["Improve IELTS Scores"].potential_gain > 0

    def test_maxed_language_skipped(self, skilled_worker, policy_2025):
        maxed = skilled_worker.merged(english=LanguageScores.uniform(10))
        titles = {s.title for s in generate_suggestions(maxed, policy_2025)}
        assert "Improve CELPIP Scores" not in titles

    def test_french_lever(self, skilled_worker, policy_2025):
        found = _by_title(generate_suggestions(skilled_worker, policy_2025))
        assert found["Learn French (TEF/TCF)"].potential_gain > 0
        with_french = skilled_worker.merged(has_french=True, french_test_type="clb", french=LanguageScores.uniform(7))
        assert "Learn French (TEF/TCF)" not in {s.title for s in generate_suggestions(with_french, policy_2025)}

    def test_top_tiers_skipped(self, skilled_worker, policy_2025):
        capped = skilled_worker.merged(education="doctoral", canadian_work_years=5)
        titles = {s.title for s in generate_suggestions(capped, policy_2025)}
        assert "Higher Education" not in titles
        assert "Gain Canadian Work Experience" not in titles

    def test_unknown_education_skipped(self, skilled_worker, policy_2025):
        titles = {s.title for s in generate_suggestions(skilled_worker.merged(education=None), policy_2025)}
        assert "Higher Education" not in titles


class TestJobOffer:
    def test_offer_counts_under_2024(self, skilled_worker, policy_2024):
        found = _by_title(generate_suggestions(skilled_worker, policy_2024))
        assert found["Obtain LMIA-Backed Job Offer"].potential_gain == 50

    def test_offer_dropped_under_2025(self, skilled_worker, policy_2025):
        titles = {s.title for s in generate_suggestions(skilled_worker, policy_2025)}
        assert "Obtain LMIA-Backed Job Offer" not in titles


class TestSpouseLanguage:
    def test_one_level_up(self, skilled_worker, policy_2025):
        couple = skilled_worker.merged(has_spouse=True, spouse_language=LanguageScores.uniform(6))
        found = _by_title(generate_suggestions(couple, policy_2025))
        spouse = found["Improve Spouse's Language Scores"]
        assert spouse.potential_gain == 8
        assert "CLB 7" in spouse.description

    @pytest.mark.parametrize("overrides", [
        {},
        {"has_spouse": True, "spouse_language": LanguageScores.uniform(9)},
        {"has_spouse": True, "spouse_is_canadian": True, "spouse_language": LanguageScores.uniform(6)},
        {"has_spouse": True, "spouse_accompanying": False, "spouse_language": LanguageScores.uniform(6)},
    ], ids=["single", "spouse-maxed", "spouse-canadian", "spouse-not-coming"])
    def test_not_applicable(self, skilled_worker, policy_2025, overrides):
        titles = {s.title for s in generate_suggestions(skilled_worker.merged(**overrides), policy_2025)}
        assert "Improve Spouse's Language Scores" not in titles


class TestOrdering:
    def test_sorted_by_gain(self, skilled_worker, policy_2024):
        gains = [s.potential_gain for s in generate_suggestions(skilled_worker, policy_2024)]
        assert gains == sorted(gains, reverse=True)
        assert all(g > 0 for g in gains)

    def test_precomputed_score_is_baseline(self, skilled_worker, policy_2025):
        current = score(skilled_worker, policy_2025)
        assert generate_suggestions(skilled_worker, policy_2025, current) == generate_suggestions(
            skilled_worker, policy_2025
        )

    def test_mapping_profile(self, policy_2025):
        found = _by_title(generate_suggestions({"age": "30", "hasPNP": "no"}, policy_2025))
        assert "Provincial Nominee Program" in found

    def test_empty_profile(self, policy_2025):
        suggestions = generate_suggestions(None, policy_2025)
        assert suggestions[0].title == "Provincial Nominee Program"
