"""
Tests for the CRS scoring engine.

Covers:
  - Reproduction of the point tables (single and spouse columns), swept
    row by row for age, education, Canadian work and both languages
    under each committed snapshot
  - Language input: CELPIP, IELTS conversion, no test declared
  - Spouse factors and the accompanying-spouse rules
  - Skill transferability grids and caps
  - Additional points: PNP, job offers (policy-sensitive), Canadian study,
    sibling, French tiers
  - French as first official language
  - Garbage input never raises and stays within [0, 1200]
  - Policy stamp on every result
"""

from __future__ import annotations

import pytest

from crs_planner.models.profile import LanguageScores, Profile
from crs_planner.scoring.engine import (
    canadian_work_bracket,
    foreign_work_bracket,
    language_bracket,
    min_clb,
    min_first_language_level,
    min_french_nclc,
    rescore,
    score,
)


def _profile(**overrides) -> Profile:
    fields = dict(
        age=30,
        education="bachelors",
        lang_test_type="celpip",
        english=LanguageScores.uniform(9),
        canadian_work_years=1,
        foreign_work_years=3,
    )
    fields.update(overrides)
    return Profile(**fields)


class TestCoreHumanCapital:
    def test_skilled_worker_total(self, skilled_worker, policy_2025):
        result = score(skilled_worker, policy_2025)
        assert result.total == 489
        assert result.breakdown.core_human_capital == 389
        assert result.breakdown.skill_transferability == 100
        assert result.breakdown.spouse_factors == 0
        assert result.breakdown.additional_points == 0

    def test_detail_factors(self, skilled_worker, policy_2025):
        d = score(skilled_worker, policy_2025).details
        assert (d.age, d.education, d.first_language, d.canadian_work) == (105, 120, 124, 40)
        assert d.foreign_work == 3

    def test_age_and_secondary_only(self, policy_2025):
        result = score(Profile(age=30, education="secondary"), policy_2025)
        assert result.total == 135

    @pytest.mark.parametrize("age, expected", [(16, 0), (18, 99), (25, 110), (35, 77), (45, 0), (60, 0)])
    def test_age_rows_clamped(self, policy_2025, age, expected):
        assert score(Profile(age=age), policy_2025).details.age == expected

    def test_unknown_age_scores_zero(self, policy_2025):
        assert score(Profile(), policy_2025).details.age == 0

    def test_canadian_work_capped_at_five_years(self, policy_2025):
        assert score(_profile(canadian_work_years=9), policy_2025).details.canadian_work == 80

    def test_breakdown_sums_to_total(self, skilled_worker, policy_2025):
        result = score(skilled_worker, policy_2025)
        assert result.breakdown.total == result.total


class TestPointTableSweep:
    """Every row of the core tables, in both columns, under both snapshots."""

    @pytest.fixture(params=["policy_2024", "policy_2025"])
    def policy(self, request):
        return request.getfixturevalue(request.param)

    @pytest.fixture(params=[False, True], ids=["single", "spouse"])
    def spouse(self, request) -> bool:
        return request.param

    def test_age_rows(self, policy, spouse):
        col = int(spouse)
        for key, row in policy.snapshot.tables.age_points.items():
            got = score(Profile(age=int(key), has_spouse=spouse), policy).details.age
            assert got == row[col], f"age {key}"

    def test_education_rows(self, policy, spouse):
        col = int(spouse)
        for level, row in policy.snapshot.tables.education_points.items():
            got = score(Profile(education=level, has_spouse=spouse), policy).details.education
            assert got == row[col], f"education {level}"

    def test_first_language_rows(self, policy, spouse):
        col = int(spouse)
        for key, row in policy.snapshot.tables.first_language_points.items():
            applicant = Profile(
                lang_test_type="celpip", english=LanguageScores.uniform(int(key)), has_spouse=spouse,
            )
            assert score(applicant, policy).details.first_language == 4 * row[col], f"CLB {key}"

    def test_second_language_rows(self, policy, spouse):
        col = int(spouse)
        caps = policy.snapshot.caps
        cap = caps.second_language_with_spouse if spouse else caps.second_language_no_spouse
        for key, row in policy.snapshot.tables.second_language_points.items():
            applicant = Profile(
                lang_test_type="celpip",
                english=LanguageScores.uniform(9),
                has_french=True,
                french_test_type="clb",
                french=LanguageScores.uniform(int(key)),
                has_spouse=spouse,
            )
            got = score(applicant, policy).details.second_language
            assert got == min(4 * row[col], cap), f"NCLC {key}"

    def test_canadian_work_rows(self, policy, spouse):
        col = int(spouse)
        for key, row in policy.snapshot.tables.canadian_work_points.items():
            applicant = Profile(canadian_work_years=int(key), has_spouse=spouse)
            assert score(applicant, policy).details.canadian_work == row[col], f"{key} years"

    def test_zero_celpip_scores_age_and_education_only(self, policy):
        tables = policy.snapshot.tables
        applicant = Profile(
            age=30, education="secondary", lang_test_type="celpip", english=LanguageScores.uniform(0),
        )
        expected = tables.education_points["secondary"][0] + tables.age_points["30"][0]
        assert score(applicant, policy).total == expected


class TestSpouseColumn:
    def test_accompanying_spouse_uses_spouse_column(self, policy_2025):
        result = score(_profile(has_spouse=True), policy_2025)
        d = result.details
        assert (d.age, d.education, d.first_language, d.canadian_work) == (95, 112, 116, 35)
        assert result.total == 458

    def test_spouse_factors(self, policy_2025):
        result = score(
            _profile(
                has_spouse=True,
                spouse_education="masters",
                spouse_language=LanguageScores.uniform(9),
                spouse_canadian_work_years=1,
            ),
            policy_2025,
        )
        assert result.breakdown.spouse_factors == 35
        assert result.total == 493

    def test_canadian_spouse_scores_as_single(self, policy_2025):
        assert score(_profile(has_spouse=True, spouse_is_canadian=True), policy_2025).total == 489

    def test_non_accompanying_spouse_scores_as_single(self, policy_2025):
        assert score(_profile(has_spouse=True, spouse_accompanying="no"), policy_2025).total == 489


class TestLanguageInput:
    def test_ielts_bands_converted(self, policy_2025):
        ielts = LanguageScores(listening=8.0, reading=7.0, writing=7.0, speaking=7.0)
        assert score(_profile(lang_test_type="ielts", english=ielts), policy_2025).total == 489

    def test_no_test_scores_no_language(self, policy_2025):
        result = score(_profile(lang_test_type=None), policy_2025)
        assert result.details.first_language == 0
        assert min_clb(_profile(lang_test_type=None), policy_2025) == 0

    def test_celpip_levels_clamped_to_twelve(self, policy_2025):
        assert min_clb(_profile(english=LanguageScores.uniform(15)), policy_2025) == 12


class TestTransferability:
    def test_brackets(self):
        assert [language_bracket(v) for v in (6, 7, 8, 9)] == [0, 1, 1, 2]
        assert [canadian_work_bracket(v) for v in (0, 1, 2, 5)] == [0, 1, 2, 2]
        assert [foreign_work_bracket(v) for v in (0, 2, 3)] == [0, 1, 2]

    def test_pair_caps(self, policy_2025):
        result = score(_profile(canadian_work_years=3), policy_2025)
        assert result.breakdown.skill_transferability == 100

    def test_weak_language_limits_transferability(self, policy_2025):
        result = score(_profile(english=LanguageScores.uniform(4)), policy_2025)
        assert result.breakdown.skill_transferability == 50

    def test_certificate_only_for_trades(self, policy_2025):
        base = dict(education="secondary", foreign_work_years=0, canadian_work_years=0, has_certificate=True)
        fst = score(_profile(pathway="fst", **base), policy_2025)
        fsw = score(_profile(pathway="fsw", **base), policy_2025)
        assert fst.breakdown.skill_transferability - fsw.breakdown.skill_transferability == 50


class TestAdditionalPoints:
    def test_pnp_adds_600(self, skilled_worker, policy_2025):
        assert score(skilled_worker.merged(has_pnp=True), policy_2025).total == 1089

    def test_job_offer_depends_on_policy(self, skilled_worker, policy_2024, policy_2025):
        offer = skilled_worker.merged(has_job_offer=True, job_offer_teer="teer_1")
        assert score(offer, policy_2024).breakdown.additional_points == 50
        assert score(offer, policy_2025).breakdown.additional_points == 0

    def test_major_group_00_offer(self, skilled_worker, policy_2024):
        offer = skilled_worker.merged(has_job_offer=True, job_offer_teer="teer_0", job_offer_major_group_00=True)
        assert score(offer, policy_2024).breakdown.additional_points == 200

    def test_teer_4_offer_scores_nothing(self, skilled_worker, policy_2024):
        offer = skilled_worker.merged(has_job_offer=True, job_offer_teer="teer_4")
        assert score(offer, policy_2024).breakdown.additional_points == 0

    def test_canadian_study_and_sibling(self, skilled_worker, policy_2025):
        short = skilled_worker.merged(has_canadian_education=True, canadian_education_type="short")
        long_ = skilled_worker.merged(has_canadian_education=True, canadian_education_type="long", has_sibling=True)
        assert score(short, policy_2025).breakdown.additional_points == 15
        assert score(long_, policy_2025).breakdown.additional_points == 45

    def test_additional_points_capped(self, skilled_worker, policy_2025):
        everything = skilled_worker.merged(
            has_pnp=True, has_sibling=True, has_canadian_education=True, canadian_education_type="long",
        )
        assert score(everything, policy_2025).breakdown.additional_points == 600


class TestFrenchBonus:
    def test_strong_french_strong_english(self, policy_2025):
        result = score(_profile(has_french=True, french_test_type="clb", french=LanguageScores.uniform(7)), policy_2025)
        assert result.breakdown.additional_points == 50
        assert result.details.second_language == 12
        assert result.total == 551

    def test_strong_french_weak_english(self, policy_2025):
        result = score(
            _profile(
                english=LanguageScores.uniform(4),
                has_french=True,
                french_test_type="clb",
                french=LanguageScores.uniform(7),
            ),
            policy_2025,
        )
        assert result.breakdown.additional_points == 25

    def test_french_below_seven_scores_no_bonus(self, policy_2025):
        result = score(_profile(has_french=True, french_test_type="clb", french=LanguageScores.uniform(6)), policy_2025)
        assert result.breakdown.additional_points == 0

    def test_tef_points_converted(self, policy_2025):
        tef = LanguageScores(listening=316, reading=263, writing=393, speaking=393)
        profile = _profile(has_french=True, french_test_type="tef", french=tef)
        assert min_french_nclc(profile, policy_2025) == 7
        assert score(profile, policy_2025).breakdown.additional_points == 50

    def test_french_scores_ignored_without_french(self, policy_2025):
        profile = _profile(has_french=False, french_test_type="clb", french=LanguageScores.uniform(9))
        assert min_french_nclc(profile, policy_2025) == 0


class TestFrenchFirstLanguage:
    def test_french_primary_english_secondary(self, policy_2025):
        profile = _profile(
            first_official_language="french",
            french_test_type="clb",
            french=LanguageScores.uniform(9),
            english=LanguageScores.uniform(5),
        )
        result = score(profile, policy_2025)
        assert result.details.first_language == 124
        assert result.details.second_language == 4
        assert result.breakdown.additional_points == 50
        assert min_first_language_level(profile, policy_2025) == 9

    def test_french_primary_without_english_test(self, policy_2025):
        profile = _profile(
            first_official_language="french",
            french_test_type="clb",
            french=LanguageScores.uniform(9),
            lang_test_type=None,
        )
        result = score(profile, policy_2025)
        assert result.details.second_language == 0
        assert result.breakdown.additional_points == 25


class TestRobustness:
    def test_garbage_input(self, policy_2025):
        raw = {
            "age": "abc",
            "education": 42,
            "canadianWorkExp": "NaN",
            "celpip_listening": "x",
            "hasPNP": None,
            "spouseLang_reading": [1, 2],
        }
        result = score(raw, policy_2025)
        assert 0 <= result.total <= 1200

    def test_none_profile(self, policy_2025):
        assert score(None, policy_2025).total == 0

    def test_maximal_profile_capped(self, policy_2024):
        result = score(
            _profile(
                age=25,
                education="doctoral",
                english=LanguageScores.uniform(12),
                has_french=True,
                french_test_type="clb",
                french=LanguageScores.uniform(12),
                canadian_work_years=5,
                has_pnp=True,
                has_job_offer=True,
                job_offer_teer="teer_0",
                job_offer_major_group_00=True,
            ),
            policy_2024,
        )
        assert result.total <= 1200

    def test_legacy_mapping(self, policy_2025):
        raw = {
            "age": "30",
            "education": "bachelors",
            "langTestType": "celpip",
            "celpip_listening": "9", "celpip_reading": "9", "celpip_writing": "9", "celpip_speaking": "9",
            "canadianWorkExp": "1",
            "foreignWorkExp": "3",
        }
        assert score(raw, policy_2025).total == 489


class TestPolicyStamp:
    def test_resolved_policy_stamp(self, skilled_worker, policy_2025):
        stamp = score(skilled_worker, policy_2025).policy
        assert stamp.version == "ircc-2025-03-25-v2"
        assert stamp.source == "override"

    def test_bare_snapshot_stamp(self, skilled_worker, policy_2024):
        stamp = score(skilled_worker, policy_2024.snapshot).policy
        assert stamp.version == "ircc-2024-01-01-v1"
        assert stamp.source == "effective_date"

    def test_rescore_applies_overrides(self, skilled_worker, policy_2025):
        assert rescore(skilled_worker, policy_2025, canadian_work_years=2).total == 502
