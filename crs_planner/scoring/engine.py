"""
CRS scoring engine.

``score(profile, policy)`` computes a full Comprehensive Ranking System score
for one applicant under one policy snapshot.

Computation order
-----------------
  1. Language normalization     (crs_planner.scoring.language)
  2. Core human capital         age + education + primary language
                                + secondary language (capped) + Canadian work
  3. Spouse factors             education + language (capped) + Canadian work,
                                bucket capped; 0 without an accompanying spouse
  4. Skill transferability      education pair + foreign-work pair (each
                                capped) + trade certificate; bucket capped
  5. Additional points          PNP, job offer, Canadian study, sibling,
                                French bonus; bucket capped
  6. Total                      min(sum of buckets, crs_total cap)

Every table lookup that misses (unknown education, absent age, level outside
the table) scores 0.  The function is total: it never raises on profile data
and always returns a value in [0, crs_total].

Column selection
----------------
Two-column tables are read from column 1 when the applicant has an
accompanying spouse (has a spouse, spouse is not a citizen/PR, spouse is
coming), column 0 otherwise.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from crs_planner.models.policy import PolicySnapshot, PointTables, ResolvedPolicy, as_resolved
from crs_planner.models.profile import SKILLS, Profile
from crs_planner.models.score import PolicyStamp, ScoreBreakdown, ScoreDetails, ScoreResult
from crs_planner.scoring.language import (
    english_levels,
    french_levels,
    minimum_level,
    primary_levels,
    secondary_levels,
    spouse_levels,
)

logger = logging.getLogger(__name__)

MIN_AGE_ROW = 17
MAX_AGE_ROW = 45
MAX_WORK_YEARS = 5

JOB_OFFER_TEERS = frozenset({"teer_0", "teer_1", "teer_2", "teer_3"})


def _grid(matrix: Sequence[Sequence[int]], row: int, col: int) -> int:
    try:
        return int(matrix[row][col])
    except IndexError:
        return 0


# ── Brackets ──────────────────────────────────────────────────────────────────


def language_bracket(min_level: int) -> int:
    if min_level >= 9:
        return 2
    if min_level >= 7:
        return 1
    return 0


def canadian_work_bracket(years: int) -> int:
    if years >= 2:
        return 2
    if years >= 1:
        return 1
    return 0


def foreign_work_bracket(years: int) -> int:
    if years >= 3:
        return 2
    if years >= 1:
        return 1
    return 0


# ── Factor calculators ────────────────────────────────────────────────────────


def _age_points(age: int | None, tables: PointTables, spouse: bool) -> int:
    if age is None:
        return 0
    row = min(max(age, MIN_AGE_ROW), MAX_AGE_ROW)
    return tables.column(tables.age_points, row, spouse)


def _language_points(levels: dict[str, int], table: dict, tables: PointTables, spouse: bool) -> int:
    return sum(tables.column(table, levels[s], spouse) for s in SKILLS)


def _spouse_factors(profile: Profile, policy: PolicySnapshot) -> int:
    if not profile.has_accompanying_spouse:
        return 0
    tables, caps = policy.tables, policy.caps

    education = tables.spouse_education_points.get(profile.spouse_education or "", 0)
    language = min(
        sum(tables.spouse_language_points.get(str(lvl), 0) for lvl in spouse_levels(profile).values()),
        caps.spouse_language,
    )
    years = min(profile.spouse_canadian_work_years, MAX_WORK_YEARS)
    work = tables.spouse_work_points.get(str(years), 0)

    return min(education + language + work, caps.spouse_total)


def _skill_transferability(profile: Profile, policy: PolicySnapshot, primary_min: int) -> int:
    tables, caps = policy.tables, policy.caps
    grids = tables.transferability

    rank = tables.education_rank.get(profile.education or "", 0)
    lang_b = language_bracket(primary_min)
    cwe_b = canadian_work_bracket(profile.canadian_work_years)
    fwe_b = foreign_work_bracket(profile.foreign_work_years)

    education_pair = min(
        _grid(grids.education_language, rank, lang_b)
        + _grid(grids.education_canadian_work, rank, cwe_b),
        caps.transfer_pair,
    )
    foreign_pair = min(
        _grid(grids.foreign_work_language, fwe_b, lang_b)
        + _grid(grids.foreign_work_canadian_work, fwe_b, cwe_b),
        caps.transfer_pair,
    )

    certificate = 0
    if profile.pathway == "fst" and profile.has_certificate:
        cert_b = 2 if primary_min >= 7 else 1 if primary_min >= 5 else 0
        certificate = _grid([grids.certificate_language], 0, cert_b)

    return min(education_pair + foreign_pair + certificate, caps.skill_transferability_total)


def _additional_points(profile: Profile, policy: PolicySnapshot) -> int:
    awards = policy.tables.additional_points
    total = 0

    if profile.has_pnp:
        total += awards.pnp_nomination

    if profile.has_job_offer:
        if profile.job_offer_teer == "teer_0" and profile.job_offer_major_group_00:
            total += awards.job_offer_00
        elif profile.job_offer_teer in JOB_OFFER_TEERS:
            total += awards.job_offer_other

    if profile.has_canadian_education:
        if profile.canadian_education_type == "long":
            total += awards.canadian_edu_long
        else:
            total += awards.canadian_edu_short

    if profile.has_sibling:
        total += awards.sibling_in_canada

    # French bonus: every French skill at NCLC 7+, tier chosen by English.
    if minimum_level(french_levels(profile, policy)) >= 7:
        if minimum_level(english_levels(profile, policy)) >= 5:
            total += awards.french_strong_strong_english
        else:
            total += awards.french_strong_weak_english

    return min(total, policy.caps.additional_points_total)


# ── Public API ────────────────────────────────────────────────────────────────


def score(profile: Any, policy: PolicySnapshot | ResolvedPolicy) -> ScoreResult:
    """Score ``profile`` under ``policy``.

    Args:
        profile: A ``Profile`` or a raw mapping (legacy wizard keys or
                 snake_case field names).  Garbage values score as 0.
        policy:  A ``ResolvedPolicy``, or a bare ``PolicySnapshot`` (reported
                 with source ``effective_date``).

    Returns:
        ScoreResult with total in [0, crs_total].
    """
    applicant = Profile.coerce(profile)
    resolved = as_resolved(policy)
    snap = resolved.snapshot
    tables, caps = snap.tables, snap.caps
    spouse = applicant.has_accompanying_spouse

    primary = primary_levels(applicant, snap)
    secondary = secondary_levels(applicant, snap)

    # ── Core human capital ────────────────────────────────────────────────────
    age = _age_points(applicant.age, tables, spouse)
    education = (
        tables.column(tables.education_points, applicant.education, spouse)
        if applicant.education else 0
    )
    first_language = _language_points(primary, tables.first_language_points, tables, spouse)
    second_cap = caps.second_language_with_spouse if spouse else caps.second_language_no_spouse
    second_language = min(
        _language_points(secondary, tables.second_language_points, tables, spouse),
        second_cap,
    )
    canadian_work = tables.column(
        tables.canadian_work_points,
        min(applicant.canadian_work_years, MAX_WORK_YEARS),
        spouse,
    )
    core = age + education + first_language + second_language + canadian_work

    # ── Remaining buckets ─────────────────────────────────────────────────────
    spouse_total = _spouse_factors(applicant, snap)
    skill_total = _skill_transferability(applicant, snap, minimum_level(primary))
    additional_total = _additional_points(applicant, snap)

    breakdown = ScoreBreakdown(
        core_human_capital=core,
        spouse_factors=spouse_total,
        skill_transferability=skill_total,
        additional_points=additional_total,
    )
    total = max(0, min(breakdown.total, caps.crs_total))

    logger.debug(
        "Scored profile under %s: %d", snap.id, total,
        extra={"policy_id": snap.id},
    )

    return ScoreResult(
        total=total,
        breakdown=breakdown,
        details=ScoreDetails(
            age=age,
            education=education,
            first_language=first_language,
            second_language=second_language,
            canadian_work=canadian_work,
            foreign_work=applicant.foreign_work_years,
            spouse_total=spouse_total,
            skill_total=skill_total,
            additional_total=additional_total,
        ),
        policy=PolicyStamp(
            version=snap.id,
            effective_date=snap.effective_date,
            source=resolved.source,
        ),
    )


def rescore(profile: Any, policy: PolicySnapshot | ResolvedPolicy, **overrides: Any) -> ScoreResult:
    """Score a merged copy of ``profile`` with ``overrides`` applied."""
    return score(Profile.coerce(profile).merged(**overrides), policy)


def min_clb(profile: Any, policy: PolicySnapshot | ResolvedPolicy) -> int:
    """Lowest English CLB across the four skills (0 without a test)."""
    return minimum_level(english_levels(Profile.coerce(profile), as_resolved(policy).snapshot))


def min_french_nclc(profile: Any, policy: PolicySnapshot | ResolvedPolicy) -> int:
    """Lowest French NCLC across the four skills (0 without French)."""
    return minimum_level(french_levels(Profile.coerce(profile), as_resolved(policy).snapshot))


def min_first_language_level(profile: Any, policy: PolicySnapshot | ResolvedPolicy) -> int:
    """Lowest level in the applicant's first official language."""
    return minimum_level(primary_levels(Profile.coerce(profile), as_resolved(policy).snapshot))
