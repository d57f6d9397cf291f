"""
Quick-win suggestions: single what-if levers with their CRS gain.

Unlike ``planning.planner`` there is no fit score, cost or milestone model
here.  Each rule proposes one change; the gain is measured by re-scoring
``profile.merged(...)`` against the current total, and the suggestion is
kept only when that gain is positive.  Three levers cannot be produced by a
profile edit the applicant controls directly, so they carry the policy's
fixed award instead:

  Provincial nomination   additional_points.pnp_nomination
  Study in Canada         additional_points.canadian_edu_long
  Sibling in Canada       additional_points.sibling_in_canada

Rules
-----
  language      min CLB < 10      one CLB up (CELPIP/CLB) or +0.5 band (IELTS)
  education     known tier        next tier in EDUCATION_ORDER
  Canadian work < 5 years         one more year
  French        no French         NCLC 7 across the board
  nomination    not nominated     fixed award
  job offer     no offer          TEER 0 offer (0 under snapshots without job-offer points)
  study         no Canadian credential   fixed award
  sibling       no sibling        fixed award
  spouse        accompanying, min CLB < 9   one CLB up

The list is sorted by gain, largest first; equal gains keep rule order.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from crs_planner.models.plan import Suggestion
from crs_planner.models.policy import PolicySnapshot, ResolvedPolicy, as_resolved
from crs_planner.models.profile import EDUCATION_ORDER, SKILLS, LanguageScores, Profile
from crs_planner.models.score import ScoreResult
from crs_planner.planning.catalog import english_boost_patch, french_patch
from crs_planner.scoring.engine import score
from crs_planner.scoring.language import english_levels, minimum_level, spouse_levels

logger = logging.getLogger(__name__)

MAX_LANGUAGE_TARGET = 10
MAX_SPOUSE_TARGET = 9
MAX_IELTS_BAND = 9.0
IELTS_STEP = 0.5
MAX_WORK_YEARS = 5

_TEST_LABELS: dict[str, str] = {"celpip": "CELPIP", "ielts": "IELTS", "clb": "CLB"}

_EDUCATION_LABELS: dict[str, str] = {
    "secondary":     "high school diploma",
    "one_year_post": "1-year diploma",
    "two_year_post": "2-year diploma",
    "bachelors":     "bachelor's degree",
    "two_or_more":   "two credentials",
    "masters":       "master's degree",
    "doctoral":      "doctoral degree",
}

Rule = Callable[[Profile, PolicySnapshot, int], Optional[Suggestion]]


def _gain(profile: Profile, policy: PolicySnapshot, baseline: int, **patch: Any) -> int:
    return score(profile.merged(**patch), policy).total - baseline


# ── Rules ─────────────────────────────────────────────────────────────────────


def language_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    min_clb = minimum_level(english_levels(profile, policy))
    if min_clb >= MAX_LANGUAGE_TARGET:
        return None
    target = min(min_clb + 1, MAX_LANGUAGE_TARGET)
    if profile.lang_test_type == "ielts":
        patch = {
            "english": LanguageScores(**{
                s: min(profile.english.get(s) + IELTS_STEP, MAX_IELTS_BAND) for s in SKILLS
            })
        }
    else:
        patch = english_boost_patch(profile, target)
    gain = _gain(profile, policy, baseline, **patch)
    if gain <= 0:
        return None
    label = _TEST_LABELS.get(profile.lang_test_type or "", "English Test")
    return Suggestion(
        title=f"Improve {label} Scores",
        description=(
            f"Raising your weakest {label} skill to CLB {target} could add significant "
            "points. Focus on your lowest band."
        ),
        potential_gain=gain,
        difficulty="Medium",
        timeframe="2-4 months",
        icon="language",
    )


def education_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.education is None:
        return None
    idx = EDUCATION_ORDER.index(profile.education)
    if idx >= len(EDUCATION_ORDER) - 1:
        return None
    next_tier = EDUCATION_ORDER[idx + 1]
    gain = _gain(profile, policy, baseline, education=next_tier)
    if gain <= 0:
        return None
    return Suggestion(
        title="Higher Education",
        description=(
            f"Completing a {_EDUCATION_LABELS.get(next_tier, 'higher credential')} "
            "could boost your score."
        ),
        potential_gain=gain,
        difficulty="Hard",
        timeframe="1-4 years",
        icon="education",
    )


def canadian_work_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.canadian_work_years >= MAX_WORK_YEARS:
        return None
    gain = _gain(profile, policy, baseline, canadian_work_years=profile.canadian_work_years + 1)
    if gain <= 0:
        return None
    return Suggestion(
        title="Gain Canadian Work Experience",
        description=(
            "An additional year of Canadian work experience adds points across multiple "
            "categories including skill transferability."
        ),
        potential_gain=gain,
        difficulty="Hard",
        timeframe="1 year",
        icon="work",
    )


def french_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.has_french:
        return None
    gain = _gain(profile, policy, baseline, **french_patch(profile, policy))
    if gain <= 0:
        return None
    return Suggestion(
        title="Learn French (TEF/TCF)",
        description="Strong French skills (CLB 7+) earn additional points, especially combined with good English.",
        potential_gain=gain,
        difficulty="Hard",
        timeframe="6-12 months",
        icon="french",
    )


def nomination_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.has_pnp:
        return None
    award = policy.tables.additional_points.pnp_nomination
    if award <= 0:
        return None
    return Suggestion(
        title="Provincial Nominee Program",
        description=(
            f"A PNP nomination adds {award} points, virtually guaranteeing an ITA. Explore "
            "programs in provinces like Ontario, BC, Alberta and Saskatchewan."
        ),
        potential_gain=award,
        difficulty="Hard",
        timeframe="3-12 months",
        icon="province",
    )


def job_offer_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.has_job_offer:
        return None
    gain = _gain(profile, policy, baseline, has_job_offer=True, job_offer_teer="teer_0")
    if gain <= 0:
        return None
    return Suggestion(
        title="Obtain LMIA-Backed Job Offer",
        description="A valid job offer with LMIA in a TEER 0-3 occupation adds 50-200 points.",
        potential_gain=gain,
        difficulty="Hard",
        timeframe="3-6 months",
        icon="job",
    )


def study_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.has_canadian_education:
        return None
    awards = policy.tables.additional_points
    if awards.canadian_edu_long <= 0:
        return None
    return Suggestion(
        title="Study in Canada",
        description=(
            f"A Canadian credential (1-2 year program) adds {awards.canadian_edu_short} points, "
            f"or {awards.canadian_edu_long} points for a 3+ year program."
        ),
        potential_gain=awards.canadian_edu_long,
        difficulty="Hard",
        timeframe="1-3 years",
        icon="study",
    )


def sibling_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if profile.has_sibling:
        return None
    award = policy.tables.additional_points.sibling_in_canada
    if award <= 0:
        return None
    return Suggestion(
        title="Sibling in Canada (If Applicable)",
        description=(
            f"If you have a sibling who is a Canadian citizen or PR, this adds {award} points. "
            "Check if any siblings qualify."
        ),
        potential_gain=award,
        difficulty="Easy",
        timeframe="N/A",
        icon="family",
    )


def spouse_language_suggestion(profile: Profile, policy: PolicySnapshot, baseline: int) -> Optional[Suggestion]:
    if not profile.has_accompanying_spouse:
        return None
    min_spouse = minimum_level(spouse_levels(profile))
    if min_spouse >= MAX_SPOUSE_TARGET:
        return None
    target = min(min_spouse + 1, MAX_SPOUSE_TARGET)
    gain = _gain(profile, policy, baseline, spouse_language=profile.spouse_language.raised_to(target))
    if gain <= 0:
        return None
    return Suggestion(
        title="Improve Spouse's Language Scores",
        description=f"Your spouse's language improvement to CLB {target} could add points.",
        potential_gain=gain,
        difficulty="Medium",
        timeframe="2-4 months",
        icon="language",
    )


RULES: tuple[Rule, ...] = (
    language_suggestion,
    education_suggestion,
    canadian_work_suggestion,
    french_suggestion,
    nomination_suggestion,
    job_offer_suggestion,
    study_suggestion,
    sibling_suggestion,
    spouse_language_suggestion,
)


# ── Public API ────────────────────────────────────────────────────────────────


def generate_suggestions(
    profile:      Any,
    policy:       PolicySnapshot | ResolvedPolicy,
    score_result: Optional[ScoreResult] = None,
) -> list[Suggestion]:
    """Quick-win levers for ``profile``, largest gain first.

    Args:
        profile:      Profile, mapping, or None.
        policy:       Snapshot to score against.
        score_result: Current score; computed when omitted.

    Returns:
        Suggestions with a positive gain, sorted by ``potential_gain``
        descending.  The sort is stable.
    """
    applicant = Profile.coerce(profile)
    snap = as_resolved(policy).snapshot
    baseline = (score_result or score(applicant, policy)).total

    suggestions = [s for s in (rule(applicant, snap, baseline) for rule in RULES) if s is not None]
    suggestions.sort(key=lambda s: s.potential_gain, reverse=True)

    logger.debug(
        "Generated %d suggestions (baseline %d).", len(suggestions), baseline,
        extra={"policy_id": snap.id},
    )
    return suggestions
