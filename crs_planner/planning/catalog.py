"""
Improvement-lane catalogue.

Each lane is one single-lever change to the profile.  A lane builder looks
at the current profile and returns a ``LaneDraft`` (the profile patch plus
display metadata) or None when the lever does not apply (already at CLB 10,
already nominated, five years of Canadian work, top education tier ...).

The planner re-scores ``profile.merged(**draft.patch)`` for every draft and
keeps only the ones with a positive gain.

Lane order matters: it is the tie-break order when fit scores are equal.

  english-accelerator   Language      Medium   4 mo   $460
  french-advantage      Language      Hard     8 mo   $690
  canadian-work-ladder  Work          Hard    12 mo   $0
  education-upgrade     Education     Hard    18 mo   $12,000
  spouse-optimization   Spouse        Medium   5 mo   $420
  pnp-fast-track        Provincial    Hard     6 mo   $2,200
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from crs_planner.models.plan import Difficulty, Likelihood, PlanCategory
from crs_planner.models.policy import PolicySnapshot
from crs_planner.models.profile import EDUCATION_ORDER, SKILLS, LanguageScores, Profile
from crs_planner.scoring.language import english_levels, french_levels, minimum_level

# IELTS band that reaches a given CLB, per skill.
_IELTS_BAND_FOR_CLB: dict[str, dict[int, float]] = {
    "listening": {7: 6.0, 8: 7.5, 9: 8.0, 10: 8.5},
    "reading":   {7: 6.0, 8: 6.5, 9: 7.0, 10: 8.0},
    "writing":   {7: 6.0, 8: 6.5, 9: 7.0, 10: 7.5},
    "speaking":  {7: 6.0, 8: 6.5, 9: 7.0, 10: 7.5},
}

FRENCH_TARGET_NCLC = 7
SPOUSE_TARGET_CLB = 9


@dataclass(frozen=True)
class StepSpec:
    """Milestone template; ``expected_gain`` is a heuristic, not a promise."""

    title:         str
    details:       str
    eta_weeks:     int
    expected_gain: int


@dataclass(frozen=True)
class LaneDraft:
    """A lane that applies to the profile, before re-scoring."""

    id:           str
    title:        str
    summary:      str
    category:     PlanCategory
    difficulty:   Difficulty
    months:       int
    cost_cad:     int
    why_it_fits:  str
    likelihood:   Likelihood
    patch:        dict[str, Any]
    steps:        tuple[StepSpec, ...] = field(default_factory=tuple)


LaneBuilder = Callable[[Profile, PolicySnapshot], Optional[LaneDraft]]


# ── Patches ───────────────────────────────────────────────────────────────────


def ielts_band_for_clb(skill: str, clb: int) -> float:
    return _IELTS_BAND_FOR_CLB.get(skill, {}).get(clb, 0.0)


def english_boost_patch(profile: Profile, target_clb: int) -> dict[str, Any]:
    """Raise every English skill to at least ``target_clb``.

    Keeps the applicant's test (CELPIP/CLB levels or IELTS bands); without a
    usable test the patch switches the profile to CELPIP at the target.
    """
    if profile.lang_test_type in ("celpip", "clb"):
        return {"english": profile.english.raised_to(target_clb)}
    if profile.lang_test_type == "ielts":
        return {
            "english": LanguageScores(**{
                s: max(profile.english.get(s), ielts_band_for_clb(s, target_clb))
                for s in SKILLS
            })
        }
    return {"lang_test_type": "celpip", "english": LanguageScores.uniform(target_clb)}


def french_patch(profile: Profile, policy: PolicySnapshot, target: int = FRENCH_TARGET_NCLC) -> dict[str, Any]:
    current = french_levels(profile, policy)
    return {
        "has_french":       True,
        "french_test_type": "clb",
        "french":           LanguageScores(**{s: max(current[s], target) for s in SKILLS}),
    }


# ── Lane builders ─────────────────────────────────────────────────────────────


def english_accelerator(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    min_clb = minimum_level(english_levels(profile, policy))
    if min_clb >= 10:
        return None
    target = 8 if min_clb < 7 else 9
    return LaneDraft(
        id="english-accelerator",
        title="English Accelerator Path",
        summary="Raise your weakest English ability first, then target CLB 9+ for transferability gains.",
        category="language",
        difficulty="Medium",
        months=4,
        cost_cad=460,
        why_it_fits=(
            f"Your current minimum English level is CLB {min_clb}, so language gains "
            "are one of the fastest realistic boosters."
        ),
        likelihood="high",
        patch=english_boost_patch(profile, target),
        steps=(
            StepSpec("Baseline audit and weak-skill diagnosis",
                     "Run a mock test and identify the two lowest abilities to prioritize.", 1, 0),
            StepSpec("Targeted study sprint",
                     "Follow a five-day weekly schedule focused on the weakest modules and timed drills.", 6, 8),
            StepSpec("Exam booking and strategy correction",
                     "Book IELTS/CELPIP and fine-tune pacing, vocabulary and response format.", 4, 8),
            StepSpec("Retake and profile refresh",
                     "Update final language scores and reassess draw competitiveness.", 4, 12),
        ),
    )


def french_advantage(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    return LaneDraft(
        id="french-advantage",
        title="French Advantage Path",
        summary="Reach NCLC 7 in all French abilities to unlock additional points and French-category draws.",
        category="language",
        difficulty="Hard",
        months=8,
        cost_cad=690,
        why_it_fits="French remains one of the highest-yield options for candidates below general cutoffs.",
        likelihood="high" if profile.has_french else "medium",
        patch=french_patch(profile, policy),
        steps=(
            StepSpec("French baseline and study plan",
                     "Assess the current level and choose a structured curriculum for NCLC 7.", 2, 0),
            StepSpec("Core skill build phase",
                     "Intensive reading and listening practice with weekly speaking and writing correction.", 12, 8),
            StepSpec("TEF/TCF prep and mock cycles",
                     "Complete timed mocks and focus weak modules before booking the exam.", 8, 8),
            StepSpec("Exam and score integration",
                     "Enter verified NCLC scores and evaluate French-category competitiveness.", 6, 12),
        ),
    )


def canadian_work_ladder(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    years = profile.canadian_work_years
    if years >= 5:
        return None
    return LaneDraft(
        id="canadian-work-ladder",
        title="Canadian Work Ladder Path",
        summary="Add one more year of Canadian skilled work to increase core and transferability points.",
        category="work",
        difficulty="Hard",
        months=12,
        cost_cad=0,
        why_it_fits=(
            f"You currently report {years} year(s) of Canadian work; "
            "the next year can materially lift your score."
        ),
        likelihood="medium",
        patch={"canadian_work_years": years + 1},
        steps=(
            StepSpec("Employer alignment",
                     "Confirm TEER eligibility and keep a continuous full-time skilled role.", 2, 0),
            StepSpec("Documentation discipline",
                     "Collect monthly pay records and reference letters as proof of experience.", 16, 4),
            StepSpec("Mid-year score checkpoint",
                     "Recalculate progress and combine with language upgrades if needed.", 24, 6),
            StepSpec("Complete one full year increment",
                     "Update the profile as soon as the additional year is met.", 52, 12),
        ),
    )


def education_upgrade(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    if profile.education not in EDUCATION_ORDER:
        return None
    idx = EDUCATION_ORDER.index(profile.education)
    if idx >= len(EDUCATION_ORDER) - 1:
        return None
    next_tier = EDUCATION_ORDER[idx + 1]
    return LaneDraft(
        id="education-upgrade",
        title="Education Upgrade Path",
        summary="Move to the next recognized credential tier for predictable CRS uplift.",
        category="education",
        difficulty="Hard",
        months=18,
        cost_cad=12000,
        why_it_fits=(
            f"Your current education level can be improved to "
            f"{next_tier.replace('_', ' ')} for additional points."
        ),
        likelihood="medium",
        patch={"education": next_tier},
        steps=(
            StepSpec("Program selection",
                     "Choose an accredited credential aligned to CRS point tiers.", 4, 0),
            StepSpec("Enrollment and term progress",
                     "Track term-level progress to keep the plan on schedule.", 20, 4),
            StepSpec("Credential completion prep",
                     "Prepare final documents and ECA requirements where needed.", 20, 4),
            StepSpec("Credential update in profile",
                     "Add the completed credential and recalculate the total score.", 28, 10),
        ),
    )


def spouse_optimization(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    if not profile.has_accompanying_spouse:
        return None
    return LaneDraft(
        id="spouse-optimization",
        title="Spouse Optimization Path",
        summary="Use spouse language factors for faster low-cost point improvements.",
        category="spouse",
        difficulty="Medium",
        months=5,
        cost_cad=420,
        why_it_fits="You have an accompanying spouse, so spouse-factor optimization is available and often underused.",
        likelihood="high",
        patch={"spouse_language": profile.spouse_language.raised_to(SPOUSE_TARGET_CLB)},
        steps=(
            StepSpec("Spouse baseline review",
                     "Identify spouse factors currently missing points.", 1, 0),
            StepSpec("Spouse language prep",
                     "Prepare for CLB 9 in the spouse's weakest abilities.", 8, 4),
            StepSpec("Spouse profile integration",
                     "Update spouse test scores and re-optimize the joint profile.", 6, 8),
        ),
    )


def pnp_fast_track(profile: Profile, policy: PolicySnapshot) -> Optional[LaneDraft]:
    if profile.has_pnp:
        return None
    return LaneDraft(
        id="pnp-fast-track",
        title="PNP Fast-Track Path",
        summary="Pursue a provincial nomination for the largest single CRS jump.",
        category="provincial",
        difficulty="Hard",
        months=6,
        cost_cad=2200,
        why_it_fits="If your baseline is below recent cutoffs, a nomination is the most direct guaranteed-lift route.",
        likelihood="medium",
        patch={"has_pnp": True},
        steps=(
            StepSpec("Province shortlist",
                     "Match your profile to provinces aligned with occupation and language strengths.", 2, 0),
            StepSpec("Document stack preparation",
                     "Prepare references, test proofs, ECA and provincial forms early.", 6, 0),
            StepSpec("Submit nomination stream",
                     "Apply to the selected stream and monitor NOI and application updates.", 8, 0),
            StepSpec("Nomination linked to profile",
                     "Accept the nomination and refresh the profile.", 8,
                     policy.tables.additional_points.pnp_nomination),
        ),
    )


LANE_BUILDERS: tuple[LaneBuilder, ...] = (
    english_accelerator,
    french_advantage,
    canadian_work_ladder,
    education_upgrade,
    spouse_optimization,
    pnp_fast_track,
)
