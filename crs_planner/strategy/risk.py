"""
Risk flags for the strategy optimizer.

Two sources of flags:

  profile signals: properties of the applicant that affect every lane
                   (age decay, sub-threshold language, a large gap to the
                   cutoff, untapped French upside).
  lane flags     : risks specific to one option (exam variance, long
                   horizons, provincial intent ...).

Each flag carries a severity; the optimizer converts severities into a
penalty with ``risk_penalty()``.
"""

from __future__ import annotations

from typing import Iterable, Optional

from crs_planner.models.plan import PlanCandidate
from crs_planner.models.strategy import SEVERITY_RANK, RiskFlag

SEVERITY_PENALTY: dict[str, int] = {"high": 10, "medium": 5, "low": 2}
MAX_RISK_PENALTY = 24

LONG_HORIZON_MONTHS = 12


def risk_penalty(flags: Iterable[RiskFlag]) -> int:
    return min(sum(SEVERITY_PENALTY.get(f.severity, 0) for f in flags), MAX_RISK_PENALTY)


def merge_flags(flags: Iterable[RiskFlag]) -> tuple[RiskFlag, ...]:
    """Deduplicate by id, keeping the highest severity; first-seen order."""
    merged: dict[str, RiskFlag] = {}
    for flag in flags:
        kept = merged.get(flag.id)
        if kept is None or SEVERITY_RANK[flag.severity] > SEVERITY_RANK[kept.severity]:
            merged[flag.id] = flag
    return tuple(merged.values())


# ── Profile signals ───────────────────────────────────────────────────────────


def profile_signals(
    age:            Optional[int],
    min_level:      int,
    french_min:     int,
    gap:            int,
) -> tuple[RiskFlag, ...]:
    """Applicant-level risks independent of any lane.

    Args:
        age:        Applicant age, or None when unknown.
        min_level:  Lowest first-official-language level.
        french_min: Lowest French NCLC (0 without French).
        gap:        cutoff − current score.
    """
    flags: list[RiskFlag] = []

    if age is not None and age >= 30:
        flags.append(RiskFlag(
            id="age-decay",
            label="Age points decline",
            detail=f"At {age}, age points drop every birthday; earlier action preserves score.",
            severity="high" if age >= 35 else "medium",
        ))

    if min_level < 9:
        flags.append(RiskFlag(
            id="language-threshold",
            label="Language below CLB 9",
            detail=f"Weakest first-language ability is level {min_level}; CLB 9 unlocks transferability points.",
            severity="high" if min_level < 7 else "medium",
        ))

    if gap > 20:
        flags.append(RiskFlag(
            id="cutoff-gap",
            label="Large gap to cutoff",
            detail=f"Current score is {gap} points below the reference cutoff.",
            severity="high" if gap > 50 else "medium",
        ))

    if french_min < 7:
        flags.append(RiskFlag(
            id="french-upside-missing",
            label="French upside untapped",
            detail="NCLC 7 in all French abilities adds bonus points and French-category eligibility.",
            severity="low",
        ))

    return tuple(flags)


# ── Lane flags ────────────────────────────────────────────────────────────────


def _long_horizon(months: int) -> list[RiskFlag]:
    if months < LONG_HORIZON_MONTHS:
        return []
    return [RiskFlag(
        id="long-horizon",
        label="Long time horizon",
        detail=f"About {months} months to realize; cutoffs and rules may move in the meantime.",
        severity="low",
    )]


def plan_lane_flags(plan: PlanCandidate, has_french: bool) -> tuple[RiskFlag, ...]:
    flags: list[RiskFlag] = []

    if plan.id == "english-accelerator":
        flags.append(RiskFlag(
            id="exam-variance",
            label="Test-day variance",
            detail="A single sitting may miss the target band; budget for a retake.",
            severity="medium",
        ))
    elif plan.id == "french-advantage":
        flags.append(RiskFlag(
            id="french-ramp",
            label="French ramp-up",
            detail="Reaching NCLC 7 from scratch takes sustained study.",
            severity="medium" if has_french else "high",
        ))
        flags.append(RiskFlag(
            id="exam-variance",
            label="Test-day variance",
            detail="TEF/TCF results vary between sittings.",
            severity="low",
        ))
    elif plan.id == "canadian-work-ladder":
        flags.append(RiskFlag(
            id="work-continuity",
            label="Employment continuity",
            detail="Gaps in full-time skilled work delay the next increment.",
            severity="medium",
        ))
    elif plan.id == "education-upgrade":
        flags.append(RiskFlag(
            id="credential-assessment",
            label="Credential assessment",
            detail="Foreign credentials need an ECA before they count.",
            severity="medium",
        ))
    elif plan.id == "spouse-optimization":
        flags.append(RiskFlag(
            id="spouse-dependency",
            label="Depends on spouse",
            detail="Outcome relies on the spouse's own test preparation.",
            severity="low",
        ))
    elif plan.id == "pnp-fast-track":
        flags.append(RiskFlag(
            id="provincial-intent",
            label="Intent to reside",
            detail="Nominees must intend to live in the nominating province.",
            severity="medium",
        ))
    elif plan.category == "combo":
        flags.append(RiskFlag(
            id="combined-gain-estimate",
            label="Combined gain is estimated",
            detail="Gains of two lanes are added without re-scoring; overlapping caps can reduce them.",
            severity="medium",
        ))

    flags.extend(_long_horizon(plan.estimated_months))
    return tuple(flags)


def category_lane_flags(eligible_count: int, gap: int) -> tuple[RiskFlag, ...]:
    flags = [RiskFlag(
        id="category-rotation",
        label="Category draws rotate",
        detail="Category rounds are irregular and their cutoffs move between draws.",
        severity="low" if eligible_count > 0 else "high",
    )]
    if gap > 20:
        flags.append(RiskFlag(
            id="category-gap",
            label="Category cutoff gap",
            detail=f"Still {gap} points short of the reference cutoff.",
            severity="medium",
        ))
    return tuple(flags)


def province_lane_flags(match_score: int) -> tuple[RiskFlag, ...]:
    flags = [RiskFlag(
        id="provincial-intent",
        label="Intent to reside",
        detail="Nominees must intend to live in the nominating province.",
        severity="medium",
    )]
    if match_score < 70:
        flags.append(RiskFlag(
            id="province-fit",
            label="Partial province fit",
            detail=f"Profile matches only {match_score}% of the province's stated criteria.",
            severity="medium",
        ))
    return tuple(flags)
