"""
Applicant profile model.

``Profile`` is an explicit, frozen pydantic model for one applicant's
attributes.  Every field is optional and every field has a documented
default, so the scoring engine can read any profile without guarding each
lookup.

Defaulting rules
----------------
  numbers  (age, work years, ...)     absent / unparsable / negative -> 0 (age -> None)
  flags    (has_pnp, has_spouse, ...) absent / unrecognised          -> False
                                       ("yes", "true", "1", True      -> True)
  enums    (education, test types)    absent / unknown value          -> None
  language scores                      absent / unparsable            -> 0.0

Construction therefore never raises on bad input.  ``spouse_accompanying`` is
the one flag that defaults to True: a spouse is assumed to be coming unless
the applicant says otherwise.

Legacy input
------------
``Profile.from_mapping()`` also accepts the flat wizard record the web client
stores (``celpip_listening``, ``hasPNP: "yes"``, ``spouseLang_reading`` ...),
so saved answers can be scored without a migration step.

Profiles are never mutated.  What-if variants are produced by
``Profile.merged(**overrides)``, which re-validates a merged copy.
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, field_validator

SKILLS: tuple[str, ...] = ("listening", "reading", "writing", "speaking")

EducationLevel = Literal[
    "less_than_secondary",
    "secondary",
    "one_year_post",
    "two_year_post",
    "bachelors",
    "two_or_more",
    "masters",
    "doctoral",
]

# Linear credential order used by the education-upgrade lane.
EDUCATION_ORDER: tuple[str, ...] = get_args(EducationLevel)

EnglishTestType = Literal["celpip", "ielts", "clb", "none"]
FrenchTestType = Literal["clb", "tef", "tcf"]
OfficialLanguage = Literal["english", "french"]
StudyLength = Literal["short", "long"]

_TRUE_STRINGS = frozenset({"yes", "y", "true", "1", "on"})

# Legacy wizard keys → Profile field names (scalar fields only).
_LEGACY_SCALARS: dict[str, str] = {
    "age":                   "age",
    "education":             "education",
    "pathway":               "pathway",
    "firstOfficialLanguage": "first_official_language",
    "langTestType":          "lang_test_type",
    "hasFrench":             "has_french",
    "frenchTestType":        "french_test_type",
    "canadianWorkExp":       "canadian_work_years",
    "foreignWorkExp":        "foreign_work_years",
    "hasSpouse":             "has_spouse",
    "spouseIsCanadian":      "spouse_is_canadian",
    "spouseAccompanying":    "spouse_accompanying",
    "spouseEducation":       "spouse_education",
    "spouseCanadianWork":    "spouse_canadian_work_years",
    "hasPNP":                "has_pnp",
    "hasJobOffer":           "has_job_offer",
    "jobOfferTeer":          "job_offer_teer",
    "jobOfferMajorGroup00":  "job_offer_major_group_00",
    "canadianEducation":     "has_canadian_education",
    "canadianEduType":       "canadian_education_type",
    "hasSibling":            "has_sibling",
    "hasCertificate":        "has_certificate",
    "occupationCategory":    "occupation_category",
}


# ── Coercion helpers ──────────────────────────────────────────────────────────


def to_number(value: Any, default: float = 0.0) -> float:
    """Parse ``value`` as a finite float, returning ``default`` otherwise."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def to_int(value: Any, default: int = 0) -> int:
    """Parse ``value`` as an int (truncating floats), ``default`` otherwise."""
    number = to_number(value, float("nan"))
    if math.isnan(number):
        return default
    return int(number)


def to_flag(value: Any) -> bool:
    """Interpret yes/no style answers; anything unrecognised is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _to_choice(value: Any, allowed: tuple[str, ...]) -> Optional[str]:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in allowed:
            return candidate
    return None


# ── Language scores ───────────────────────────────────────────────────────────


class LanguageScores(BaseModel):
    """Raw per-skill test results for one language.

    The unit depends on the test the scores came from (CELPIP level, IELTS
    band, TEF/TCF points, or CLB/NCLC level); the scoring engine converts
    them to a common level scale.
    """

    model_config = ConfigDict(frozen=True)

    listening: float = 0.0
    reading:   float = 0.0
    writing:   float = 0.0
    speaking:  float = 0.0

    @field_validator("listening", "reading", "writing", "speaking", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> float:
        return max(0.0, to_number(v))

    def get(self, skill: str) -> float:
        return float(getattr(self, skill, 0.0))

    def minimum(self) -> float:
        return min(self.get(s) for s in SKILLS)

    def raised_to(self, floor: float) -> "LanguageScores":
        """Return a copy where every skill is at least ``floor``."""
        return LanguageScores(**{s: max(self.get(s), floor) for s in SKILLS})

    @classmethod
    def uniform(cls, level: float) -> "LanguageScores":
        return cls(**{s: level for s in SKILLS})


def _coerce_scores(value: Any) -> Any:
    if value is None:
        return LanguageScores()
    if isinstance(value, (LanguageScores, Mapping)):
        return value
    return LanguageScores()


# ── Profile ───────────────────────────────────────────────────────────────────


class Profile(BaseModel):
    """One applicant's attributes.

    Attributes:
        age:                        Age in years, or None when unknown.
        education:                  Highest credential tier.
        pathway:                    Express Entry program slug (``fsw``, ``cec``, ``fst``...).
        first_official_language:    ``english`` (default) or ``french``.
        lang_test_type:             English test the ``english`` scores came from.
        english:                    Raw English per-skill scores.
        has_french:                 Applicant reports French ability.
        french_test_type:           ``clb`` (NCLC levels), ``tef`` or ``tcf`` points.
        french:                     Raw French per-skill scores.
        canadian_work_years:        Years of skilled Canadian work.
        foreign_work_years:         Years of skilled foreign work.
        has_spouse:                 Married or common-law.
        spouse_is_canadian:         Spouse is a citizen or permanent resident.
        spouse_accompanying:        Spouse will come to Canada (default True).
        spouse_education:           Spouse credential tier.
        spouse_language:            Spouse per-skill CLB levels.
        spouse_canadian_work_years: Spouse years of Canadian work.
        has_pnp:                    Holds a provincial nomination.
        has_job_offer:              Holds a qualifying job offer.
        job_offer_teer:             ``teer_0`` .. ``teer_5``.
        job_offer_major_group_00:   Offer is in NOC major group 00.
        has_canadian_education:     Holds a Canadian post-secondary credential.
        canadian_education_type:    ``short`` (1-2 years) or ``long`` (3+ years).
        has_sibling:                Sibling in Canada who is a citizen/PR.
        has_certificate:            Canadian certificate of qualification (trades).
        occupation_category:        Category-draw occupation group slug.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    age:                        Optional[int] = None
    education:                  Optional[EducationLevel] = None
    pathway:                    Optional[str] = None
    first_official_language:    OfficialLanguage = "english"
    lang_test_type:             Optional[EnglishTestType] = None
    english:                    LanguageScores = LanguageScores()
    has_french:                 bool = False
    french_test_type:           Optional[FrenchTestType] = None
    french:                     LanguageScores = LanguageScores()
    canadian_work_years:        int = 0
    foreign_work_years:         int = 0
    has_spouse:                 bool = False
    spouse_is_canadian:         bool = False
    spouse_accompanying:        bool = True
    spouse_education:           Optional[EducationLevel] = None
    spouse_language:            LanguageScores = LanguageScores()
    spouse_canadian_work_years: int = 0
    has_pnp:                    bool = False
    has_job_offer:              bool = False
    job_offer_teer:             Optional[str] = None
    job_offer_major_group_00:   bool = False
    has_canadian_education:     bool = False
    canadian_education_type:    Optional[StudyLength] = None
    has_sibling:                bool = False
    has_certificate:            bool = False
    occupation_category:        Optional[str] = None

    # ── Field coercion (never raise) ──────────────────────────────────────────

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v: Any) -> Optional[int]:
        if v is None or v == "":
            return None
        age = to_int(v, default=-1)
        return age if age >= 0 else None

    @field_validator(
        "canadian_work_years", "foreign_work_years", "spouse_canadian_work_years",
        mode="before",
    )
    @classmethod
    def coerce_years(cls, v: Any) -> int:
        return max(0, to_int(v))

    @field_validator(
        "has_french", "has_spouse", "spouse_is_canadian", "has_pnp",
        "has_job_offer", "job_offer_major_group_00", "has_canadian_education",
        "has_sibling", "has_certificate",
        mode="before",
    )
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        return to_flag(v)

    @field_validator("spouse_accompanying", mode="before")
    @classmethod
    def coerce_accompanying(cls, v: Any) -> bool:
        if v is None or v == "":
            return True
        if isinstance(v, str) and v.strip().lower() in ("no", "n", "false", "0", "off"):
            return False
        return v is not False and v != 0

    @field_validator("education", "spouse_education", mode="before")
    @classmethod
    def coerce_education(cls, v: Any) -> Optional[str]:
        return _to_choice(v, EDUCATION_ORDER)

    @field_validator("first_official_language", mode="before")
    @classmethod
    def coerce_official_language(cls, v: Any) -> str:
        return _to_choice(v, get_args(OfficialLanguage)) or "english"

    @field_validator("lang_test_type", mode="before")
    @classmethod
    def coerce_english_test(cls, v: Any) -> Optional[str]:
        return _to_choice(v, get_args(EnglishTestType))

    @field_validator("french_test_type", mode="before")
    @classmethod
    def coerce_french_test(cls, v: Any) -> Optional[str]:
        return _to_choice(v, get_args(FrenchTestType))

    @field_validator("canadian_education_type", mode="before")
    @classmethod
    def coerce_study_length(cls, v: Any) -> Optional[str]:
        return _to_choice(v, get_args(StudyLength))

    @field_validator("pathway", "job_offer_teer", "occupation_category", mode="before")
    @classmethod
    def coerce_slug(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and v.strip():
            return v.strip().lower()
        return None

    @field_validator("english", "french", "spouse_language", mode="before")
    @classmethod
    def coerce_language(cls, v: Any) -> Any:
        return _coerce_scores(v)

    # ── Derived values ────────────────────────────────────────────────────────

    @property
    def has_accompanying_spouse(self) -> bool:
        """Spouse exists, is not a citizen/PR, and is coming along."""
        return self.has_spouse and not self.spouse_is_canadian and self.spouse_accompanying

    @property
    def has_english_test(self) -> bool:
        return self.lang_test_type in ("celpip", "ielts", "clb")

    # ── Construction helpers ──────────────────────────────────────────────────

    def merged(self, **overrides: Any) -> "Profile":
        """Return a re-validated copy with ``overrides`` applied."""
        data = self.model_dump()
        data.update(overrides)
        return type(self).model_validate(data)

    @classmethod
    def coerce(cls, value: Any) -> "Profile":
        """Accept a ``Profile``, a mapping (legacy or snake_case), or None."""
        if isinstance(value, Profile):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        return cls()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Profile":
        """Build a profile from a flat wizard record or a snake_case mapping.

        Snake_case field names win over their legacy equivalents when both
        are present.  Unknown keys are ignored.
        """
        data: dict[str, Any] = {}

        for legacy_key, field_name in _LEGACY_SCALARS.items():
            if legacy_key in raw:
                data[field_name] = raw[legacy_key]

        english_prefix = _english_prefix(raw)
        if english_prefix is not None:
            data["english"] = _collect_skills(raw, english_prefix)
            data.setdefault("lang_test_type", english_prefix.rstrip("_"))

        french_type = _to_choice(raw.get("frenchTestType"), get_args(FrenchTestType))
        french_prefix = f"{french_type}_" if french_type in ("tef", "tcf") else "french_"
        if any(f"{french_prefix}{s}" in raw for s in SKILLS):
            data["french"] = _collect_skills(raw, french_prefix)

        if any(f"spouseLang_{s}" in raw for s in SKILLS):
            data["spouse_language"] = _collect_skills(raw, "spouseLang_")

        for key, value in raw.items():
            if key in cls.model_fields:
                data[key] = value

        return cls.model_validate(data)


def _english_prefix(raw: Mapping[str, Any]) -> Optional[str]:
    declared = _to_choice(raw.get("langTestType"), ("celpip", "ielts"))
    if declared is not None:
        return f"{declared}_"
    for prefix in ("celpip_", "ielts_"):
        if any(f"{prefix}{s}" in raw for s in SKILLS):
            return prefix
    return None


def _collect_skills(raw: Mapping[str, Any], prefix: str) -> dict[str, Any]:
    return {s: raw.get(f"{prefix}{s}") for s in SKILLS}


def profile_fingerprint(profile: Profile) -> str:
    """Stable SHA-256 of a profile's canonical JSON form.

    Hosts that memoize results key them by this fingerprint together with
    the policy snapshot id and the constraints fingerprint.
    """
    canonical = json.dumps(profile.model_dump(mode="json"), sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
