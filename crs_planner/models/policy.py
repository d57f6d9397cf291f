"""
CRS rule-set models.

A ``PolicySnapshot`` is one immutable, date-effective version of the
Comprehensive Ranking System point tables.  Snapshots are loaded from
``config/policies.toml`` by ``crs_planner.policy.registry`` and never change
after load; a rule change produces a new snapshot id.

Point rows are stored as ``(single, with_accompanying_spouse)`` pairs.  Level
converters (IELTS → CLB, TEF/TCF → NCLC) are stored as descending
``(minimum_raw_score, level)`` threshold rows.

``ResolvedPolicy`` wraps the snapshot chosen for a request together with how
it was chosen (explicit override or effective date) and the registry version
that produced it, so every ``ScoreResult`` can be traced back to its rules.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

PointRow = tuple[int, int]
ThresholdRow = tuple[float, int]

PolicySource = Literal["override", "effective_date"]


def _check_rows(name: str, rows: dict[str, PointRow]) -> None:
    for key, row in rows.items():
        if len(row) != 2:
            raise ValueError(f"{name}[{key!r}] must have two columns, got {len(row)}.")
        if min(row) < 0:
            raise ValueError(f"{name}[{key!r}] points must be non-negative.")


class TransferabilityMatrices(BaseModel):
    """Skill-transferability grids.

    Education grids are indexed ``[education_rank][bracket]``, foreign-work
    grids ``[foreign_bracket][bracket]``.  ``certificate_language`` is indexed
    by language bracket (0 below CLB 5, 1 at CLB 5-6, 2 at CLB 7+).
    """

    model_config = ConfigDict(frozen=True)

    education_language:         tuple[tuple[int, ...], ...]
    education_canadian_work:    tuple[tuple[int, ...], ...]
    foreign_work_language:      tuple[tuple[int, ...], ...]
    foreign_work_canadian_work: tuple[tuple[int, ...], ...]
    certificate_language:       tuple[int, ...]


class AdditionalPoints(BaseModel):
    """Flat awards in the additional-points bucket."""

    model_config = ConfigDict(frozen=True)

    pnp_nomination:               int = 600
    job_offer_00:                 int = 0
    job_offer_other:              int = 0
    canadian_edu_short:           int = 15
    canadian_edu_long:            int = 30
    sibling_in_canada:            int = 15
    french_strong_weak_english:   int = 25
    french_strong_strong_english: int = 50

    @model_validator(mode="after")
    def validate_non_negative(self) -> "AdditionalPoints":
        for name, value in self.model_dump().items():
            if value < 0:
                raise ValueError(f"additional_points.{name} must be non-negative, got {value}.")
        return self


class PolicyCaps(BaseModel):
    """Upper bounds applied while summing each bucket."""

    model_config = ConfigDict(frozen=True)

    second_language_no_spouse:   int = 24
    second_language_with_spouse: int = 22
    spouse_language:             int = 20
    spouse_total:                int = 40
    transfer_pair:               int = 50
    skill_transferability_total: int = 100
    additional_points_total:     int = 600
    crs_total:                   int = 1200

    @model_validator(mode="after")
    def validate_non_negative(self) -> "PolicyCaps":
        for name, value in self.model_dump().items():
            if value < 0:
                raise ValueError(f"caps.{name} must be non-negative, got {value}.")
        return self


class PointTables(BaseModel):
    """All lookup tables for one snapshot.

    Attributes:
        age_points:              Age ("17".."45") → (single, spouse).
        education_points:        Education level → (single, spouse).
        first_language_points:   Per-skill level ("0".."12") → (single, spouse).
        second_language_points:  Per-skill level → (single, spouse).
        canadian_work_points:    Years ("0".."5") → (single, spouse).
        spouse_education_points: Spouse education level → points.
        spouse_language_points:  Spouse per-skill CLB → points.
        spouse_work_points:      Spouse Canadian work years → points.
        education_rank:          Education level → transferability row (0..3).
        transferability:         Skill-transferability grids.
        additional_points:       Flat additional awards.
    """

    model_config = ConfigDict(frozen=True)

    age_points:              dict[str, PointRow]
    education_points:        dict[str, PointRow]
    first_language_points:   dict[str, PointRow]
    second_language_points:  dict[str, PointRow]
    canadian_work_points:    dict[str, PointRow]
    spouse_education_points: dict[str, int]
    spouse_language_points:  dict[str, int]
    spouse_work_points:      dict[str, int]
    education_rank:          dict[str, int]
    transferability:         TransferabilityMatrices
    additional_points:       AdditionalPoints = AdditionalPoints()

    @model_validator(mode="after")
    def validate_rows(self) -> "PointTables":
        _check_rows("age_points", self.age_points)
        _check_rows("education_points", self.education_points)
        _check_rows("first_language_points", self.first_language_points)
        _check_rows("second_language_points", self.second_language_points)
        _check_rows("canadian_work_points", self.canadian_work_points)
        return self

    def column(self, table: dict[str, PointRow], key: object, spouse: bool) -> int:
        """Look up ``key`` in a two-column table; missing rows score 0."""
        row = table.get(str(key))
        if row is None:
            return 0
        return row[1] if spouse else row[0]


class LanguageConverters(BaseModel):
    """Raw-score → level threshold rows per test and skill."""

    model_config = ConfigDict(frozen=True)

    ielts: dict[str, tuple[ThresholdRow, ...]]
    tef:   dict[str, tuple[ThresholdRow, ...]]
    tcf:   dict[str, tuple[ThresholdRow, ...]]

    @field_validator("ielts", "tef", "tcf")
    @classmethod
    def sort_descending(
        cls, v: dict[str, tuple[ThresholdRow, ...]]
    ) -> dict[str, tuple[ThresholdRow, ...]]:
        return {
            skill: tuple(sorted(rows, key=lambda r: r[0], reverse=True))
            for skill, rows in v.items()
        }


class PolicySnapshot(BaseModel):
    """One immutable CRS rule set."""

    model_config = ConfigDict(frozen=True)

    id:             str
    effective_date: date
    label:          str = ""
    notes:          tuple[str, ...] = ()
    tables:         PointTables
    caps:           PolicyCaps = PolicyCaps()
    converters:     LanguageConverters

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Policy snapshot id must not be empty.")
        return v.strip().lower()


class ResolvedPolicy(BaseModel):
    """The snapshot selected for a request, with selection provenance."""

    model_config = ConfigDict(frozen=True)

    snapshot:         PolicySnapshot
    source:           PolicySource
    registry_version: str = ""

    @property
    def id(self) -> str:
        return self.snapshot.id

    @property
    def effective_date(self) -> date:
        return self.snapshot.effective_date


class RegistryMeta(BaseModel):
    """Summary of a loaded registry, used for drift detection."""

    model_config = ConfigDict(frozen=True)

    version:            str
    latest_rule_set_id: str
    rule_set_ids:       tuple[str, ...]
    aliases:            dict[str, str] = {}


def as_resolved(policy: "PolicySnapshot | ResolvedPolicy") -> ResolvedPolicy:
    """Wrap a bare snapshot; resolved policies pass through unchanged."""
    if isinstance(policy, ResolvedPolicy):
        return policy
    return ResolvedPolicy(snapshot=policy, source="effective_date")
