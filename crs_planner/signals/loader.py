"""
Category-draw and provincial reference data.

TOML structure expected in signals.toml
---------------------------------------
    [categories.<id>]
    name          = "French-Language Proficiency"
    recent_cutoff = 400
    kind          = "french_floor" | "occupation"
    min_level     = 7                  # french_floor only
    occupations   = ["healthcare"]     # occupation only

    [provinces.<id>]
    name            = "Ontario"
    demand_sectors  = ["stem", "healthcare"]
    min_clb         = 7
    min_education   = "bachelors"
    min_work_years  = 1
    french_priority = true             # optional

Definitions keep file order.  Loading raises on missing files or invalid
entries; evaluation against a profile never does.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from crs_planner.config import resolve_project_path
from crs_planner.models.profile import EducationLevel

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS_PATH = "config/signals.toml"

CategoryKind = Literal["french_floor", "occupation"]


class CategoryDefinition(BaseModel):
    """Declarative eligibility rule for one category-based draw stream."""

    model_config = ConfigDict(frozen=True)

    id:            str
    name:          str
    recent_cutoff: int = Field(ge=0, le=1200)
    kind:          CategoryKind
    min_level:     int = Field(default=7, ge=0, le=12)
    occupations:   tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_rule(self) -> "CategoryDefinition":
        if self.kind == "occupation" and not self.occupations:
            raise ValueError(f"Category '{self.id}' of kind 'occupation' lists no occupations.")
        return self


class ProvinceDefinition(BaseModel):
    """Minimum criteria and in-demand sectors for one provincial program."""

    model_config = ConfigDict(frozen=True)

    id:              str
    name:            str
    demand_sectors:  tuple[str, ...] = ()
    min_clb:         int = Field(default=5, ge=0, le=12)
    min_education:   EducationLevel = "secondary"
    min_work_years:  int = Field(default=1, ge=0)
    french_priority: bool = False


class SignalCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: tuple[CategoryDefinition, ...] = ()
    provinces:  tuple[ProvinceDefinition, ...] = ()


def build_signal_catalog(raw: dict[str, Any]) -> SignalCatalog:
    """Validate a parsed signals document.

    Raises:
        pydantic.ValidationError: On any invalid category or province.
    """
    categories = [
        CategoryDefinition.model_validate({"id": key, **body})
        for key, body in (raw.get("categories") or {}).items()
    ]
    provinces = [
        ProvinceDefinition.model_validate({"id": key, **body})
        for key, body in (raw.get("provinces") or {}).items()
    ]
    return SignalCatalog(categories=tuple(categories), provinces=tuple(provinces))


def load_signal_catalog(path: Optional[str | Path] = None) -> SignalCatalog:
    """Load category and province definitions from TOML.

    Raises:
        FileNotFoundError:        If the file does not exist.
        pydantic.ValidationError: If any definition is invalid.
    """
    file_path = resolve_project_path(path or DEFAULT_SIGNALS_PATH)
    if not file_path.exists():
        raise FileNotFoundError(f"Signals file not found: {file_path}")

    with open(file_path, "rb") as f:
        raw = tomllib.load(f)

    catalog = build_signal_catalog(raw)
    logger.debug(
        "Loaded %d categories and %d provinces from %s.",
        len(catalog.categories), len(catalog.provinces), file_path,
    )
    return catalog
