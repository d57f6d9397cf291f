"""
Shared pytest fixtures for the crs-planner test suite.

Provides:
  - ``registry``: the committed policy catalogue (``config/policies.toml``),
    freshly loaded for each test that requests it.
  - ``policy_2024`` / ``policy_2025``: the two committed snapshots, pinned
    by override.
  - ``skilled_worker``: a single applicant scoring 489 under either snapshot.
  - ``draw_history``: three general-program draws, oldest 500, newest 510.
"""

from __future__ import annotations

from datetime import date
from typing import Generator

import pytest

from crs_planner.models.forecast import DrawHistory, ThresholdObservation
from crs_planner.models.policy import ResolvedPolicy
from crs_planner.models.profile import LanguageScores, Profile
from crs_planner.policy.registry import PolicyRegistry, clear_registry_cache, load_policy_registry


# ── Policy fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def registry() -> Generator[PolicyRegistry, None, None]:
    """Load the committed catalogue; drop the module cache afterwards."""
    clear_registry_cache()
    yield load_policy_registry()
    clear_registry_cache()


@pytest.fixture
def policy_2024(registry: PolicyRegistry) -> ResolvedPolicy:
    return registry.resolve(override_id="ircc-2024-01-01-v1")


@pytest.fixture
def policy_2025(registry: PolicyRegistry) -> ResolvedPolicy:
    return registry.resolve(override_id="ircc-2025-03-25-v2")


# ── Profile fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def skilled_worker() -> Profile:
    """Age 30, bachelor's, CELPIP 9 across the board, 1y Canadian / 3y foreign work.

    Scores 489 under both committed snapshots:
    age 105 + education 120 + language 124 + Canadian work 40
    + transferability 100.
    """
    return Profile(
        age=30,
        education="bachelors",
        pathway="fsw",
        lang_test_type="celpip",
        english=LanguageScores.uniform(9),
        canadian_work_years=1,
        foreign_work_years=3,
        occupation_category="stem",
    )


# ── Draw fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def draw_history() -> DrawHistory:
    return DrawHistory(
        last_updated=date(2026, 2, 24),
        general_program=(
            ThresholdObservation(draw_date=date(2026, 1, 7), score=500),
            ThresholdObservation(draw_date=date(2026, 1, 21), score=505),
            ThresholdObservation(draw_date=date(2026, 2, 4), score=510),
        ),
    )
