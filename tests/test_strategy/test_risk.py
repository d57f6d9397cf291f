"""Tests for risk flags and penalties."""

from __future__ import annotations

from crs_planner.models.strategy import RiskFlag
from crs_planner.strategy.risk import (
    category_lane_flags,
    merge_flags,
    profile_signals,
    province_lane_flags,
    risk_penalty,
)


def _flag(id_: str, severity: str) -> RiskFlag:
    return RiskFlag(id=id_, label=id_, severity=severity)


class TestPenalty:
    def test_severity_weights(self):
        assert risk_penalty([_flag("a", "high"), _flag("b", "medium"), _flag("c", "low")]) == 17

    def test_capped(self):
        assert risk_penalty([_flag(str(i), "high") for i in range(4)]) == 24

    def test_empty(self):
        assert risk_penalty([]) == 0


class TestMerge:
    def test_keeps_highest_severity_first_seen_order(self):
        merged = merge_flags([_flag("x", "low"), _flag("y", "medium"), _flag("x", "high")])
        assert [f.id for f in merged] == ["x", "y"]
        assert merged[0].severity == "high"


class TestProfileSignals:
    def test_young_strong_profile_only_french(self):
        flags = profile_signals(25, 10, 0, -10)
        assert [f.id for f in flags] == ["french-upside-missing"]

    def test_severities(self):
        flags = {f.id: f.severity for f in profile_signals(36, 6, 7, 60)}
        assert flags == {"age-decay": "high", "language-threshold": "high", "cutoff-gap": "high"}

    def test_medium_band(self):
        flags = {f.id: f.severity for f in profile_signals(31, 8, 0, 30)}
        assert flags["age-decay"] == "medium"
        assert flags["language-threshold"] == "medium"
        assert flags["cutoff-gap"] == "medium"

    def test_unknown_age_not_flagged(self):
        assert "age-decay" not in {f.id for f in profile_signals(None, 10, 9, 0)}


class TestLaneFlags:
    def test_category_rotation_severity(self):
        assert category_lane_flags(2, 0)[0].severity == "low"
        assert category_lane_flags(0, 0)[0].severity == "high"
        assert [f.id for f in category_lane_flags(1, 25)] == ["category-rotation", "category-gap"]

    def test_province_fit(self):
        assert [f.id for f in province_lane_flags(80)] == ["provincial-intent"]
        assert [f.id for f in province_lane_flags(60)] == ["provincial-intent", "province-fit"]
