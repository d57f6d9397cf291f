"""
Tests for the 90-day action plan.

Covers:
  - Fixed five-task schedule: ids, windows, priorities, lanes
  - Primary lane filled from the optimizer's top option
  - Secondary lane filled from the second suggestion
  - Generic fallbacks without a report or suggestions
  - Gap handling: report default, explicit override, negative and
    unparsable values
  - Milestones mirror the primary and secondary impacts
"""

from __future__ import annotations

import pytest

from crs_planner.models.plan import Suggestion
from crs_planner.models.strategy import StrategyReport
from crs_planner.planning.suggestions import generate_suggestions
from crs_planner.strategy.action_plan import build_action_plan
from crs_planner.strategy.optimizer import optimize_strategy


def _suggestion(title: str, gain: int, description: str = "") -> Suggestion:
    return Suggestion(
        title=title, description=description, potential_gain=gain,
        difficulty="Medium", timeframe="2-4 months", icon="language",
    )


@pytest.fixture
def report(skilled_worker, policy_2025) -> StrategyReport:
    return optimize_strategy(skilled_worker, None, 520, policy=policy_2025)


class TestSchedule:
    def test_task_ids_and_windows(self, report):
        plan = build_action_plan(report)
        assert [t.id for t in plan.tasks] == [
            "plan-baseline",
            "plan-primary-lane",
            "plan-secondary-lane",
            "plan-document-pack",
            "plan-profile-audit",
        ]
        assert [t.window for t in plan.tasks] == [
            "Day 1-10", "Day 11-35", "Day 30-55", "Day 40-70", "Day 65-90",
        ]
        assert all(1 <= t.day_from <= t.day_to <= 90 for t in plan.tasks)

    def test_priorities_and_fixed_lanes(self, report):
        tasks = {t.id: t for t in build_action_plan(report).tasks}
        assert tasks["plan-secondary-lane"].priority == "Medium"
        assert tasks["plan-document-pack"].lane == "Readiness"
        assert tasks["plan-profile-audit"].lane == "Risk Control"
        assert tasks["plan-document-pack"].impact == 0
        assert "above 15 points" in tasks["plan-profile-audit"].rationale


class TestLanes:
    def test_primary_lane_from_top_option(self, report):
        primary = build_action_plan(report).tasks[1]
        assert report.top is not None
        assert primary.title == f"Execute primary lane: {report.top.title}"
        assert primary.lane == report.top.title
        assert primary.rationale == report.top.reason
        assert primary.impact == (report.top.score_gain or 10)

    def test_baseline_shares_top_lane(self, report):
        plan = build_action_plan(report)
        assert plan.tasks[0].lane == plan.tasks[1].lane

    def test_secondary_lane_uses_second_suggestion(self, report):
        suggestions = [
            _suggestion("Provincial Nominee Program", 600),
            _suggestion("Learn French (TEF/TCF)", 62, "Strong French skills earn points."),
        ]
        secondary = build_action_plan(report, suggestions).tasks[2]
        assert secondary.title == "Secondary boost: Learn French (TEF/TCF)"
        assert secondary.rationale == "Strong French skills earn points."
        assert secondary.impact == 62
        assert secondary.lane == "Learn French (TEF/TCF)"

    def test_generated_suggestions(self, report, skilled_worker, policy_2025):
        suggestions = generate_suggestions(skilled_worker, policy_2025)
        secondary = build_action_plan(report, suggestions).tasks[2]
        assert secondary.title == f"Secondary boost: {suggestions[1].title}"
        assert secondary.impact == suggestions[1].potential_gain

    def test_single_suggestion_falls_back(self, report):
        secondary = build_action_plan(report, [_suggestion("Provincial Nominee Program", 600)]).tasks[2]
        assert secondary.title == "Secondary boost: language and profile precision"
        assert secondary.impact == 8
        assert secondary.lane == "Secondary path"


class TestFallbacks:
    def test_no_report(self):
        plan = build_action_plan(None)
        primary = plan.tasks[1]
        assert primary.title == "Execute primary lane: Profile Optimization"
        assert primary.rationale == "Follow the highest-impact lane identified by optimizer."
        assert primary.impact == 10
        assert "Current gap: 0 points." in plan.tasks[0].rationale

    def test_report_without_top_option(self):
        empty = StrategyReport(score=560, cutoff=520, gap=-40)
        plan = build_action_plan(empty)
        assert plan.tasks[1].lane == "Profile Optimization"
        assert "Current gap: 0 points." in plan.tasks[0].rationale


class TestGap:
    def test_defaults_to_report_gap(self, report):
        assert report.gap == 31
        assert "Current gap: 31 points." in build_action_plan(report).tasks[0].rationale

    @pytest.mark.parametrize("raw,expected", [(42, 42), ("17", 17), (-5, 0), ("n/a", 0)])
    def test_explicit_gap(self, report, raw, expected):
        rationale = build_action_plan(report, score_gap=raw).tasks[0].rationale
        assert f"Current gap: {expected} points." in rationale


class TestMilestones:
    def test_three_monthly_milestones(self, report):
        suggestions = [_suggestion("A", 40), _suggestion("B", 20)]
        plan = build_action_plan(report, suggestions)
        assert [m.label for m in plan.milestones] == ["Days 1-30", "Days 31-60", "Days 61-90"]
        assert [m.expected_gain for m in plan.milestones] == [plan.tasks[1].impact, 20, 0]
