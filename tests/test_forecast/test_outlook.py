"""
Tests for the 3/6/12-month invitation outlook.

Covers:
  - Three horizons, probabilities within [1, 99]
  - Projected cutoffs follow the forecast slope
  - Top-lane gain phased in over its months
  - Recommended horizon selection and confidence averaging
"""

from __future__ import annotations

from datetime import date

from crs_planner.forecast.engine import forecast
from crs_planner.forecast.outlook import build_invitation_outlook
from crs_planner.models.strategy import OptimizerConstraints
from crs_planner.strategy.scorer import OptionDraft, score_option


def _top_option(gain: int = 60, months: int = 6):
    draft = OptionDraft(
        id="path-english-accelerator",
        title="English Accelerator Path",
        lane="Language",
        reason="",
        score_gain=gain,
        months=months,
        confidence=78,
        effort="Medium",
        lane_fit=85.0,
    )
    return score_option(draft, 30, OptimizerConstraints())


def _forecast(draw_history):
    return forecast(draw_history, 489, as_of=date(2026, 2, 14))


class TestHorizons:
    def test_three_horizons(self, draw_history):
        outlook = build_invitation_outlook(489, _forecast(draw_history))
        assert [h.id for h in outlook.horizons] == ["3m", "6m", "12m"]
        assert [h.months for h in outlook.horizons] == [3, 6, 12]

    def test_probabilities_bounded(self, draw_history):
        for current in (250, 489, 700, 1200):
            outlook = build_invitation_outlook(current, _forecast(draw_history), top_option=_top_option())
            for h in outlook.horizons:
                for value in (h.base_probability, h.best_probability, h.worst_probability,
                              h.interval_low, h.interval_high):
                    assert 1 <= value <= 99

    def test_projected_cutoffs_follow_slope(self, draw_history):
        outlook = build_invitation_outlook(489, _forecast(draw_history))
        # next 515, +5 per draw, two draws a month
        assert [h.projected_cutoff for h in outlook.horizons] == [540, 570, 630]

    def test_gain_phased_in(self, draw_history):
        outlook = build_invitation_outlook(489, _forecast(draw_history), top_option=_top_option(60, 6))
        assert [h.expected_gain for h in outlook.horizons] == [30, 60, 60]
        assert outlook.horizons[0].expected_score == 519
        assert outlook.top_lane == "Language"

    def test_no_top_option_means_no_gain(self, draw_history):
        outlook = build_invitation_outlook(489, _forecast(draw_history))
        assert all(h.expected_gain == 0 for h in outlook.horizons)
        assert outlook.top_lane is None


class TestRecommendation:
    def test_strong_score_recommends_earliest(self, draw_history):
        outlook = build_invitation_outlook(700, _forecast(draw_history))
        assert outlook.recommended_horizon_id == "3m"
        assert outlook.horizons[0].base_probability == 99
        assert outlook.horizons[0].band == "High"

    def test_weak_score_picks_best_available(self, draw_history):
        outlook = build_invitation_outlook(300, _forecast(draw_history))
        best = max(h.base_probability for h in outlook.horizons)
        chosen = next(h for h in outlook.horizons if h.id == outlook.recommended_horizon_id)
        assert chosen.base_probability == best

    def test_confidence_averaged_with_strategy(self, draw_history):
        fc = _forecast(draw_history)
        outlook = build_invitation_outlook(489, fc, overall_confidence=45)
        assert outlook.confidence_score == round((fc.confidence_score + 45) / 2)

    def test_summary_and_drivers(self, draw_history):
        outlook = build_invitation_outlook(489, _forecast(draw_history), top_option=_top_option())
        assert outlook.summary.startswith("Best window:")
        assert len(outlook.key_drivers) == 4

    def test_unparsable_score_counts_as_zero(self, draw_history):
        outlook = build_invitation_outlook("n/a", _forecast(draw_history))
        assert outlook.current_score == 0
        assert all(h.base_probability == 1 for h in outlook.horizons)
