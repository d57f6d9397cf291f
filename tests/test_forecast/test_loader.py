"""Tests for the draw-history JSON loader."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from crs_planner.forecast.loader import build_draw_history, load_draw_history


class TestLoadDrawHistory:
    def test_committed_file(self):
        history = load_draw_history()
        assert len(history.general_program) == 6
        assert len(history.category_based) == 4
        assert len(history.pnp_draws) == 3
        assert all(o.stream == "pnp_draws" for o in history.pnp_draws)
        assert history.last_updated.isoformat() == "2026-02-24"

    def test_missing_streams_load_empty(self, tmp_path):
        path = tmp_path / "draws.json"
        path.write_text(json.dumps({
            "general_program": [{"draw_date": "2026-01-07", "score": 511}],
        }))
        history = load_draw_history(path)
        assert len(history) == 1
        assert history.category_based == ()
        assert history.last_updated is None

    def test_invalid_entry_raises(self, tmp_path):
        path = tmp_path / "draws.json"
        path.write_text(json.dumps({
            "general_program": [{"draw_date": "2026-01-07", "score": 1500}],
        }))
        with pytest.raises(ValidationError, match="1200"):
            load_draw_history(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_draw_history(tmp_path / "nope.json")

    def test_build_tags_streams(self):
        history = build_draw_history({
            "category_based": [{"draw_date": "2026-02-06", "score": 400, "program": "French"}],
        })
        assert history.category_based[0].stream == "category_based"
        assert history.category_based[0].program == "French"

    def test_date_key_alias(self):
        history = build_draw_history({
            "general_program": [{"date": "2026-01-07", "score": 511}],
        })
        assert history.general_program[0].draw_date.isoformat() == "2026-01-07"
