"""
Draw-history loader.

Reads ``config/draws/recent_draws.json``::

    {
      "last_updated": "2026-02-24",
      "general_program": [{"draw_date": "...", "score": 508, ...}, ...],
      "category_based":  [...],
      "pnp_draws":       [...]
    }

Each entry is tagged with the stream it was listed under.  Missing streams
load as empty; any invalid entry fails the whole load.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from crs_planner.config import resolve_project_path
from crs_planner.models.forecast import DRAW_STREAMS, DrawHistory

logger = logging.getLogger(__name__)

DEFAULT_DRAWS_PATH = "config/draws/recent_draws.json"


def build_draw_history(raw: dict[str, Any]) -> DrawHistory:
    """Validate a parsed draws document into a ``DrawHistory``.

    Raises:
        pydantic.ValidationError: On any malformed entry.
    """
    payload: dict[str, Any] = {"last_updated": raw.get("last_updated")}
    for stream in DRAW_STREAMS:
        payload[stream] = [
            {**entry, "stream": stream} for entry in raw.get(stream) or []
        ]
    return DrawHistory.model_validate(payload)


def load_draw_history(path: Optional[str | Path] = None) -> DrawHistory:
    """Load draw history from JSON.

    Args:
        path: JSON file; relative paths resolve against the project root.

    Raises:
        FileNotFoundError:        If the file does not exist.
        pydantic.ValidationError: If any entry is malformed.
    """
    file_path = resolve_project_path(path or DEFAULT_DRAWS_PATH)
    if not file_path.exists():
        raise FileNotFoundError(f"Draw history not found: {file_path}")

    with open(file_path, encoding="utf-8") as f:
        raw = json.load(f)

    history = build_draw_history(raw)
    logger.info(
        "Loaded %d draw(s) from %s.", len(history), file_path,
        extra={"last_updated": str(history.last_updated)},
    )
    return history
