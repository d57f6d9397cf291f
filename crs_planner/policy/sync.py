"""
Policy drift detection.

Hosts that cache ``ScoreResult`` objects (saved profiles, dashboards) need to
know when those results were computed under rules that are no longer active.
Two kinds of drift are distinguished:

  policy drift   : the *selected* snapshot changed (new effective date
                   reached, or the override id / source changed).
  registry drift : the *catalogue* changed (a snapshot was edited, added,
                   or an alias moved), detected through the registry version.

``plan_policy_sync()`` is pure: it compares the previously persisted
``PolicySyncState`` to the current resolution and returns a decision plus the
state the host should persist next.  Reading and writing that state, and
actually re-scoring saved profiles, belong to the host.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from crs_planner.models.policy import RegistryMeta, ResolvedPolicy
from crs_planner.models.score import ScoreResult

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    NOOP    = "noop"     # nothing changed; cached results stay valid
    UPDATED = "updated"  # host should recompute and persist ``next_state``


class PolicySyncState(BaseModel):
    """What the host persisted after the last sync."""

    model_config = ConfigDict(frozen=True)

    active_policy_id: str = ""
    policy_source:    str = ""
    registry_version: str = ""
    last_run_at:      Optional[datetime] = None
    last_change_at:   Optional[datetime] = None


@dataclass(frozen=True)
class PolicySyncDecision:
    """Outcome of one sync check.

    Attributes:
        status:         NOOP or UPDATED.
        changed:        True when either kind of drift was detected.
        policy_drift:   Selected snapshot id or source differs.
        registry_drift: Catalogue version differs.
        reason:         Caller-supplied trigger label (e.g. ``startup``).
        next_state:     State to persist; equals the previous state on NOOP.
    """

    status:         SyncStatus
    changed:        bool
    policy_drift:   bool
    registry_drift: bool
    reason:         str
    next_state:     PolicySyncState

    @property
    def should_recalculate(self) -> bool:
        return self.status == SyncStatus.UPDATED


def plan_policy_sync(
    previous: Optional[PolicySyncState],
    resolved: ResolvedPolicy,
    meta: RegistryMeta,
    force: bool = False,
    *,
    reason: str = "startup",
    now: Optional[datetime] = None,
) -> PolicySyncDecision:
    """Compare persisted sync state against the current policy resolution.

    Args:
        previous: Last persisted state, or None on first run.
        resolved: Current ``resolve_policy()`` result.
        meta:     Current ``registry_meta()``.
        force:    Recalculate even without drift.
        reason:   Free-form trigger label carried into the decision.
        now:      Timestamp for ``next_state`` (defaults to UTC now).

    Returns:
        PolicySyncDecision.
    """
    prev = previous or PolicySyncState()

    policy_drift = (
        prev.active_policy_id != resolved.id
        or prev.policy_source != resolved.source
    )
    registry_drift = prev.registry_version != meta.version
    changed = policy_drift or registry_drift

    if not (force or changed):
        return PolicySyncDecision(
            status=SyncStatus.NOOP,
            changed=False,
            policy_drift=False,
            registry_drift=False,
            reason=reason,
            next_state=prev,
        )

    stamp = now or datetime.now(tz=timezone.utc)
    next_state = PolicySyncState(
        active_policy_id=resolved.id,
        policy_source=resolved.source,
        registry_version=meta.version,
        last_run_at=stamp,
        last_change_at=stamp if changed else (prev.last_change_at or stamp),
    )

    if changed:
        logger.info(
            "Policy drift detected (policy=%s, registry=%s); active rule set %s.",
            policy_drift, registry_drift, resolved.id,
            extra={"policy_id": resolved.id, "reason": reason},
        )

    return PolicySyncDecision(
        status=SyncStatus.UPDATED,
        changed=changed,
        policy_drift=policy_drift,
        registry_drift=registry_drift,
        reason=reason,
        next_state=next_state,
    )


def is_stale_result(result: ScoreResult, resolved: ResolvedPolicy) -> bool:
    """True when ``result`` was scored under a different snapshot or source."""
    return (
        result.policy.version != resolved.id
        or result.policy.source != resolved.source
    )
