"""
Tests for policy drift detection.

Covers:
  - First run (no persisted state) → UPDATED with both drifts
  - Unchanged state → NOOP, previous state returned as-is
  - Policy drift (new effective snapshot) vs registry drift (version change)
  - force=True recalculates without reporting a change
  - Stale ScoreResult detection
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from crs_planner.models.policy import RegistryMeta
from crs_planner.policy.sync import PolicySyncState, SyncStatus, is_stale_result, plan_policy_sync
from crs_planner.scoring.engine import score

NOW = datetime(2026, 2, 24, 12, 0, tzinfo=timezone.utc)


def _state(resolved, meta, **overrides) -> PolicySyncState:
    fields = dict(
        active_policy_id=resolved.id,
        policy_source=resolved.source,
        registry_version=meta.version,
        last_run_at=NOW,
        last_change_at=NOW,
    )
    fields.update(overrides)
    return PolicySyncState(**fields)


class TestPlanPolicySync:
    def test_first_run_updates(self, registry):
        resolved, meta = registry.resolve(date(2025, 6, 1)), registry.meta()
        decision = plan_policy_sync(None, resolved, meta, now=NOW)
        assert decision.status == SyncStatus.UPDATED
        assert decision.changed is True
        assert decision.policy_drift is True
        assert decision.registry_drift is True
        assert decision.should_recalculate is True
        assert decision.next_state.active_policy_id == "ircc-2025-03-25-v2"
        assert decision.next_state.last_change_at == NOW

    def test_no_drift_is_noop(self, registry):
        resolved, meta = registry.resolve(date(2025, 6, 1)), registry.meta()
        previous = _state(resolved, meta)
        decision = plan_policy_sync(previous, resolved, meta, reason="interval")
        assert decision.status == SyncStatus.NOOP
        assert decision.changed is False
        assert decision.should_recalculate is False
        assert decision.next_state is previous
        assert decision.reason == "interval"

    def test_policy_drift_on_new_snapshot(self, registry):
        meta = registry.meta()
        previous = _state(registry.resolve(date(2024, 6, 1)), meta)
        decision = plan_policy_sync(previous, registry.resolve(date(2025, 6, 1)), meta, now=NOW)
        assert decision.policy_drift is True
        assert decision.registry_drift is False
        assert decision.next_state.active_policy_id == "ircc-2025-03-25-v2"

    def test_source_change_counts_as_policy_drift(self, registry):
        meta = registry.meta()
        previous = _state(registry.resolve(date(2025, 6, 1)), meta)
        pinned = registry.resolve(override_id="ircc-2025-03-25-v2")
        decision = plan_policy_sync(previous, pinned, meta, now=NOW)
        assert decision.policy_drift is True

    def test_registry_drift_on_version_change(self, registry):
        resolved = registry.resolve(date(2025, 6, 1))
        previous = _state(resolved, registry.meta(), registry_version="reg-0000000000000000")
        decision = plan_policy_sync(previous, resolved, registry.meta(), now=NOW)
        assert decision.registry_drift is True
        assert decision.policy_drift is False
        assert decision.next_state.registry_version == registry.version

    def test_force_recalculates_without_change(self, registry):
        resolved, meta = registry.resolve(date(2025, 6, 1)), registry.meta()
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        previous = _state(resolved, meta, last_change_at=earlier)
        decision = plan_policy_sync(previous, resolved, meta, force=True, now=NOW)
        assert decision.status == SyncStatus.UPDATED
        assert decision.changed is False
        assert decision.next_state.last_run_at == NOW
        assert decision.next_state.last_change_at == earlier

    def test_meta_built_by_hand(self, registry):
        resolved = registry.resolve(date(2025, 6, 1))
        meta = RegistryMeta(version="reg-x", latest_rule_set_id=resolved.id, rule_set_ids=(resolved.id,))
        decision = plan_policy_sync(_state(resolved, meta), resolved, meta)
        assert decision.status == SyncStatus.NOOP


class TestStaleResult:
    def test_same_policy_not_stale(self, skilled_worker, policy_2025):
        assert is_stale_result(score(skilled_worker, policy_2025), policy_2025) is False

    def test_other_snapshot_is_stale(self, skilled_worker, policy_2024, policy_2025):
        assert is_stale_result(score(skilled_worker, policy_2024), policy_2025) is True
