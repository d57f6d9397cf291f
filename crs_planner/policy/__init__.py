"""
CRS rule-set resolution for the CRS planner.

This sub-package provides:

  policy/registry.py: Load the snapshot catalogue, apply aliases, resolve
                      the active snapshot for a date or override id.
  policy/sync.py    : Detect policy / registry drift so hosts know when
                      cached scores must be recomputed.

Snapshots are immutable.  A rule change is a new ``[policies.<id>]`` block in
config/policies.toml, usually naming the previous snapshot as its ``base``.
"""

from crs_planner.policy.registry import (
    PolicyRegistry,
    build_registry,
    clear_registry_cache,
    load_policy_registry,
    normalize_policy_id,
    registry_meta,
    resolve_policy,
)
from crs_planner.policy.sync import (
    PolicySyncDecision,
    PolicySyncState,
    SyncStatus,
    is_stale_result,
    plan_policy_sync,
)

__all__ = [
    # registry
    "PolicyRegistry",
    "build_registry",
    "clear_registry_cache",
    "load_policy_registry",
    "normalize_policy_id",
    "registry_meta",
    "resolve_policy",
    # sync
    "PolicySyncDecision",
    "PolicySyncState",
    "SyncStatus",
    "is_stale_result",
    "plan_policy_sync",
]
