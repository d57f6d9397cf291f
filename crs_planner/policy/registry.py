"""
CRS policy registry.

Loads ``PolicySnapshot`` objects from ``config/policies.toml`` (or a
caller-supplied path) and resolves which snapshot is active for a request.

Usage
-----
    from crs_planner.policy.registry import resolve_policy, registry_meta

    resolved = resolve_policy(date(2025, 6, 1))
    resolved.id                     # "ircc-2025-03-25-v2"
    resolved.source                 # "effective_date"

    pinned = resolve_policy(override_id="ircc-2024-01-01-v1")
    pinned.source                   # "override"

The registry is loaded lazily on first access and cached per path for the
lifetime of the process.  ``clear_registry_cache()`` drops the cache (tests).

Resolution rules
----------------
  1. A known ``override_id`` (after alias normalization) always wins,
     regardless of date.  Unknown ids are logged and ignored.
  2. Otherwise the last snapshot whose ``effective_date <= as_of_date``.
  3. If the date precedes every snapshot, the earliest snapshot.

Resolution never raises for out-of-range or unparsable dates.

TOML structure expected in policies.toml
----------------------------------------
    [registry]
    aliases = { "<legacy id>" = "<canonical id>" }

    [policies.<id>]
    base           = "<other id>"      # optional; tables deep-merged over base
    effective_date = 2025-03-25
    label          = "..."
    notes          = ["..."]

    [policies.<id>.tables.*]  [policies.<id>.caps]  [policies.<id>.converters.*]
"""

from __future__ import annotations

import hashlib
import json
import logging
import tomllib
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from crs_planner.config import deep_merge, resolve_project_path
from crs_planner.models.policy import PolicySnapshot, RegistryMeta, ResolvedPolicy

logger = logging.getLogger(__name__)

# ── Module-level cache ────────────────────────────────────────────────────────

_REGISTRY_CACHE: Optional["PolicyRegistry"] = None
_CACHE_PATH: Optional[str] = None

DEFAULT_REGISTRY_PATH = "config/policies.toml"


@dataclass(frozen=True)
class PolicyRegistry:
    """Ordered snapshot catalogue plus legacy-id aliases.

    Attributes:
        snapshots: Snapshots sorted ascending by effective date.
        aliases:   Legacy id → canonical id.
        version:   Fingerprint of the full catalogue.
    """

    snapshots: tuple[PolicySnapshot, ...]
    aliases:   dict[str, str] = field(default_factory=dict)
    version:   str = ""

    def normalize_policy_id(self, policy_id: Optional[str]) -> str:
        """Lower-case, trim, and apply alias resolution."""
        normalized = (policy_id or "").strip().lower()
        return self.aliases.get(normalized, normalized)

    def get(self, policy_id: str) -> PolicySnapshot:
        """Strict lookup by id or alias.

        Raises:
            KeyError: If no snapshot has that id.
        """
        wanted = self.normalize_policy_id(policy_id)
        for snapshot in self.snapshots:
            if snapshot.id == wanted:
                return snapshot
        raise KeyError(
            f"Unknown policy id '{policy_id}'. "
            f"Known ids: {[s.id for s in self.snapshots]}"
        )

    def has(self, policy_id: Optional[str]) -> bool:
        wanted = self.normalize_policy_id(policy_id)
        return any(s.id == wanted for s in self.snapshots)

    def resolve(
        self,
        as_of_date: Any = None,
        override_id: Optional[str] = None,
    ) -> ResolvedPolicy:
        if override_id:
            if self.has(override_id):
                return ResolvedPolicy(
                    snapshot=self.get(override_id),
                    source="override",
                    registry_version=self.version,
                )
            logger.warning(
                "Ignoring unknown policy override '%s'; resolving by date.",
                override_id,
                extra={"override_id": override_id},
            )

        when = _coerce_date(as_of_date)
        active = self.snapshots[0]
        for snapshot in self.snapshots:
            if snapshot.effective_date <= when:
                active = snapshot
            else:
                break

        return ResolvedPolicy(
            snapshot=active,
            source="effective_date",
            registry_version=self.version,
        )

    def meta(self) -> RegistryMeta:
        return RegistryMeta(
            version=self.version,
            latest_rule_set_id=self.snapshots[-1].id,
            rule_set_ids=tuple(s.id for s in self.snapshots),
            aliases=dict(self.aliases),
        )


def _coerce_date(value: Any) -> date:
    """Best-effort date parsing; anything unusable means today."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            logger.debug("Unparsable as-of date '%s'; using today.", value)
    return date.today()


# ── Parsing ───────────────────────────────────────────────────────────────────


def _expand_base(policy_id: str, blocks: dict[str, dict], chain: tuple[str, ...] = ()) -> dict:
    """Return ``blocks[policy_id]`` deep-merged over its ``base`` chain.

    Raises:
        ValueError: On an unknown base id or a base cycle.
    """
    if policy_id in chain:
        raise ValueError(f"Policy base cycle: {' -> '.join(chain + (policy_id,))}")
    block = dict(blocks[policy_id])
    base_id = block.pop("base", None)
    if base_id is None:
        return block
    if base_id not in blocks:
        raise ValueError(f"Policy '{policy_id}' names unknown base '{base_id}'.")
    parent = _expand_base(base_id, blocks, chain + (policy_id,))
    for inherited in ("label", "notes"):
        parent.pop(inherited, None)
    return deep_merge(parent, block)


def catalogue_fingerprint(snapshots: tuple[PolicySnapshot, ...], aliases: dict[str, str]) -> str:
    """SHA-256 over every snapshot's full content plus the alias map.

    Returns the first 16 hex characters, prefixed ``reg-``.  Changes only
    when the catalogue itself changes.
    """
    payload = {
        "snapshots": [s.model_dump(mode="json") for s in snapshots],
        "aliases":   dict(sorted(aliases.items())),
    }
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8"))
    return "reg-" + digest.hexdigest()[:16]


def build_registry(raw: dict[str, Any]) -> PolicyRegistry:
    """Build a registry from an already-parsed TOML mapping.

    Raises:
        ValueError: If no policies are defined or a base chain is invalid.
        pydantic.ValidationError: If a snapshot fails validation.
    """
    blocks: dict[str, dict] = raw.get("policies", {})
    if not blocks:
        raise ValueError("Policy registry defines no [policies.*] blocks.")

    snapshots = [
        PolicySnapshot(id=pid, **_expand_base(pid, blocks))
        for pid in blocks
    ]
    snapshots.sort(key=lambda s: s.effective_date)

    aliases = {
        str(k).strip().lower(): str(v).strip().lower()
        for k, v in raw.get("registry", {}).get("aliases", {}).items()
    }
    ordered = tuple(snapshots)
    return PolicyRegistry(
        snapshots=ordered,
        aliases=aliases,
        version=catalogue_fingerprint(ordered, aliases),
    )


def _load_registry(registry_path: Path) -> PolicyRegistry:
    """Read and parse ``registry_path``.

    Raises:
        FileNotFoundError: If registry_path does not exist.
        tomllib.TOMLDecodeError: If the TOML is malformed.
        pydantic.ValidationError: If a snapshot fails validation.
    """
    if not registry_path.exists():
        raise FileNotFoundError(
            f"Policy registry file not found: {registry_path}\n"
            "Expected at config/policies.toml.  "
            "Set policy.registry_path in default.toml to override."
        )

    with open(registry_path, "rb") as f:
        raw = tomllib.load(f)

    registry = build_registry(raw)
    logger.info(
        "Loaded %d policy snapshot(s) from %s (version %s).",
        len(registry.snapshots), registry_path, registry.version,
    )
    return registry


# ── Public API ────────────────────────────────────────────────────────────────


def load_policy_registry(registry_path: Optional[str | Path] = None) -> PolicyRegistry:
    """Return the policy registry (cached after first load per path).

    Args:
        registry_path: Path to policies.toml.  Relative paths resolve against
                       the project root.  Defaults to ``config/policies.toml``.
    """
    global _REGISTRY_CACHE, _CACHE_PATH

    resolved = resolve_project_path(registry_path or DEFAULT_REGISTRY_PATH)
    resolved_str = str(resolved)

    if _REGISTRY_CACHE is None or _CACHE_PATH != resolved_str:
        _REGISTRY_CACHE = _load_registry(resolved)
        _CACHE_PATH = resolved_str

    return _REGISTRY_CACHE


def clear_registry_cache() -> None:
    """Drop the cached registry so the next access reloads from disk."""
    global _REGISTRY_CACHE, _CACHE_PATH
    _REGISTRY_CACHE = None
    _CACHE_PATH = None


def normalize_policy_id(
    policy_id: Optional[str],
    registry: Optional[PolicyRegistry] = None,
) -> str:
    """Apply alias resolution to ``policy_id``."""
    return (registry or load_policy_registry()).normalize_policy_id(policy_id)


def resolve_policy(
    as_of_date: Any = None,
    override_id: Optional[str] = None,
    *,
    registry: Optional[PolicyRegistry] = None,
) -> ResolvedPolicy:
    """Select the active snapshot.

    Args:
        as_of_date:  ``date``, ``datetime`` or ISO string; defaults to today.
        override_id: Snapshot id (or alias) that wins regardless of date.
        registry:    Registry to resolve against; defaults to the cached one.

    Returns:
        ResolvedPolicy tagged ``override`` or ``effective_date``.
    """
    resolved = (registry or load_policy_registry()).resolve(as_of_date, override_id)
    logger.debug(
        "Resolved policy %s via %s.", resolved.id, resolved.source,
        extra={"policy_id": resolved.id},
    )
    return resolved


def registry_meta(registry: Optional[PolicyRegistry] = None) -> RegistryMeta:
    """Return version, latest id, all ids, and aliases of the registry."""
    return (registry or load_policy_registry()).meta()
