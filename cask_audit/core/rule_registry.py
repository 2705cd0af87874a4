# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""
Rule Pack system - self-describing rules with metadata.

Every check function in ``cask_audit/data/packs/<pack>/python/`` emits
findings under one or more rule IDs. The pack's ``pack.yaml`` manifest
documents each rule ID: its default severity, the stanza it concerns, which
check implements it and which audit toggle (if any) gates it.

.. code-block:: text

    packs/core/
        pack.yaml           # Manifest - declares all rules
        python/*_checks.py  # Check implementations

The :class:`RuleRegistry` is used to list rules and to validate policy
files that disable or re-classify rules by ID.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import CaskAuditConstants

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleDefinition:
    """Metadata for a single audit rule."""

    id: str
    """Unique rule identifier, e.g. ``SHA256_NOT_HEX``."""

    pack_name: str
    """Name of the pack that provides this rule."""

    default_severity: str = ""
    """``ERROR`` or ``WARNING``."""

    stanza: str = ""
    """Stanza(s) the rule is concerned with."""

    check: str = ""
    """Check function(s) that emit the rule."""

    gate: str = ""
    """Audit toggle that must be on for the rule to run, if any."""

    network: bool = False
    """Whether the rule needs network access."""

    description: str = ""
    """Human-readable one-liner."""


@dataclass
class RulePack:
    """A collection of rules loaded from a single pack directory."""

    name: str
    version: str
    description: str
    path: Path
    rules: dict[str, RuleDefinition] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Central catalog of all known rule definitions across packs.

    Read-only after construction.
    """

    def __init__(self) -> None:
        self._rules: dict[str, RuleDefinition] = {}
        self._packs: dict[str, RulePack] = {}

    def register_pack(self, pack: RulePack) -> None:
        """Register all rules from *pack*.

        Raises :class:`ValueError` if a rule ID collides with an
        already-registered rule from a different pack.
        """
        for rule_id, rule_def in pack.rules.items():
            if rule_id in self._rules:
                existing = self._rules[rule_id]
                if existing.pack_name != pack.name:
                    raise ValueError(
                        f"Rule ID collision: '{rule_id}' is defined in both "
                        f"pack '{existing.pack_name}' and pack '{pack.name}'"
                    )
            self._rules[rule_id] = rule_def
        self._packs[pack.name] = pack

    def get(self, rule_id: str) -> RuleDefinition | None:
        """Look up a rule by ID."""
        return self._rules.get(rule_id)

    def all_rules(self) -> dict[str, RuleDefinition]:
        """Return a shallow copy of the full rule catalog."""
        return dict(self._rules)

    def all_packs(self) -> dict[str, RulePack]:
        return dict(self._packs)

    def rule_ids(self) -> set[str]:
        return set(self._rules.keys())

    def unknown_rule_ids(self, rule_ids: set[str]) -> set[str]:
        """Return the IDs in *rule_ids* that no registered pack declares."""
        return set(rule_ids) - self.rule_ids()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules


# ---------------------------------------------------------------------------
# Pack loader
# ---------------------------------------------------------------------------


class PackLoader:
    """Discovers and loads rule packs from filesystem directories."""

    _BUILT_IN_PACKS_DIR: Path = CaskAuditConstants.PACKS_DIR

    def load_pack(self, path: Path) -> RulePack:
        """Load a single rule pack from *path*.

        Raises:
            FileNotFoundError: If ``pack.yaml`` is missing.
        """
        path = Path(path)
        manifest_path = path / "pack.yaml"
        if not manifest_path.exists():
            raise FileNotFoundError(f"Pack manifest not found: {manifest_path}")

        with open(manifest_path, encoding="utf-8") as fh:
            raw: dict[str, Any] = yaml.safe_load(fh) or {}

        pack_name = raw.get("name", path.name)
        rules: dict[str, RuleDefinition] = {}
        for rule_id, rule_data in (raw.get("rules") or {}).items():
            rule_id = str(rule_id)
            if not isinstance(rule_data, dict):
                logger.warning("Skipping non-dict rule entry '%s' in pack '%s'", rule_id, pack_name)
                continue

            rules[rule_id] = RuleDefinition(
                id=rule_id,
                pack_name=pack_name,
                default_severity=str(rule_data.get("severity", "")).upper(),
                stanza=rule_data.get("stanza", ""),
                check=rule_data.get("check", ""),
                gate=rule_data.get("gate", ""),
                network=bool(rule_data.get("network", False)),
                description=rule_data.get("description", ""),
            )

        return RulePack(
            name=pack_name,
            version=str(raw.get("version", "0.0")),
            description=raw.get("description", ""),
            path=path,
            rules=rules,
        )

    def discover_packs(self, built_in_dir: Path | None = None) -> list[RulePack]:
        """Load every pack directory (one containing ``pack.yaml``) under *built_in_dir*."""
        packs: list[RulePack] = []

        search_dir = built_in_dir or self._BUILT_IN_PACKS_DIR
        if search_dir.is_dir():
            for child in sorted(search_dir.iterdir()):
                if child.is_dir() and (child / "pack.yaml").exists():
                    try:
                        packs.append(self.load_pack(child))
                    except Exception as exc:
                        logger.warning("Failed to load built-in pack '%s': %s", child.name, exc)

        return packs

    def build_registry(self, built_in_dir: Path | None = None) -> RuleRegistry:
        """Convenience: discover packs and build a populated registry."""
        registry = RuleRegistry()
        for pack in self.discover_packs(built_in_dir=built_in_dir):
            registry.register_pack(pack)
        return registry
