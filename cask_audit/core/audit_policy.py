# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Audit policy: hosting heuristics, trusted taps, disabled rules and severity overrides.

An ``AuditPolicy`` captures everything about an audit that a tap maintainer
may want to tune without touching rule code: which hosts are expected to
publish an appcast, which URL shapes are canonical for a provider, which tap
organisations count as official, and so on.

Usage
-----
    from cask_audit.core.audit_policy import AuditPolicy

    # Load built-in defaults
    policy = AuditPolicy.default()

    # Load a tap policy (merges on top of defaults)
    policy = AuditPolicy.from_yaml("my_policy.yaml")

    # Dump the current (including default) policy for editing
    policy.to_yaml("generated_policy.yaml")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import CaskAuditConstants
from .exceptions import PolicyError
from .hosting import HostingProvider, UrlFormatRule
from .models import Severity

logger = logging.getLogger(__name__)

_DATA_DIR = CaskAuditConstants.DATA_DIR
_DEFAULT_POLICY_PATH = CaskAuditConstants.DEFAULT_POLICY_PATH

# Named preset policies
_PRESET_POLICIES: dict[str, Path] = {
    "balanced": _DEFAULT_POLICY_PATH,
    "strict": _DATA_DIR / "strict_policy.yaml",
}


# ---------------------------------------------------------------------------
# Data classes for each policy section
# ---------------------------------------------------------------------------


@dataclass
class HostingPolicy:
    """Hosts whose downloads should come with an appcast."""

    providers: list[HostingProvider] = field(default_factory=list)
    appcast_doc_url: str = CaskAuditConstants.APPCAST_DOC_URL


@dataclass
class ChecksumPolicy:
    """Digests that are never legitimate for a download."""

    known_invalid: set[str] = field(default_factory=lambda: {CaskAuditConstants.EMPTY_SHA256})


@dataclass
class TapPolicy:
    """Which tap organisations are held to the official rules."""

    trusted_users: set[str] = field(default_factory=lambda: {CaskAuditConstants.DEFAULT_TRUSTED_TAP_USER})


@dataclass
class SeverityOverride:
    """A per-rule severity override."""

    rule_id: str
    severity: str  # ERROR / WARNING
    reason: str = ""


# ---------------------------------------------------------------------------
# The top-level policy object
# ---------------------------------------------------------------------------


@dataclass
class AuditPolicy:
    """Tap-level audit policy, everything that should be customisable."""

    # Metadata
    policy_name: str = "default"
    policy_version: str = "1.0"
    preset_base: str = "balanced"

    # Sections
    hosting: HostingPolicy = field(default_factory=HostingPolicy)
    url_formats: list[UrlFormatRule] = field(default_factory=list)
    checksums: ChecksumPolicy = field(default_factory=ChecksumPolicy)
    taps: TapPolicy = field(default_factory=TapPolicy)
    severity_overrides: list[SeverityOverride] = field(default_factory=list)
    disabled_rules: set[str] = field(default_factory=set)

    # -----------------------------------------------------------------------
    # Convenience helpers
    # -----------------------------------------------------------------------

    def get_severity_override(self, rule_id: str) -> Severity | None:
        """Return the overridden severity for *rule_id*, or ``None``."""
        for ovr in self.severity_overrides:
            if ovr.rule_id == rule_id:
                return Severity(ovr.severity.upper())
        return None

    def is_rule_enabled(self, rule_id: str) -> bool:
        return rule_id not in self.disabled_rules

    def is_trusted_tap_user(self, user: str | None) -> bool:
        return user is not None and user in self.taps.trusted_users

    def is_known_invalid_checksum(self, digest: str) -> bool:
        return digest.lower() in {d.lower() for d in self.checksums.known_invalid}

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> AuditPolicy:
        """Load the built-in default policy that ships with the package."""
        return cls.from_yaml(_DEFAULT_POLICY_PATH)

    @classmethod
    def from_preset(cls, name: str) -> AuditPolicy:
        """Load a named preset policy: ``balanced`` or ``strict``."""
        name_lower = name.lower()
        if name_lower not in _PRESET_POLICIES:
            raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(sorted(_PRESET_POLICIES))}")
        return cls.from_yaml(_PRESET_POLICIES[name_lower])

    @classmethod
    def preset_names(cls) -> list[str]:
        """Return available preset policy names."""
        return sorted(_PRESET_POLICIES.keys())

    @classmethod
    def from_yaml(cls, path: str | Path) -> AuditPolicy:
        """
        Load a policy from a YAML file.

        The YAML is first merged on top of the built-in defaults so that
        users only need to specify the sections they want to override.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        try:
            with open(path) as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise PolicyError(f"Invalid policy YAML in {path}: {e}") from e

        if not isinstance(raw, dict):
            raise PolicyError(f"Policy file {path} must contain a mapping")

        if path.resolve() == _DEFAULT_POLICY_PATH.resolve():
            return cls._from_dict(raw)

        merged = cls._deep_merge(cls._load_default_raw(), raw)
        return cls._from_dict(merged)

    def to_yaml(self, path: str | Path) -> None:
        """Dump the full policy to a YAML file for editing."""
        data = self._to_dict()
        with open(path, "w") as fh:
            fh.write("# Cask Audit - Audit Policy\n")
            fh.write("# Customise this file to match your tap's rules.\n")
            fh.write("# Only include sections you want to override; omitted sections\n")
            fh.write("# will use the built-in defaults.\n\n")
            yaml.dump(data, fh, default_flow_style=False, sort_keys=False, width=120)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @classmethod
    def _load_default_raw(cls) -> dict[str, Any]:
        if _DEFAULT_POLICY_PATH.exists():
            with open(_DEFAULT_POLICY_PATH) as fh:
                return yaml.safe_load(fh) or {}
        return {}

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*.

        Lists in the override replace the base list wholesale.
        """
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = AuditPolicy._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> AuditPolicy:
        hs = d.get("hosting", {}) or {}
        cs = d.get("checksums", {}) or {}
        tp = d.get("taps", {}) or {}

        try:
            providers = [
                HostingProvider(
                    name=p["name"],
                    pattern=p["pattern"],
                    phrase=p.get("phrase", f"is hosted on {p['name']}"),
                    skip_when_latest=bool(p.get("skip_when_latest", False)),
                )
                for p in hs.get("providers", [])
            ]
            url_formats = [
                UrlFormatRule(
                    name=u["name"],
                    rule_id=u.get("rule_id", "URL_FORMAT_INCORRECT"),
                    detect=u["detect"],
                    valid_formats=tuple(u.get("valid_formats", [])),
                    doc_url=u.get("doc_url", CaskAuditConstants.URL_DOC_URL),
                )
                for u in d.get("url_formats", [])
            ]
            severity_overrides = [SeverityOverride(**ovr) for ovr in d.get("severity_overrides", [])]
        except (KeyError, TypeError) as e:
            raise PolicyError(f"Malformed policy entry: {e}") from e

        for ovr in severity_overrides:
            if ovr.severity.upper() not in Severity.__members__:
                raise PolicyError(f"Invalid severity '{ovr.severity}' for rule {ovr.rule_id}")

        return cls(
            policy_name=d.get("policy_name", "default"),
            policy_version=str(d.get("policy_version", "1.0")),
            preset_base=d.get("preset_base", "balanced"),
            hosting=HostingPolicy(
                providers=providers,
                appcast_doc_url=hs.get("appcast_doc_url", CaskAuditConstants.APPCAST_DOC_URL),
            ),
            url_formats=url_formats,
            checksums=ChecksumPolicy(
                known_invalid=set(cs.get("known_invalid", [CaskAuditConstants.EMPTY_SHA256])),
            ),
            taps=TapPolicy(
                trusted_users=set(tp.get("trusted_users", [CaskAuditConstants.DEFAULT_TRUSTED_TAP_USER])),
            ),
            severity_overrides=severity_overrides,
            disabled_rules=set(d.get("disabled_rules", [])),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "policy_version": self.policy_version,
            "preset_base": self.preset_base,
            "hosting": {
                "appcast_doc_url": self.hosting.appcast_doc_url,
                "providers": [
                    {
                        "name": p.name,
                        "pattern": p.pattern,
                        "phrase": p.phrase,
                        "skip_when_latest": p.skip_when_latest,
                    }
                    for p in self.hosting.providers
                ],
            },
            "url_formats": [
                {
                    "name": u.name,
                    "rule_id": u.rule_id,
                    "detect": u.detect,
                    "valid_formats": list(u.valid_formats),
                    "doc_url": u.doc_url,
                }
                for u in self.url_formats
            ],
            "checksums": {
                "known_invalid": sorted(self.checksums.known_invalid),
            },
            "taps": {
                "trusted_users": sorted(self.taps.trusted_users),
            },
            "severity_overrides": [
                {"rule_id": o.rule_id, "severity": o.severity, "reason": o.reason} for o in self.severity_overrides
            ],
            "disabled_rules": sorted(self.disabled_rules),
        }
