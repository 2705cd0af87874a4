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
Data models for casks, artifacts and audit findings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Union

from .exceptions import CaskAuditError


class Sentinel(Enum):
    """Symbolic stanza values that are not plain strings."""

    LATEST = "latest"
    NO_CHECK = "no_check"

    def __str__(self) -> str:
        return self.value


LATEST = Sentinel.LATEST
NO_CHECK = Sentinel.NO_CHECK


class Severity(str, Enum):
    """Severity levels for audit findings."""

    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class Version:
    """The ``version`` stanza.

    ``raw_version`` is either the :data:`LATEST` sentinel or whatever value
    the cask declared (usually a string, occasionally a number or list).
    """

    raw_version: Any

    @property
    def latest(self) -> bool:
        return self.raw_version is LATEST

    def __str__(self) -> str:
        return str(self.raw_version)


@dataclass(frozen=True)
class CaskUrl:
    """The ``url`` stanza with its per-URL options."""

    uri: str
    user_agent: str | None = None
    using: str | None = None

    def __str__(self) -> str:
        return self.uri


@dataclass(frozen=True)
class Appcast:
    """The ``appcast`` stanza.

    ``configuration`` is ``None`` (derive the expected version from the
    cask), :data:`NO_CHECK`, or an explicit string to look for.
    """

    uri: str
    configuration: str | Sentinel | None = None

    def __str__(self) -> str:
        return self.uri


@dataclass(frozen=True)
class Tap:
    """The repository a cask was loaded from, e.g. ``Homebrew/cask``."""

    user: str
    repo: str = "cask"

    @property
    def name(self) -> str:
        return f"{self.user}/{self.repo}"


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


# Artifact kinds whose display name is not their title-cased stanza name.
ENGLISH_NAMES = {
    "artifact": "Generic Artifact",
    "colorpicker": "Color Picker",
    "prefpane": "Preference Pane",
    "qlplugin": "QuickLook Plugin",
    "vst_plugin": "VST Plugin",
    "vst3_plugin": "VST3 Plugin",
}


@dataclass(frozen=True)
class InstallAction:
    """Generic "place ``source`` at ``target``" artifact (app, binary, font, ...)."""

    kind: str
    source: str
    target: str

    @property
    def english_name(self) -> str:
        return ENGLISH_NAMES.get(self.kind) or self.kind.replace("_", " ").title()

    @property
    def target_is_absolute(self) -> bool:
        return PurePosixPath(self.target).is_absolute()


@dataclass(frozen=True)
class PackageInstaller:
    """A ``pkg`` stanza."""

    path: str
    allow_untrusted: bool = False


@dataclass(frozen=True)
class GenericInstaller:
    """An ``installer`` stanza (manual or scripted)."""

    manual: str | None = None
    script: str | None = None


@dataclass(frozen=True)
class UninstallAction:
    directives: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ZapAction:
    directives: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class PreflightHook:
    """A ``preflight`` or ``uninstall_preflight`` block."""

    directives: frozenset[str] = frozenset()


@dataclass(frozen=True)
class PostflightHook:
    """A ``postflight`` or ``uninstall_postflight`` block."""

    directives: frozenset[str] = frozenset()


Artifact = Union[
    InstallAction,
    PackageInstaller,
    GenericInstaller,
    UninstallAction,
    ZapAction,
    PreflightHook,
    PostflightHook,
]

ARTIFACT_TYPES: tuple[type, ...] = (
    InstallAction,
    PackageInstaller,
    GenericInstaller,
    UninstallAction,
    ZapAction,
    PreflightHook,
    PostflightHook,
)

# Artifacts that only remove things; they never make a cask installable.
REMOVAL_ARTIFACT_TYPES: tuple[type, ...] = (UninstallAction, ZapAction)


@dataclass(frozen=True)
class Cask:
    """An in-memory cask manifest. Read-only for the auditor."""

    token: str
    name: tuple[str, ...] = ()
    version: Version | None = None
    sha256: str | Sentinel | None = None
    url: CaskUrl | None = None
    homepage: str | None = None
    appcast: Appcast | None = None
    auto_updates: bool = False
    artifacts: tuple[Artifact, ...] = ()
    tap: Tap | None = None
    sourcefile_path: Path | None = None

    def __post_init__(self):
        for artifact in self.artifacts:
            if not isinstance(artifact, ARTIFACT_TYPES):
                raise TypeError(f"Unknown artifact type for cask '{self.token}': {type(artifact).__name__}")

    def artifacts_of(self, *types: type) -> list[Artifact]:
        """Return the artifacts that are instances of any of *types*, in order."""
        return [a for a in self.artifacts if isinstance(a, types)]

    def __str__(self) -> str:
        return self.token


# ---------------------------------------------------------------------------
# Findings and results
# ---------------------------------------------------------------------------


@dataclass
class Finding:
    """A single problem discovered in a cask."""

    rule_id: str  # Rule that triggered this finding
    severity: Severity
    message: str
    stanza: str | None = None  # Stanza the problem is attached to, if any
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to dictionary."""
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "stanza": self.stanza,
            "metadata": self.metadata,
        }


@dataclass
class AuditResult:
    """Errors and warnings collected while auditing a single cask.

    Findings can only be added through :meth:`add_error`, :meth:`add_warning`
    or :meth:`add_finding`. Once :meth:`seal` has been called the result is
    read-only.
    """

    cask_token: str
    sourcefile_path: str | None = None
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    _findings: list[Finding] = field(default_factory=list, repr=False)
    _sealed: bool = field(default=False, repr=False)

    def add_error(self, message: str, rule_id: str = "AUDIT_ERROR", stanza: str | None = None) -> None:
        self.add_finding(Finding(rule_id=rule_id, severity=Severity.ERROR, message=message, stanza=stanza))

    def add_warning(self, message: str, rule_id: str = "AUDIT_WARNING", stanza: str | None = None) -> None:
        self.add_finding(Finding(rule_id=rule_id, severity=Severity.WARNING, message=message, stanza=stanza))

    def add_finding(self, finding: Finding) -> None:
        if self._sealed:
            raise CaskAuditError(f"audit result for {self.cask_token} is sealed")
        self._findings.append(finding)

    def seal(self) -> None:
        """Freeze the result; called by the auditor when a run completes."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def findings(self) -> tuple[Finding, ...]:
        return tuple(self._findings)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(f.message for f in self._findings if f.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(f.message for f in self._findings if f.severity == Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return any(f.severity == Severity.ERROR for f in self._findings)

    @property
    def has_warnings(self) -> bool:
        return any(f.severity == Severity.WARNING for f in self._findings)

    @property
    def success(self) -> bool:
        """True when the audit produced neither errors nor warnings."""
        return not (self.has_errors or self.has_warnings)

    @property
    def summary_header(self) -> str:
        return f"audit for {self.cask_token}"

    def to_dict(self) -> dict[str, Any]:
        """Convert audit result to dictionary."""
        return {
            "cask": self.cask_token,
            "sourcefile_path": self.sourcefile_path,
            "success": self.success,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "findings": [f.to_dict() for f in self._findings],
            "duration_seconds": self.duration_seconds,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Report:
    """Aggregated report from auditing one or more casks."""

    results: list[AuditResult] = field(default_factory=list)
    total_casks_audited: int = 0
    error_count: int = 0
    warning_count: int = 0
    passed_count: int = 0
    load_failures: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def add_result(self, result: AuditResult):
        """Add an audit result and update counters."""
        self.results.append(result)
        self.total_casks_audited += 1
        self.error_count += len(result.errors)
        self.warning_count += len(result.warnings)
        if result.success:
            self.passed_count += 1

    def add_load_failure(self, path: str, message: str):
        self.load_failures[path] = message

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0 or bool(self.load_failures)

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "summary": {
                "total_casks_audited": self.total_casks_audited,
                "passed": self.passed_count,
                "errors": self.error_count,
                "warnings": self.warning_count,
                "load_failures": len(self.load_failures),
                "timestamp": self.timestamp.isoformat(),
            },
            "results": [result.to_dict() for result in self.results],
            "load_failures": dict(self.load_failures),
        }
