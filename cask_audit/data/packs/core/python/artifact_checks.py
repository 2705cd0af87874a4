# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Artifact checks.

Rules: ARTIFACT_TARGET_NOT_ABSOLUTE, SINGLE_STANZA_VIOLATION,
       INSTALLER_REQUIRES_UNINSTALL, UNTRUSTED_PKG.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cask_audit.core.models import (
    Finding,
    GenericInstaller,
    InstallAction,
    PackageInstaller,
    PostflightHook,
    PreflightHook,
    UninstallAction,
    ZapAction,
)

from ._helpers import error, warning

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)


def check_generic_artifacts(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Every install action must name an absolute target."""
    findings: list[Finding] = []
    for artifact in cask.artifacts_of(InstallAction):
        if not artifact.target_is_absolute:
            findings.append(
                error(
                    "ARTIFACT_TARGET_NOT_ABSOLUTE",
                    f"target must be absolute path for {artifact.english_name} {artifact.source}",
                    artifact.kind,
                )
            )
    return findings


def _count_hooks(cask: Cask, hook_type: type, directive: str) -> int:
    return sum(1 for a in cask.artifacts_of(hook_type) if directive in a.directives)


def _single_stanza_warning(stanza: str) -> Finding:
    return warning("SINGLE_STANZA_VIOLATION", f"only a single {stanza} stanza is allowed", stanza)


def check_single_pre_postflight(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    logger.debug("Auditing preflight and postflight stanzas")
    findings: list[Finding] = []

    if _count_hooks(cask, PreflightHook, "preflight") > 1:
        findings.append(_single_stanza_warning("preflight"))

    if _count_hooks(cask, PostflightHook, "postflight") > 1:
        findings.append(_single_stanza_warning("postflight"))

    return findings


def check_single_uninstall_zap(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    logger.debug("Auditing single uninstall_* and zap stanzas")
    findings: list[Finding] = []

    if len(cask.artifacts_of(UninstallAction)) > 1:
        findings.append(_single_stanza_warning("uninstall"))

    if _count_hooks(cask, PreflightHook, "uninstall_preflight") > 1:
        findings.append(_single_stanza_warning("uninstall_preflight"))

    if _count_hooks(cask, PostflightHook, "uninstall_postflight") > 1:
        findings.append(_single_stanza_warning("uninstall_postflight"))

    if len(cask.artifacts_of(ZapAction)) > 1:
        findings.append(_single_stanza_warning("zap"))

    return findings


def check_stanza_requires_uninstall(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """``pkg`` and ``installer`` leave state behind that only ``uninstall`` removes."""
    logger.debug("Auditing stanzas which require an uninstall")

    if not cask.artifacts_of(PackageInstaller, GenericInstaller):
        return []
    if cask.artifacts_of(UninstallAction):
        return []

    return [
        warning(
            "INSTALLER_REQUIRES_UNINSTALL",
            "installer and pkg stanzas require an uninstall stanza",
            "uninstall",
        )
    ]


def check_untrusted_pkg(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Casks in official taps may not install unsigned packages."""
    logger.debug("Auditing pkg stanza: allow_untrusted")

    if cask.sourcefile_path is None:
        return []
    if cask.tap is None or not policy.is_trusted_tap_user(cask.tap.user):
        return []
    if not any(pkg.allow_untrusted for pkg in cask.artifacts_of(PackageInstaller)):
        return []

    return [
        warning(
            "UNTRUSTED_PKG",
            f"allow_untrusted is not permitted in official {cask.tap.user} Cask taps",
            "pkg",
        )
    ]
