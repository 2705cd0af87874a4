# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Version and checksum well-formedness checks.

Rules: VERSION_STRING_LATEST, VERSION_FILE_SEPARATOR,
       SHA256_NO_CHECK_IF_LATEST, SHA256_NOT_HEX, SHA256_EMPTY_STRING.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cask_audit.config.constants import CaskAuditConstants
from cask_audit.core.models import NO_CHECK, Finding

from ._helpers import FILE_SEPARATOR, HEX_DIGEST_PATTERN, error

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask


logger = logging.getLogger(__name__)


def check_version(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Reject ``version 'latest'`` strings and versions containing a path separator."""
    if not cask.version:
        return []

    findings: list[Finding] = []
    raw_version = cask.version.raw_version

    logger.debug("Verifying version :latest does not appear as a string ('latest')")
    if isinstance(raw_version, str) and raw_version == "latest":
        findings.append(
            error("VERSION_STRING_LATEST", "you should use version :latest instead of version 'latest'", "version")
        )

    logger.debug("Verifying version does not contain '%s'", FILE_SEPARATOR)
    if isinstance(raw_version, str) and FILE_SEPARATOR in raw_version:
        findings.append(
            error("VERSION_FILE_SEPARATOR", f"version should not contain '{FILE_SEPARATOR}'", "version")
        )

    return findings


def check_sha256(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Validate the ``sha256`` stanza against the version and known-bad digests."""
    if cask.sha256 is None:
        return []

    findings: list[Finding] = []
    sha256 = cask.sha256

    logger.debug("Verifying sha256 :no_check with version :latest")
    if cask.version is not None and cask.version.latest and sha256 is not NO_CHECK:
        findings.append(
            error(
                "SHA256_NO_CHECK_IF_LATEST",
                "you should use sha256 :no_check when version is :latest",
                "sha256",
            )
        )

    findings.extend(check_sha256_actually_256(sha256))
    findings.extend(check_sha256_invalid(sha256, policy))
    return findings


def check_sha256_actually_256(sha256: object, stanza: str = "sha256") -> list[Finding]:
    logger.debug("Verifying %s string is a legal SHA-256 digest", stanza)
    if not isinstance(sha256, str):
        return []
    if len(sha256) == CaskAuditConstants.SHA256_HEX_LENGTH and HEX_DIGEST_PATTERN.match(sha256):
        return []
    return [error("SHA256_NOT_HEX", f"{stanza} string must be of 64 hexadecimal characters", stanza)]


def check_sha256_invalid(sha256: object, policy: AuditPolicy, stanza: str = "sha256") -> list[Finding]:
    logger.debug("Verifying %s is not a known invalid value", stanza)
    if not isinstance(sha256, str) or not policy.is_known_invalid_checksum(sha256):
        return []

    if sha256.lower() == CaskAuditConstants.EMPTY_SHA256:
        message = f"cannot use the sha256 for an empty string in {stanza}: {CaskAuditConstants.EMPTY_SHA256}"
    else:
        message = f"cannot use the known invalid checksum in {stanza}: {sha256}"
    return [error("SHA256_EMPTY_STRING", message, stanza)]
