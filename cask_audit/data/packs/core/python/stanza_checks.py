# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Required stanza checks.

Rules: REQUIRED_STANZA_MISSING, NAME_STANZA_MISSING,
       ACTIVATABLE_ARTIFACT_MISSING.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cask_audit.core.models import REMOVAL_ARTIFACT_TYPES, Finding

from ._helpers import error

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)

REQUIRED_STANZAS = ("version", "sha256", "url", "homepage")


def check_required_stanzas(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Every cask needs version, sha256, url, homepage, a name and something to install."""
    logger.debug("Auditing required stanzas")
    findings: list[Finding] = []

    for stanza in REQUIRED_STANZAS:
        if getattr(cask, stanza) is None:
            findings.append(error("REQUIRED_STANZA_MISSING", f"a {stanza} stanza is required", stanza))

    if not cask.name:
        findings.append(error("NAME_STANZA_MISSING", "at least one name stanza is required", "name"))

    installable = [a for a in cask.artifacts if not isinstance(a, REMOVAL_ARTIFACT_TYPES)]
    if not installable:
        findings.append(
            error("ACTIVATABLE_ARTIFACT_MISSING", "at least one activatable artifact stanza is required")
        )

    return findings
