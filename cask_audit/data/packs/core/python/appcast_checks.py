# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Hosting and appcast heuristics.

Rules: HOSTING_WITHOUT_APPCAST, LATEST_WITH_APPCAST, LATEST_WITH_AUTO_UPDATES.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cask_audit.core.hosting import classify_hosting
from cask_audit.core.models import Finding

from ._helpers import warning

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)


def _is_latest(cask: Cask) -> bool:
    return cask.version is not None and cask.version.latest


def check_hosting_with_appcast(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Downloads from hosts that publish release feeds should declare an appcast."""
    if cask.appcast:
        return []

    logger.debug("Auditing download host for a missing appcast")
    provider = classify_hosting(str(cask.url or ""), policy.hosting.providers)
    if provider is None:
        return []
    if provider.skip_when_latest and _is_latest(cask):
        return []

    return [
        warning(
            "HOSTING_WITHOUT_APPCAST",
            f"Download {provider.phrase}, please add an appcast. See {policy.hosting.appcast_doc_url}",
            "appcast",
        )
    ]


def check_latest_with_appcast(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    if not _is_latest(cask) or not cask.appcast:
        return []
    return [warning("LATEST_WITH_APPCAST", "Casks with an appcast should not use version :latest", "appcast")]


def check_latest_with_auto_updates(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    if not _is_latest(cask) or not cask.auto_updates:
        return []
    return [
        warning(
            "LATEST_WITH_AUTO_UPDATES",
            "Casks with `version :latest` should not use `auto_updates`",
            "auto_updates",
        )
    ]
