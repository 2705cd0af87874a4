# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Download URL format checks.

Rules: URL_SOURCEFORGE_FORMAT, URL_OSDN_FORMAT (and any other entry of the
policy's ``url_formats`` table).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cask_audit.core.hosting import find_bad_url_format
from cask_audit.core.models import Finding

from ._helpers import warning

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)


def check_url(cask: Cask, policy: AuditPolicy) -> list[Finding]:
    """Warn when a provider-hosted URL is not in one of the provider's canonical forms."""
    if not cask.url:
        return []

    logger.debug("Auditing URL format")
    rule = find_bad_url_format(str(cask.url), policy.url_formats)
    if rule is None:
        return []
    return [warning(rule.rule_id, rule.message, "url")]
