# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Token conflict check against the first-party formula registry.

Rules: TOKEN_CONFLICT.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import TYPE_CHECKING

from cask_audit.core.models import Finding

from ._helpers import warning

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)


def core_formula_url(remote: str, token: str) -> str:
    return f"{remote.rstrip('/')}/blob/master/Formula/{token}.rb"


def check_token_conflicts(
    cask: Cask,
    policy: AuditPolicy,
    *,
    formula_names: Collection[str],
    remote: str,
) -> list[Finding]:
    """Warn when the cask token is also the name of a core formula."""
    logger.debug("Auditing token conflicts with core formulae")
    if cask.token not in formula_names:
        return []

    return [
        warning(
            "TOKEN_CONFLICT",
            "possible duplicate, cask token conflicts with Homebrew core formula: "
            f"{core_formula_url(remote, cask.token)}",
            "token",
        )
    ]
