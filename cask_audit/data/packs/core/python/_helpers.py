# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Shared helper utilities for the cask check modules."""

from __future__ import annotations

import os
import re

from cask_audit.core.models import Finding, Severity

HEX_DIGEST_PATTERN = re.compile(r"^[0-9a-f]+$", re.IGNORECASE)

FILE_SEPARATOR = os.sep


def error(rule_id: str, message: str, stanza: str | None = None) -> Finding:
    """Build an ERROR finding."""
    return Finding(rule_id=rule_id, severity=Severity.ERROR, message=message, stanza=stanza)


def warning(rule_id: str, message: str, stanza: str | None = None) -> Finding:
    """Build a WARNING finding."""
    return Finding(rule_id=rule_id, severity=Severity.WARNING, message=message, stanza=stanza)
