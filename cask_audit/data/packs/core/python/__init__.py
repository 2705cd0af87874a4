# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""
Python check modules for the core cask rule pack.

Each module groups related checks by concern. Every public check follows
the pattern::

    def check_<aspect>(
        cask: Cask,
        policy: AuditPolicy,
        *,
        <collaborators_or_options>,
    ) -> list[Finding]:
        ...

Checks never mutate the cask and never append to a result themselves. The
caller (:class:`~cask_audit.core.auditor.CaskAuditor`) remains responsible
for orchestration: which checks run, in what order, and how their findings
are accumulated.
"""
