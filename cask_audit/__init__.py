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
Cask Audit - Rule-based auditor for Homebrew Cask manifests.
"""

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m cask_audit.cli.cli`` from importing httpx and the rule
    packs twice through eager top-level imports.
    """
    _lazy_map = {
        "AuditConfig": (".config.config", "AuditConfig"),
        "Config": (".config.config", "Config"),
        "CaskAuditConstants": (".config.constants", "CaskAuditConstants"),
        "AuditPolicy": (".core.audit_policy", "AuditPolicy"),
        "Audit": (".core.auditor", "Audit"),
        "CaskAuditor": (".core.auditor", "CaskAuditor"),
        "audit_cask": (".core.auditor", "audit_cask"),
        "audit_directory": (".core.auditor", "audit_directory"),
        "CaskLoader": (".core.loader", "CaskLoader"),
        "AuditResult": (".core.models", "AuditResult"),
        "Cask": (".core.models", "Cask"),
        "Finding": (".core.models", "Finding"),
        "Report": (".core.models", "Report"),
        "Severity": (".core.models", "Severity"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CaskAuditor",
    "Audit",
    "audit_cask",
    "audit_directory",
    "Cask",
    "Finding",
    "AuditResult",
    "Report",
    "Severity",
    "CaskLoader",
    "AuditPolicy",
    "AuditConfig",
    "Config",
    "CaskAuditConstants",
]
