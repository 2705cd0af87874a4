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
Audit orchestrator: runs the cask rules in a fixed order.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import partial
from pathlib import Path

import httpx

from ..config.config import AuditConfig, Config
from ..data.packs.core.python import (
    appcast_checks,
    artifact_checks,
    network_checks,
    stanza_checks,
    token_checks,
    url_checks,
    version_checks,
)
from .audit_policy import AuditPolicy
from .collaborators import (
    CoreRegistry,
    Download,
    Downloader,
    FormulaRegistry,
    HttpProbe,
    Prober,
    Verifier,
    Verify,
)
from .exceptions import CaskLoadError
from .loader import CaskLoader
from .models import AuditResult, Cask, Finding, Report
from .rule_registry import PackLoader, RuleRegistry

logger = logging.getLogger(__name__)

AUDIT_EXCEPTION = "AUDIT_EXCEPTION"


@dataclass(frozen=True)
class _AuditStep:
    """One entry of the fixed rule order."""

    name: str
    check: Callable[[Cask, AuditPolicy], list[Finding]]
    rule_ids: tuple[str, ...]
    gate: str | None = None


class CaskAuditor:
    """Audits casks against the built-in rule set.

    Collaborators that touch the network or the filesystem are injected so
    that tests can replace them; defaults are built lazily from ``settings``.
    """

    def __init__(
        self,
        config: AuditConfig | None = None,
        policy: AuditPolicy | None = None,
        formula_registry: FormulaRegistry | None = None,
        probe: Prober | None = None,
        download_factory: Callable[[Cask], Downloader] | None = None,
        verifier: Verifier | None = None,
        rule_registry: RuleRegistry | None = None,
        settings: Config | None = None,
    ):
        """
        Initialize the auditor.

        Args:
            config: Per-run toggles. All network checks are off when None.
            policy: Audit policy. If None, loads built-in defaults.
            formula_registry: Source of core formula names for token conflicts
            probe: URL reachability prober and appcast fetcher
            download_factory: Builds a downloader for a cask
            verifier: Verifies a downloaded file against its cask
            rule_registry: Catalog used to validate policy rule IDs
            settings: Process-wide settings used to build default collaborators
        """
        self.config = config or AuditConfig()
        self.policy = policy or AuditPolicy.default()
        self.settings = settings or Config()
        self.rule_registry = rule_registry or PackLoader().build_registry()

        self.formula_registry = formula_registry or CoreRegistry(
            tap_path=self.settings.core_tap_path, remote=self.settings.core_remote
        )
        self._owned_probe: HttpProbe | None = None
        if probe is None:
            probe = self._owned_probe = HttpProbe(
                timeout=self.settings.http_timeout, default_user_agent=self.settings.user_agent
            )
        self.probe = probe
        self.download_factory = download_factory or self._default_download_factory
        self.verifier = verifier or Verify()

        self._formula_names: set[str] | None = None
        self._download_client: httpx.Client | None = None
        self._download_dir: Path | None = None
        self._warn_unknown_policy_rules()

    def _default_download_factory(self, cask: Cask) -> Downloader:
        if self._download_client is None:
            self._download_client = httpx.Client()
        if self._download_dir is None:
            self._download_dir = self.settings.cache_dir or Path(tempfile.mkdtemp(prefix="cask-audit-"))
        return Download(
            cask,
            cache_dir=self._download_dir,
            timeout=self.settings.download_timeout,
            client=self._download_client,
            default_user_agent=self.settings.user_agent,
        )

    def close(self) -> None:
        """Release the HTTP clients and temporary downloads this auditor opened.

        A configured ``cache_dir`` is left in place.
        """
        if self._owned_probe is not None:
            self._owned_probe.close()
        if self._download_client is not None:
            self._download_client.close()
            self._download_client = None
        if self._download_dir is not None and self.settings.cache_dir is None:
            shutil.rmtree(self._download_dir, ignore_errors=True)
        self._download_dir = None

    def __enter__(self) -> CaskAuditor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _warn_unknown_policy_rules(self) -> None:
        referenced = set(self.policy.disabled_rules)
        referenced.update(o.rule_id for o in self.policy.severity_overrides)
        for rule_id in sorted(self.rule_registry.unknown_rule_ids(referenced)):
            logger.warning("Policy '%s' references unknown rule '%s'", self.policy.policy_name, rule_id)

    # ------------------------------------------------------------------
    # Rule order
    # ------------------------------------------------------------------

    def _steps(self) -> list[_AuditStep]:
        return [
            _AuditStep(
                "required stanzas",
                stanza_checks.check_required_stanzas,
                ("REQUIRED_STANZA_MISSING", "NAME_STANZA_MISSING", "ACTIVATABLE_ARTIFACT_MISSING"),
            ),
            _AuditStep("version", version_checks.check_version, ("VERSION_STRING_LATEST", "VERSION_FILE_SEPARATOR")),
            _AuditStep(
                "sha256",
                version_checks.check_sha256,
                ("SHA256_NO_CHECK_IF_LATEST", "SHA256_NOT_HEX", "SHA256_EMPTY_STRING"),
            ),
            _AuditStep("url", url_checks.check_url, tuple(rule.rule_id for rule in self.policy.url_formats)),
            _AuditStep("generic artifacts", artifact_checks.check_generic_artifacts, ("ARTIFACT_TARGET_NOT_ABSOLUTE",)),
            _AuditStep("token conflicts", self._check_token_conflicts, ("TOKEN_CONFLICT",), "check_token_conflicts"),
            _AuditStep(
                "download",
                partial(
                    network_checks.check_download,
                    download_factory=self.download_factory,
                    verifier=self.verifier,
                ),
                ("DOWNLOAD_FAILED",),
                "download",
            ),
            _AuditStep(
                "https availability",
                partial(network_checks.check_https_availability, probe=self.probe),
                ("HTTPS_AVAILABILITY",),
                "download",
            ),
            _AuditStep("single pre/postflight", artifact_checks.check_single_pre_postflight, ("SINGLE_STANZA_VIOLATION",)),
            _AuditStep("single uninstall/zap", artifact_checks.check_single_uninstall_zap, ("SINGLE_STANZA_VIOLATION",)),
            _AuditStep("untrusted pkg", artifact_checks.check_untrusted_pkg, ("UNTRUSTED_PKG",)),
            _AuditStep("hosting with appcast", appcast_checks.check_hosting_with_appcast, ("HOSTING_WITHOUT_APPCAST",)),
            _AuditStep("latest with appcast", appcast_checks.check_latest_with_appcast, ("LATEST_WITH_APPCAST",)),
            _AuditStep(
                "latest with auto_updates",
                appcast_checks.check_latest_with_auto_updates,
                ("LATEST_WITH_AUTO_UPDATES",),
            ),
            _AuditStep(
                "stanza requires uninstall",
                artifact_checks.check_stanza_requires_uninstall,
                ("INSTALLER_REQUIRES_UNINSTALL",),
            ),
            _AuditStep(
                "appcast contains version",
                partial(
                    network_checks.check_appcast_contains_version,
                    probe=self.probe,
                    max_time=self.settings.appcast_max_time,
                ),
                ("APPCAST_MISSING_VERSION", "APPCAST_UNREACHABLE"),
                "check_appcast",
            ),
        ]

    def _check_token_conflicts(self, cask: Cask, policy: AuditPolicy) -> list[Finding]:
        if self._formula_names is None:
            self._formula_names = set(self.formula_registry.formula_names())
        return token_checks.check_token_conflicts(
            cask,
            policy,
            formula_names=self._formula_names,
            remote=self.formula_registry.default_remote,
        )

    def _step_enabled(self, step: _AuditStep) -> bool:
        if step.gate is not None and not getattr(self.config, step.gate):
            return False
        # A step whose every rule is disabled is not run at all, so disabled
        # network rules never touch the network.
        if step.rule_ids and not any(self.policy.is_rule_enabled(rule_id) for rule_id in step.rule_ids):
            logger.debug("Skipping '%s': all rules disabled by policy", step.name)
            return False
        return True

    def _apply_policy(self, finding: Finding) -> Finding | None:
        if not self.policy.is_rule_enabled(finding.rule_id):
            return None
        override = self.policy.get_severity_override(finding.rule_id)
        if override is not None and override != finding.severity:
            return replace(
                finding,
                severity=override,
                metadata={**finding.metadata, "original_severity": finding.severity.value},
            )
        return finding

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, cask: Cask) -> AuditResult:
        """
        Audit a single cask.

        Never raises: an unexpected exception in any rule becomes one
        ``AUDIT_EXCEPTION`` error and the remaining rules are skipped.

        Args:
            cask: Cask to audit

        Returns:
            Sealed AuditResult
        """
        result = AuditResult(
            cask_token=cask.token,
            sourcefile_path=str(cask.sourcefile_path) if cask.sourcefile_path else None,
        )
        start_time = time.time()

        try:
            for step in self._steps():
                if not self._step_enabled(step):
                    continue
                for finding in step.check(cask, self.policy):
                    finding = self._apply_policy(finding)
                    if finding is not None:
                        result.add_finding(finding)
        except Exception as e:
            logger.debug("exception while auditing %s", cask, exc_info=True)
            result.add_error(f"exception while auditing {cask}: {e}", rule_id=AUDIT_EXCEPTION)

        result.duration_seconds = time.time() - start_time
        result.seal()
        return result

    def audit_path(self, cask_path: str | Path, loader: CaskLoader | None = None) -> AuditResult:
        """Load a cask file and audit it. Load errors propagate as CaskLoadError."""
        cask = (loader or CaskLoader()).load_cask(cask_path)
        return self.run(cask)

    def audit_paths(self, cask_paths: list[Path], loader: CaskLoader | None = None) -> Report:
        """Audit several cask files into one report.

        A file that fails to load is recorded in the report and does not stop
        the remaining files.
        """
        loader = loader or CaskLoader()
        report = Report()
        for cask_path in cask_paths:
            try:
                cask = loader.load_cask(cask_path)
            except CaskLoadError as e:
                logger.warning("Failed to load cask %s: %s", cask_path, e)
                report.add_load_failure(str(cask_path), str(e))
                continue
            report.add_result(self.run(cask))
        return report


class Audit:
    """One audit of one cask.

    Thin wrapper around :class:`CaskAuditor` for callers that want an
    object per manifest::

        audit = Audit(cask, config=AuditConfig(download=True)).run()
        if not audit.success:
            print(audit.summary_header, audit.errors)
    """

    def __init__(self, cask: Cask, config: AuditConfig | None = None, **collaborators):
        self.cask = cask
        self.auditor = CaskAuditor(config, **collaborators)
        self.result: AuditResult | None = None

    def run(self) -> Audit:
        try:
            self.result = self.auditor.run(self.cask)
        finally:
            self.auditor.close()
        return self

    def _require_result(self) -> AuditResult:
        if self.result is None:
            raise RuntimeError(f"audit for {self.cask} has not been run")
        return self.result

    @property
    def errors(self) -> tuple[str, ...]:
        return self._require_result().errors

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._require_result().warnings

    @property
    def success(self) -> bool:
        return self._require_result().success

    @property
    def summary_header(self) -> str:
        return f"audit for {self.cask}"


def audit_cask(
    cask: Cask,
    config: AuditConfig | None = None,
    policy: AuditPolicy | None = None,
) -> AuditResult:
    """
    Convenience function to audit a single cask.

    Args:
        cask: Cask to audit
        config: Optional per-run toggles
        policy: Optional audit policy

    Returns:
        AuditResult
    """
    with CaskAuditor(config, policy=policy) as auditor:
        return auditor.run(cask)


def audit_directory(
    casks_directory: str | Path,
    recursive: bool = False,
    config: AuditConfig | None = None,
    policy: AuditPolicy | None = None,
) -> Report:
    """Convenience function to audit every cask file under a directory."""
    loader = CaskLoader()
    with CaskAuditor(config, policy=policy) as auditor:
        return auditor.audit_paths(loader.find_casks(casks_directory, recursive=recursive), loader=loader)
