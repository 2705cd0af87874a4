# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Network-dependent checks.

Rules: DOWNLOAD_FAILED, HTTPS_AVAILABILITY, APPCAST_MISSING_VERSION,
       APPCAST_UNREACHABLE.

Each check owns its transport failures: whatever the download, probe or
fetch raises is turned into a finding here and never reaches the auditor's
top-level exception barrier.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from cask_audit.config.constants import CaskAuditConstants
from cask_audit.core.models import NO_CHECK, Finding

from ._helpers import error, warning

if TYPE_CHECKING:
    from cask_audit.core.audit_policy import AuditPolicy
    from cask_audit.core.collaborators import Downloader, Prober, Verifier
    from cask_audit.core.models import Cask

logger = logging.getLogger(__name__)


def check_download(
    cask: Cask,
    policy: AuditPolicy,
    *,
    download_factory: Callable[[Cask], Downloader],
    verifier: Verifier,
) -> list[Finding]:
    """Download the cask's URL and verify the result against the cask."""
    if not cask.url:
        return []

    logger.debug("Auditing download")
    try:
        downloaded_path = download_factory(cask).perform()
        verifier.verify(cask, downloaded_path)
    except Exception as e:
        logger.debug("Download check for %s failed: %s", cask.token, e)
        return [error("DOWNLOAD_FAILED", f"download not possible: {e}", "url")]

    return []


def check_https_availability(cask: Cask, policy: AuditPolicy, *, probe: Prober) -> list[Finding]:
    """Probe the url, appcast and homepage; each failing probe is one error."""
    logger.debug("Auditing HTTPS availability")
    findings: list[Finding] = []

    if cask.url and str(cask.url) and not cask.url.using:
        findings.extend(
            _check_url_for_https_availability(probe, str(cask.url), [cask.url.user_agent or "default"], "url")
        )

    if cask.appcast and str(cask.appcast):
        findings.extend(_check_url_for_https_availability(probe, str(cask.appcast), ["default"], "appcast"))

    if cask.homepage:
        findings.extend(_check_url_for_https_availability(probe, cask.homepage, ["browser"], "homepage"))

    return findings


def _check_url_for_https_availability(probe: Prober, url: str, user_agents: list[str], stanza: str) -> list[Finding]:
    try:
        problem = probe.check_reachability(url, user_agents=user_agents)
    except Exception as e:
        logger.debug("Reachability probe for %s raised: %s", url, e)
        problem = f"The URL {url} is not reachable: {e}"

    if problem:
        return [error("HTTPS_AVAILABILITY", problem, stanza)]
    return []


def expected_appcast_version(cask: Cask) -> str:
    """The string an appcast feed is expected to contain.

    An explicit appcast configuration is used verbatim. Otherwise the cask's
    version is cut at the first comma, then hyphen, then underscore
    (``"1.2.3,456"`` and ``"1.2.3-beta_7"`` both give ``"1.2.3"``).
    """
    configuration = cask.appcast.configuration if cask.appcast else None
    if configuration:
        return str(configuration)

    version_stanza = str(cask.version) if cask.version is not None else ""
    return version_stanza.split(",")[0].split("-")[0].split("_")[0]


def check_appcast_contains_version(
    cask: Cask,
    policy: AuditPolicy,
    *,
    probe: Prober,
    max_time: float = CaskAuditConstants.DEFAULT_APPCAST_MAX_TIME,
) -> list[Finding]:
    """Fetch the appcast and confirm the current version appears in it."""
    if not cask.appcast or not str(cask.appcast):
        return []
    if cask.appcast.configuration is NO_CHECK:
        return []

    appcast_url = str(cask.appcast)
    logger.debug("Auditing appcast %s", appcast_url)
    try:
        appcast_contents = probe.fetch(
            appcast_url,
            compressed=True,
            user_agent="fake",
            follow_redirects=True,
            max_time=max_time,
        )
        expected = expected_appcast_version(cask)
    except Exception as e:
        logger.debug("Appcast fetch for %s failed: %s", appcast_url, e)
        return [error("APPCAST_UNREACHABLE", f"appcast at URL '{appcast_url}' offline or looping", "appcast")]

    if expected in appcast_contents:
        return []

    return [
        warning(
            "APPCAST_MISSING_VERSION",
            f"appcast at URL '{appcast_url}' does not contain the version number: '{expected}'",
            "appcast",
        )
    ]
