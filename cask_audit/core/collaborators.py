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
External collaborators used by the auditor.

Each collaborator is an abstract interface plus one default implementation:

* :class:`Downloader` / :class:`Download` - fetch the cask's URL to disk
* :class:`Verifier` / :class:`Verify` - check a downloaded file against the cask
* :class:`Prober` / :class:`HttpProbe` - reachability probes and content fetches
* :class:`FormulaRegistry` / :class:`CoreRegistry` - first-party formula names
* :class:`CommandRunner` / :class:`SystemCommand` - process execution

The auditor only talks to the abstract interfaces, so tests substitute
deterministic fakes.
"""

from __future__ import annotations

import hashlib
import logging
import subprocess
import tempfile
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import httpx

from ..config.constants import CaskAuditConstants
from .exceptions import DownloadError, TransportError, VerificationError
from .models import NO_CHECK, Cask

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------


class Downloader(ABC):
    """Fetches a cask's download to a local path."""

    @abstractmethod
    def perform(self) -> Path:
        """Download and return the local path. Raises :class:`DownloadError`."""


class Verifier(ABC):
    """Checks a downloaded file against the cask that declared it."""

    @abstractmethod
    def verify(self, cask: Cask, path: Path) -> None:
        """Raise :class:`VerificationError` if *path* does not match *cask*."""


class Prober(ABC):
    """HTTP probing used by the network-dependent checks."""

    @abstractmethod
    def check_reachability(self, url: str, user_agents: Sequence[str] = ("default",)) -> str | None:
        """Return a diagnostic message if *url* has a problem, else ``None``."""

    @abstractmethod
    def fetch(
        self,
        url: str,
        *,
        compressed: bool = True,
        user_agent: str | None = None,
        follow_redirects: bool = True,
        max_time: float | None = None,
    ) -> str:
        """Return the body of *url*. Raises :class:`TransportError`."""


class FormulaRegistry(ABC):
    """Read-only view of the first-party formula registry."""

    @abstractmethod
    def formula_names(self) -> set[str]:
        """Return every formula name in the registry."""

    @property
    @abstractmethod
    def default_remote(self) -> str:
        """Return the registry's repository URL."""


class CommandRunner(ABC):
    """Runs external commands."""

    @abstractmethod
    def run(self, args: Sequence[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
        """Run *args* and return the completed process."""


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


class SystemCommand(CommandRunner):
    """Runs commands with :func:`subprocess.run`, raising on non-zero exit."""

    def run(self, args: Sequence[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
        logger.debug("Running command: %s", " ".join(args))
        return subprocess.run(list(args), cwd=cwd, capture_output=True, text=True, check=True)


class Download(Downloader):
    """Streams a cask's URL into a cache directory with ``httpx``."""

    def __init__(
        self,
        cask: Cask,
        cache_dir: Path | None = None,
        timeout: float = CaskAuditConstants.DEFAULT_DOWNLOAD_TIMEOUT,
        client: httpx.Client | None = None,
        default_user_agent: str = CaskAuditConstants.USER_AGENT_DEFAULT,
    ):
        """
        Initialize the downloader.

        Args:
            cask: Cask whose ``url`` stanza is downloaded
            cache_dir: Directory for downloads. A fresh temporary directory if None;
                the caller owns it and the file inside.
            timeout: Per-operation timeout in seconds
            client: Shared ``httpx.Client``. A private one is opened and closed
                around each download if None.
            default_user_agent: Header sent for the ``default`` user agent
        """
        self.cask = cask
        self.cache_dir = cache_dir
        self.timeout = timeout
        self.client = client
        self.default_user_agent = default_user_agent

    def perform(self) -> Path:
        url = self.cask.url
        if url is None:
            raise DownloadError(f"Cask '{self.cask.token}' has no url stanza")

        target_dir = self.cache_dir or Path(tempfile.mkdtemp(prefix="cask-audit-"))
        filename = Path(urlparse(url.uri).path).name or "download"
        destination = target_dir / f"{self.cask.token}--{filename}"
        headers = {"User-Agent": CaskAuditConstants.resolve_user_agent(url.user_agent, self.default_user_agent)}

        logger.info("Downloading %s to %s", url.uri, destination)
        client = self.client or httpx.Client()
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with client.stream(
                "GET", url.uri, headers=headers, follow_redirects=True, timeout=self.timeout
            ) as response:
                response.raise_for_status()
                with open(destination, "wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
        except httpx.HTTPError as e:
            raise DownloadError(f"Download failed on Cask '{self.cask.token}' with message: {e}") from e
        except OSError as e:
            raise DownloadError(f"Could not write download for Cask '{self.cask.token}': {e}") from e
        finally:
            if self.client is None:
                client.close()

        return destination


class Verify(Verifier):
    """Verifies a download's SHA-256 against the cask's ``sha256`` stanza."""

    def verify(self, cask: Cask, path: Path) -> None:
        path = Path(path)
        if not path.is_file():
            raise VerificationError(f"Downloaded file for Cask '{cask.token}' not found: {path}")

        if cask.sha256 is None or cask.sha256 is NO_CHECK:
            logger.info("No checksum defined for cask '%s', skipping verification", cask.token)
            return

        computed = self._calculate_sha256(path)
        expected = str(cask.sha256).lower()
        if computed != expected:
            raise VerificationError(
                f"Checksum for Cask '{cask.token}' does not match.\n"
                f"Expected: {expected}\n"
                f"  Actual: {computed}\n"
                f"    File: {path}"
            )
        logger.debug("Checksum for cask '%s' verified", cask.token)

    def _calculate_sha256(self, file_path: Path) -> str:
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(65536), b""):
                sha256_hash.update(byte_block)
        return sha256_hash.hexdigest()


@dataclass
class _HttpDetails:
    url: str
    status_code: int | None = None
    final_url: str | None = None
    content_digest: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 400


class HttpProbe(Prober):
    """Reachability probes and bounded content fetches over ``httpx``.

    A client passed in is borrowed; otherwise the probe opens one on first
    use and :meth:`close` releases it.
    """

    MAX_REDIRECTS = 20

    def __init__(
        self,
        timeout: float = CaskAuditConstants.DEFAULT_HTTP_TIMEOUT,
        client: httpx.Client | None = None,
        default_user_agent: str = CaskAuditConstants.USER_AGENT_DEFAULT,
    ):
        self.timeout = timeout
        self.default_user_agent = default_user_agent
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> HttpProbe:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _user_agent(self, name: str | None) -> str:
        return CaskAuditConstants.resolve_user_agent(name, self.default_user_agent)

    def check_reachability(self, url: str, user_agents: Sequence[str] = ("default",)) -> str | None:
        """Probe *url* with each user agent in turn until one succeeds.

        Returns a message when the URL is unreachable with every user agent,
        or when an ``http://`` URL serves identical content over HTTPS.
        """
        details: _HttpDetails | None = None
        user_agent = "default"
        for user_agent in user_agents or ("default",):
            details = self._http_details(url, user_agent)
            if details.ok:
                break

        if details is None or not details.ok:
            if details is not None and details.status_code is not None:
                return f"The URL {url} is not reachable (HTTP status code {details.status_code})"
            return f"The URL {url} is not reachable"

        if url.startswith("http://"):
            secure_url = "https://" + url[len("http://") :]
            secure_details = self._http_details(secure_url, user_agent)
            if secure_details.ok and secure_details.content_digest == details.content_digest:
                return f"The URL {url} should use HTTPS rather than HTTP"

        return None

    def fetch(
        self,
        url: str,
        *,
        compressed: bool = True,
        user_agent: str | None = None,
        follow_redirects: bool = True,
        max_time: float | None = None,
    ) -> str:
        """Fetch *url* within a total time budget covering every redirect hop.

        Error statuses are not failures; their body is returned.
        """
        headers = {
            "User-Agent": self._user_agent(user_agent),
            "Accept-Encoding": "gzip, deflate" if compressed else "identity",
        }
        budget = max_time or self.timeout
        deadline = time.monotonic() + budget
        timed_out = f"Operation timed out after {budget} seconds fetching {url}"

        current = url
        try:
            for _ in range(self.MAX_REDIRECTS + 1):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TransportError(timed_out)
                with self.client.stream(
                    "GET", current, headers=headers, follow_redirects=False, timeout=remaining
                ) as response:
                    if follow_redirects and response.has_redirect_location:
                        current = str(response.url.join(response.headers["Location"]))
                        continue
                    chunks: list[bytes] = []
                    for chunk in response.iter_bytes():
                        chunks.append(chunk)
                        if time.monotonic() > deadline:
                            raise TransportError(timed_out)
                    return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
        except httpx.HTTPError as e:
            logger.debug("Fetch of %s failed: %s", url, e)
            raise TransportError(str(e)) from e

        raise TransportError(f"Exceeded maximum allowed redirects ({self.MAX_REDIRECTS}) fetching {url}")

    def _http_details(self, url: str, user_agent: str) -> _HttpDetails:
        headers = {"User-Agent": self._user_agent(user_agent)}
        try:
            response = self.client.get(url, headers=headers, follow_redirects=True, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.debug("Probe of %s with user agent '%s' failed: %s", url, user_agent, e)
            return _HttpDetails(url=url)

        return _HttpDetails(
            url=url,
            status_code=response.status_code,
            final_url=str(response.url),
            content_digest=hashlib.sha256(response.content).hexdigest(),
        )


class CoreRegistry(FormulaRegistry):
    """Formula names read from a local checkout of the core tap."""

    def __init__(self, tap_path: Path | None = None, remote: str = CaskAuditConstants.DEFAULT_CORE_REMOTE):
        self.tap_path = Path(tap_path) if tap_path else None
        self.remote = remote.rstrip("/")

    def formula_names(self) -> set[str]:
        if self.tap_path is None:
            logger.debug("No core tap checkout configured; token conflict lookup is empty")
            return set()

        formula_dir = self.tap_path / "Formula"
        if not formula_dir.is_dir():
            logger.warning("Core tap checkout has no Formula directory: %s", self.tap_path)
            return set()

        return {path.stem for path in formula_dir.rglob("*.rb")}

    @property
    def default_remote(self) -> str:
        return self.remote
