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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from cask_audit.core.audit_policy import AuditPolicy
from cask_audit.core.collaborators import CommandRunner, Downloader, FormulaRegistry, Prober, Verifier
from cask_audit.core.exceptions import DownloadError, TransportError
from cask_audit.core.models import Cask, CaskUrl, InstallAction, Version

VALID_SHA256 = "5891b5b522d5df086d0ff0b110fbd9d21bb4fc7163af34d08286a2e846f6be03"


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


def build_cask(**overrides) -> Cask:
    """Build a cask that passes every offline rule, with *overrides* applied."""
    fields = {
        "token": "firefox",
        "name": ("Mozilla Firefox",),
        "version": Version("89.0"),
        "sha256": VALID_SHA256,
        "url": CaskUrl("https://download.example.org/firefox-89.0.dmg"),
        "homepage": "https://www.mozilla.org/firefox/",
        "artifacts": (InstallAction("app", "Firefox.app", "/Applications/Firefox.app"),),
    }
    fields.update(overrides)
    return Cask(**fields)


@pytest.fixture
def make_cask():
    """Factory fixture: ``make_cask(version=Version(LATEST), ...)``."""
    return build_cask


@pytest.fixture
def policy() -> AuditPolicy:
    return AuditPolicy.default()


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


@dataclass
class FakeProbe(Prober):
    """Prober with canned answers. Records every call."""

    problems: dict[str, str] = field(default_factory=dict)
    content: str = ""
    fetch_error: Exception | None = None
    reachability_calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)
    fetch_calls: list[dict] = field(default_factory=list)

    def check_reachability(self, url: str, user_agents: Sequence[str] = ("default",)) -> str | None:
        self.reachability_calls.append((url, tuple(user_agents)))
        return self.problems.get(url)

    def fetch(self, url, *, compressed=True, user_agent=None, follow_redirects=True, max_time=None) -> str:
        self.fetch_calls.append(
            {
                "url": url,
                "compressed": compressed,
                "user_agent": user_agent,
                "follow_redirects": follow_redirects,
                "max_time": max_time,
            }
        )
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.content


class FailingProbe(Prober):
    """Prober whose every call fails."""

    def check_reachability(self, url, user_agents=("default",)):
        raise TransportError(f"connection refused: {url}")

    def fetch(self, url, *, compressed=True, user_agent=None, follow_redirects=True, max_time=None):
        raise TransportError(f"connection refused: {url}")


class FakeDownloader(Downloader):
    def __init__(self, path: Path | None = None, error: Exception | None = None):
        self.path = path or Path("/tmp/firefox.dmg")
        self.error = error
        self.performed = 0

    def perform(self) -> Path:
        self.performed += 1
        if self.error is not None:
            raise self.error
        return self.path


@dataclass
class FakeDownloadFactory:
    """Download factory that hands out one shared :class:`FakeDownloader`."""

    downloader: FakeDownloader = field(default_factory=FakeDownloader)
    casks: list[Cask] = field(default_factory=list)

    def __call__(self, cask: Cask) -> Downloader:
        self.casks.append(cask)
        return self.downloader


class FakeVerifier(Verifier):
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.verified: list[tuple[Cask, Path]] = []

    def verify(self, cask: Cask, path: Path) -> None:
        self.verified.append((cask, path))
        if self.error is not None:
            raise self.error


class FakeRegistry(FormulaRegistry):
    def __init__(self, names: set[str] | None = None, remote: str = "https://github.com/Homebrew/homebrew-core"):
        self.names = names or set()
        self.remote = remote
        self.lookups = 0

    def formula_names(self) -> set[str]:
        self.lookups += 1
        return set(self.names)

    @property
    def default_remote(self) -> str:
        return self.remote


class FakeCommand(CommandRunner):
    def __init__(self, stdout: str = ""):
        self.stdout = stdout
        self.calls: list[list[str]] = []

    def run(self, args, cwd=None) -> subprocess.CompletedProcess:
        self.calls.append(list(args))
        return subprocess.CompletedProcess(list(args), 0, stdout=self.stdout, stderr="")


@pytest.fixture
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fake_download_factory() -> FakeDownloadFactory:
    return FakeDownloadFactory()


@pytest.fixture
def fake_verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def collaborators(fake_probe, fake_registry, fake_download_factory, fake_verifier) -> dict:
    """Keyword arguments for ``CaskAuditor`` using only fakes."""
    return {
        "probe": fake_probe,
        "formula_registry": fake_registry,
        "download_factory": fake_download_factory,
        "verifier": fake_verifier,
    }


@pytest.fixture
def download_error() -> DownloadError:
    return DownloadError("Download failed on Cask 'firefox' with message: 404 Not Found")


@pytest.fixture
def failing_probe() -> FailingProbe:
    return FailingProbe()


@pytest.fixture
def fake_command() -> FakeCommand:
    return FakeCommand()
