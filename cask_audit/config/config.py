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
Configuration classes for Cask Audit.

``Config`` holds process-wide settings resolved from the environment.
``AuditConfig`` holds the immutable per-run toggles handed to the auditor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ..core.collaborators import CommandRunner, SystemCommand
from .constants import CaskAuditConstants


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class AuditConfig:
    """Per-run audit toggles.

    ``commit_range`` is informational; no check reads it. ``command`` is the
    command-execution capability used to inspect the repository.
    """

    check_appcast: bool = False
    download: bool = False
    check_token_conflicts: bool = False
    commit_range: str | None = None
    command: CommandRunner = field(default_factory=SystemCommand, compare=False)


@dataclass
class Config:
    """
    Configuration for Cask Audit.
    """

    # Audit toggles
    check_appcast: bool = False
    download: bool = False
    check_token_conflicts: bool = False

    # Network
    http_timeout: float = CaskAuditConstants.DEFAULT_HTTP_TIMEOUT
    download_timeout: float = CaskAuditConstants.DEFAULT_DOWNLOAD_TIMEOUT
    appcast_max_time: float = CaskAuditConstants.DEFAULT_APPCAST_MAX_TIME
    user_agent: str = CaskAuditConstants.USER_AGENT_DEFAULT

    # Registry / downloads
    core_tap_path: Path | None = None
    core_remote: str = CaskAuditConstants.DEFAULT_CORE_REMOTE
    cache_dir: Path | None = None

    # Output Options
    log_level: str = "WARNING"

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if _env_flag("CASK_AUDIT_CHECK_APPCAST"):
            self.check_appcast = True

        if _env_flag("CASK_AUDIT_DOWNLOAD"):
            self.download = True

        if _env_flag("CASK_AUDIT_CHECK_TOKEN_CONFLICTS"):
            self.check_token_conflicts = True

        if self.http_timeout == CaskAuditConstants.DEFAULT_HTTP_TIMEOUT:
            if env_timeout := os.getenv("CASK_AUDIT_HTTP_TIMEOUT"):
                self.http_timeout = float(env_timeout)

        if self.download_timeout == CaskAuditConstants.DEFAULT_DOWNLOAD_TIMEOUT:
            if env_timeout := os.getenv("CASK_AUDIT_DOWNLOAD_TIMEOUT"):
                self.download_timeout = float(env_timeout)

        if self.user_agent == CaskAuditConstants.USER_AGENT_DEFAULT:
            if env_agent := os.getenv("CASK_AUDIT_USER_AGENT"):
                self.user_agent = env_agent

        if self.core_tap_path is None:
            if env_tap := os.getenv("CASK_AUDIT_CORE_TAP_PATH"):
                self.core_tap_path = Path(env_tap).expanduser()

        if self.core_remote == CaskAuditConstants.DEFAULT_CORE_REMOTE:
            if env_remote := os.getenv("CASK_AUDIT_CORE_REMOTE"):
                self.core_remote = env_remote.rstrip("/")

        if self.cache_dir is None:
            if env_cache := os.getenv("CASK_AUDIT_CACHE_DIR"):
                self.cache_dir = Path(env_cache).expanduser()

        if self.log_level == "WARNING":
            if env_level := os.getenv("CASK_AUDIT_LOG_LEVEL"):
                self.log_level = env_level.upper()

    def audit_config(
        self,
        *,
        check_appcast: bool | None = None,
        download: bool | None = None,
        check_token_conflicts: bool | None = None,
        commit_range: str | None = None,
        command: CommandRunner | None = None,
    ) -> AuditConfig:
        """Build the per-run :class:`AuditConfig`, letting explicit arguments win."""
        return AuditConfig(
            check_appcast=self.check_appcast if check_appcast is None else check_appcast,
            download=self.download if download is None else download,
            check_token_conflicts=(
                self.check_token_conflicts if check_token_conflicts is None else check_token_conflicts
            ),
            commit_range=commit_range,
            command=command or SystemCommand(),
        )

    @classmethod
    def from_env(cls) -> Config:
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> Config:
        """
        Load configuration from .env file.

        Values already present in the environment are not overridden.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if config_file.exists():
            load_dotenv(config_file, override=False)

        return cls.from_env()
