# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""
Tests for configuration module.
"""

import hashlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from cask_audit.config.config import AuditConfig, Config
from cask_audit.config.constants import CaskAuditConstants
from cask_audit.core.collaborators import SystemCommand
from cask_audit.data import DATA_DIR


def _clean_env() -> dict:
    return {k: v for k, v in os.environ.items() if not k.startswith("CASK_AUDIT_")}


class TestConfigInitialization:
    """Test Config class initialization."""

    def test_config_with_defaults(self):
        with patch.dict("os.environ", _clean_env(), clear=True):
            config = Config()

            assert not config.check_appcast
            assert not config.download
            assert not config.check_token_conflicts
            assert config.http_timeout == CaskAuditConstants.DEFAULT_HTTP_TIMEOUT
            assert config.download_timeout == CaskAuditConstants.DEFAULT_DOWNLOAD_TIMEOUT
            assert config.core_tap_path is None
            assert config.log_level == "WARNING"

    def test_config_from_env_variables(self):
        env = {
            **_clean_env(),
            "CASK_AUDIT_DOWNLOAD": "true",
            "CASK_AUDIT_CHECK_APPCAST": "1",
            "CASK_AUDIT_CHECK_TOKEN_CONFLICTS": "yes",
            "CASK_AUDIT_HTTP_TIMEOUT": "3.5",
            "CASK_AUDIT_CORE_TAP_PATH": "/opt/homebrew-core",
            "CASK_AUDIT_CORE_REMOTE": "https://example.com/core/",
            "CASK_AUDIT_LOG_LEVEL": "debug",
            "CASK_AUDIT_USER_AGENT": "my-agent/1.0",
        }
        with patch.dict("os.environ", env, clear=True):
            config = Config.from_env()

            assert config.download
            assert config.check_appcast
            assert config.check_token_conflicts
            assert config.http_timeout == 3.5
            assert config.core_tap_path == Path("/opt/homebrew-core")
            assert config.core_remote == "https://example.com/core"
            assert config.log_level == "DEBUG"
            assert config.user_agent == "my-agent/1.0"

    def test_explicit_values_win_over_env(self):
        with patch.dict("os.environ", {**_clean_env(), "CASK_AUDIT_HTTP_TIMEOUT": "3"}, clear=True):
            assert Config(http_timeout=42).http_timeout == 42

    def test_from_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CASK_AUDIT_DOWNLOAD=true\nCASK_AUDIT_CACHE_DIR=/tmp/cask-cache\n")
        with patch.dict("os.environ", _clean_env(), clear=True):
            config = Config.from_file(env_file)
            assert config.download
            assert config.cache_dir == Path("/tmp/cask-cache")


class TestAuditConfig:
    def test_defaults_are_offline(self):
        config = AuditConfig()
        assert not (config.check_appcast or config.download or config.check_token_conflicts)
        assert config.commit_range is None
        assert isinstance(config.command, SystemCommand)

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            AuditConfig().download = True

    def test_explicit_arguments_win(self):
        with patch.dict("os.environ", {**_clean_env(), "CASK_AUDIT_DOWNLOAD": "true"}, clear=True):
            settings = Config()
        audit_config = settings.audit_config(download=False, check_appcast=True, commit_range="HEAD~1..HEAD")
        assert not audit_config.download
        assert audit_config.check_appcast
        assert audit_config.commit_range == "HEAD~1..HEAD"

    def test_settings_fill_unspecified_toggles(self):
        with patch.dict("os.environ", {**_clean_env(), "CASK_AUDIT_DOWNLOAD": "true"}, clear=True):
            assert Config().audit_config().download


class TestConstants:
    @pytest.mark.parametrize(
        "name,expected",
        [
            (None, CaskAuditConstants.USER_AGENT_DEFAULT),
            ("default", CaskAuditConstants.USER_AGENT_DEFAULT),
            ("browser", CaskAuditConstants.USER_AGENT_SAFARI),
            ("fake", CaskAuditConstants.USER_AGENT_FAKE_SAFARI),
            ("curl/8.0", "curl/8.0"),
        ],
    )
    def test_resolve_user_agent(self, name, expected):
        assert CaskAuditConstants.resolve_user_agent(name) == expected

    @pytest.mark.parametrize("name", [None, "default"])
    def test_configured_default_user_agent(self, name):
        assert CaskAuditConstants.resolve_user_agent(name, "my-agent/1.0") == "my-agent/1.0"

    def test_configured_default_does_not_replace_named_agents(self):
        resolved = CaskAuditConstants.resolve_user_agent("browser", "my-agent/1.0")
        assert resolved == CaskAuditConstants.USER_AGENT_SAFARI

    def test_data_paths_point_into_the_package(self):
        assert CaskAuditConstants.DATA_DIR == DATA_DIR
        assert CaskAuditConstants.DEFAULT_POLICY_PATH.is_file()

    def test_empty_sha256_constant(self):
        assert CaskAuditConstants.EMPTY_SHA256 == hashlib.sha256(b"").hexdigest()
