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
Constants for Cask Audit.
"""

from pathlib import Path

from .._version import __version__ as PACKAGE_VERSION
from ..data import DATA_DIR, PACKS_DIR


class CaskAuditConstants:
    """Constants used throughout the auditor."""

    VERSION = PACKAGE_VERSION

    # Project paths
    PACKAGE_ROOT = Path(__file__).parent.parent
    DATA_DIR = DATA_DIR
    PACKS_DIR = PACKS_DIR
    DEFAULT_POLICY_PATH = DATA_DIR / "default_policy.yaml"

    # User agents
    USER_AGENT_DEFAULT = f"cask-audit/{PACKAGE_VERSION}"
    USER_AGENT_SAFARI = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
    )
    USER_AGENT_FAKE_SAFARI = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_13_6) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/12.0 Safari/605.1.15"
    )
    # Symbolic names a cask may use for ``url ..., user_agent:``
    USER_AGENTS = {
        "default": USER_AGENT_DEFAULT,
        "browser": USER_AGENT_SAFARI,
        "fake": USER_AGENT_FAKE_SAFARI,
    }

    # SHA-256 of zero bytes
    EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    SHA256_HEX_LENGTH = 64

    # Default values
    DEFAULT_APPCAST_MAX_TIME = 5
    DEFAULT_HTTP_TIMEOUT = 15
    DEFAULT_DOWNLOAD_TIMEOUT = 300
    DEFAULT_CORE_REMOTE = "https://github.com/Homebrew/homebrew-core"
    DEFAULT_TRUSTED_TAP_USER = "Homebrew"

    # Documentation links used in findings
    DOC_BASE = "https://github.com/Homebrew/homebrew-cask/blob/master/doc/cask_language_reference/stanzas"
    APPCAST_DOC_URL = f"{DOC_BASE}/appcast.md"
    URL_DOC_URL = f"{DOC_BASE}/url.md#sourceforgeosdn-urls"

    @classmethod
    def resolve_user_agent(cls, name: str | None, default: str | None = None) -> str:
        """Map a symbolic user-agent name to a header value.

        ``None`` and ``"default"`` resolve to *default* when one is given.
        Unknown names are treated as literal user-agent strings.
        """
        if not name or name == "default":
            return default or cls.USER_AGENT_DEFAULT
        return cls.USER_AGENTS.get(name, name)
