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

"""Cask Audit exceptions.

This module defines custom exceptions for Cask Audit operations.
All exceptions inherit from CaskAuditError for easy catching.

The auditor itself never lets these escape :meth:`CaskAuditor.run`; they are
raised by loaders and collaborators and converted into findings.

Example:
    >>> from cask_audit.core.loader import CaskLoader
    >>> from cask_audit.core.exceptions import CaskLoadError
    >>>
    >>> try:
    ...     cask = CaskLoader().load_cask("Casks/firefox.yaml")
    ... except CaskLoadError as e:
    ...     print(f"Failed to load cask: {e}")
"""


class CaskAuditError(Exception):
    """Base exception for all Cask Audit errors."""

    pass


class CaskLoadError(CaskAuditError):
    """Raised when a cask manifest cannot be loaded.

    This can indicate:
    - Missing or unreadable file
    - Invalid YAML
    - Unknown artifact stanza
    """

    pass


class DownloadError(CaskAuditError):
    """Raised when the cask's URL cannot be downloaded."""

    pass


class VerificationError(CaskAuditError):
    """Raised when a downloaded file does not match the cask.

    This typically indicates:
    - Checksum mismatch
    - Downloaded file is missing or empty
    """

    pass


class TransportError(CaskAuditError):
    """Raised when an HTTP fetch fails (timeout, DNS, redirect loop, ...)."""

    pass


class PolicyError(CaskAuditError):
    """Raised when an audit policy file is malformed."""

    pass
