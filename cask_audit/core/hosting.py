# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Hosting heuristics for download URLs.

Pure functions that classify a URL by hosting provider and validate
provider-specific URL shapes. The tables they work on come from the audit
policy (``hosting.providers`` and ``url_formats``), so adding a provider
never touches rule logic.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class HostingProvider:
    """A download host that normally publishes an update feed."""

    name: str
    pattern: str
    # Completes "Download <phrase>, please add an appcast."
    phrase: str
    # Unversioned (``version :latest``) casks have nothing to track on this host.
    skip_when_latest: bool = False

    @property
    def regex(self) -> re.Pattern:
        return _compile(self.pattern)


@dataclass(frozen=True)
class UrlFormatRule:
    """A provider whose download URLs must take one of a few canonical forms."""

    name: str
    rule_id: str
    detect: str
    valid_formats: tuple[str, ...] = field(default_factory=tuple)
    doc_url: str = ""

    @property
    def message(self) -> str:
        text = f"{self.name} URL format incorrect."
        if self.doc_url:
            text += f" See {self.doc_url}"
        return text


_PATTERN_CACHE: dict[str, re.Pattern] = {}


def _compile(pattern: str) -> re.Pattern:
    compiled = _PATTERN_CACHE.get(pattern)
    if compiled is None:
        compiled = re.compile(pattern)
        _PATTERN_CACHE[pattern] = compiled
    return compiled


def classify_hosting(url: str, providers: Iterable[HostingProvider]) -> HostingProvider | None:
    """Return the first provider whose pattern occurs in *url*."""
    for provider in providers:
        if provider.regex.search(url):
            return provider
    return None


def is_bad_url_format(url: str, rule: UrlFormatRule) -> bool:
    """True when *url* belongs to *rule*'s provider but matches none of its valid forms."""
    if not _compile(rule.detect).search(url):
        return False
    return not any(_compile(fmt).search(url) for fmt in rule.valid_formats)


def find_bad_url_format(url: str, rules: Iterable[UrlFormatRule]) -> UrlFormatRule | None:
    """Return the first rule *url* violates. Later rules are not consulted."""
    for rule in rules:
        if is_bad_url_format(url, rule):
            return rule
    return None
