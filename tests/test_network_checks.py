# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for download, HTTPS availability, appcast and token conflict checks."""

import pytest

from cask_audit.core.exceptions import TransportError, VerificationError
from cask_audit.core.models import NO_CHECK, Appcast, CaskUrl, Version
from cask_audit.data.packs.core.python.network_checks import (
    check_appcast_contains_version,
    check_download,
    check_https_availability,
    expected_appcast_version,
)
from cask_audit.data.packs.core.python.token_checks import check_token_conflicts, core_formula_url

APPCAST_URL = "https://example.com/appcast.xml"


class TestCheckDownload:
    def test_successful_download_and_verify(self, make_cask, policy, fake_download_factory, fake_verifier):
        cask = make_cask()
        findings = check_download(cask, policy, download_factory=fake_download_factory, verifier=fake_verifier)
        assert findings == []
        assert fake_download_factory.casks == [cask]
        assert fake_verifier.verified == [(cask, fake_download_factory.downloader.path)]

    def test_download_failure_is_one_error(self, make_cask, policy, fake_download_factory, fake_verifier, download_error):
        fake_download_factory.downloader.error = download_error
        findings = check_download(make_cask(), policy, download_factory=fake_download_factory, verifier=fake_verifier)
        assert [f.message for f in findings] == [f"download not possible: {download_error}"]
        assert findings[0].rule_id == "DOWNLOAD_FAILED"
        assert fake_verifier.verified == []

    def test_verification_failure_is_one_error(self, make_cask, policy, fake_download_factory, fake_verifier):
        fake_verifier.error = VerificationError("Checksum for Cask 'firefox' does not match.")
        findings = check_download(make_cask(), policy, download_factory=fake_download_factory, verifier=fake_verifier)
        assert [f.message for f in findings] == ["download not possible: Checksum for Cask 'firefox' does not match."]

    def test_no_url_skips(self, make_cask, policy, fake_download_factory, fake_verifier):
        findings = check_download(
            make_cask(url=None), policy, download_factory=fake_download_factory, verifier=fake_verifier
        )
        assert findings == []
        assert fake_download_factory.casks == []


class TestHttpsAvailability:
    def test_probes_url_appcast_and_homepage(self, make_cask, policy, fake_probe):
        cask = make_cask(appcast=Appcast(APPCAST_URL))
        assert check_https_availability(cask, policy, probe=fake_probe) == []
        assert fake_probe.reachability_calls == [
            (str(cask.url), ("default",)),
            (APPCAST_URL, ("default",)),
            (cask.homepage, ("browser",)),
        ]

    def test_url_user_agent_is_passed(self, make_cask, policy, fake_probe):
        cask = make_cask(url=CaskUrl("https://example.com/foo.dmg", user_agent="fake"))
        check_https_availability(cask, policy, probe=fake_probe)
        assert fake_probe.reachability_calls[0] == ("https://example.com/foo.dmg", ("fake",))

    def test_url_with_download_strategy_is_not_probed(self, make_cask, policy, fake_probe):
        cask = make_cask(url=CaskUrl("https://example.com/foo.dmg", using="post"))
        check_https_availability(cask, policy, probe=fake_probe)
        assert [call[0] for call in fake_probe.reachability_calls] == [cask.homepage]

    def test_each_problem_is_one_error(self, make_cask, policy, fake_probe):
        cask = make_cask(url=CaskUrl("http://example.com/foo.dmg"))
        fake_probe.problems = {
            "http://example.com/foo.dmg": "The URL http://example.com/foo.dmg should use HTTPS rather than HTTP",
            cask.homepage: f"The URL {cask.homepage} is not reachable (HTTP status code 404)",
        }
        findings = check_https_availability(cask, policy, probe=fake_probe)
        assert [f.message for f in findings] == [
            "The URL http://example.com/foo.dmg should use HTTPS rather than HTTP",
            f"The URL {cask.homepage} is not reachable (HTTP status code 404)",
        ]
        assert [f.stanza for f in findings] == ["url", "homepage"]

    def test_probe_exceptions_become_errors(self, make_cask, policy, failing_probe):
        findings = check_https_availability(make_cask(), policy, probe=failing_probe)
        assert len(findings) == 2
        assert all("is not reachable" in f.message for f in findings)


class TestExpectedAppcastVersion:
    @pytest.mark.parametrize(
        "version,expected",
        [
            ("1.2.3,4", "1.2.3"),
            ("1.2.3-beta_7", "1.2.3"),
            ("1.2.3_7", "1.2.3"),
            ("1.2.3", "1.2.3"),
        ],
    )
    def test_strips_build_suffixes(self, make_cask, version, expected):
        cask = make_cask(version=Version(version), appcast=Appcast(APPCAST_URL))
        assert expected_appcast_version(cask) == expected

    def test_configuration_used_verbatim(self, make_cask):
        cask = make_cask(version=Version("1.2.3,4"), appcast=Appcast(APPCAST_URL, configuration="1.2.3 (4)"))
        assert expected_appcast_version(cask) == "1.2.3 (4)"


class TestAppcastContainsVersion:
    def test_version_present_passes(self, make_cask, policy, fake_probe):
        fake_probe.content = "<rss><item><title>Firefox 89.0</title></item></rss>"
        cask = make_cask(appcast=Appcast(APPCAST_URL))
        assert check_appcast_contains_version(cask, policy, probe=fake_probe) == []

    def test_fetch_arguments(self, make_cask, policy, fake_probe):
        cask = make_cask(appcast=Appcast(APPCAST_URL))
        check_appcast_contains_version(cask, policy, probe=fake_probe, max_time=5)
        assert fake_probe.fetch_calls == [
            {
                "url": APPCAST_URL,
                "compressed": True,
                "user_agent": "fake",
                "follow_redirects": True,
                "max_time": 5,
            }
        ]

    def test_version_missing_warned(self, make_cask, policy, fake_probe):
        fake_probe.content = "<rss><item><title>Firefox 88.0</title></item></rss>"
        cask = make_cask(version=Version("89.0,20210601"), appcast=Appcast(APPCAST_URL))
        findings = check_appcast_contains_version(cask, policy, probe=fake_probe)
        assert [f.message for f in findings] == [
            f"appcast at URL '{APPCAST_URL}' does not contain the version number: '89.0'"
        ]
        assert findings[0].rule_id == "APPCAST_MISSING_VERSION"

    def test_fetch_failure_is_error(self, make_cask, policy, fake_probe):
        fake_probe.fetch_error = TransportError("Operation timed out after 5 seconds")
        cask = make_cask(appcast=Appcast(APPCAST_URL))
        findings = check_appcast_contains_version(cask, policy, probe=fake_probe)
        assert [f.message for f in findings] == [f"appcast at URL '{APPCAST_URL}' offline or looping"]
        assert findings[0].rule_id == "APPCAST_UNREACHABLE"

    def test_no_check_configuration_skips(self, make_cask, policy, fake_probe):
        cask = make_cask(appcast=Appcast(APPCAST_URL, configuration=NO_CHECK))
        assert check_appcast_contains_version(cask, policy, probe=fake_probe) == []
        assert fake_probe.fetch_calls == []

    @pytest.mark.parametrize("appcast", [None, Appcast("")])
    def test_missing_appcast_skips(self, make_cask, policy, fake_probe, appcast):
        assert check_appcast_contains_version(make_cask(appcast=appcast), policy, probe=fake_probe) == []
        assert fake_probe.fetch_calls == []


class TestTokenConflicts:
    def test_conflict_warned(self, make_cask, policy):
        findings = check_token_conflicts(
            make_cask(token="wget"),
            policy,
            formula_names={"wget", "curl"},
            remote="https://github.com/Homebrew/homebrew-core",
        )
        assert [f.message for f in findings] == [
            "possible duplicate, cask token conflicts with Homebrew core formula: "
            "https://github.com/Homebrew/homebrew-core/blob/master/Formula/wget.rb"
        ]

    def test_no_conflict_passes(self, make_cask, policy):
        assert check_token_conflicts(make_cask(), policy, formula_names={"wget"}, remote="https://x") == []

    def test_formula_url_strips_trailing_slash(self):
        assert core_formula_url("https://example.com/core/", "foo") == "https://example.com/core/blob/master/Formula/foo.rb"
