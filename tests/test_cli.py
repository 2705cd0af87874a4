# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the cask-audit command-line interface."""

import json
import os
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from cask_audit.cli.cli import main

GOOD_CASK = """\
name: Good
version: "1.0"
sha256: "5891b5b522d5df086d0ff0b110fbd9d21bb4fc7163af34d08286a2e846f6be03"
url: https://example.com/good.dmg
homepage: https://example.com/
artifacts:
  - app: Good.app
"""

WARNING_CASK = GOOD_CASK + "  - zap:\n      trash: /tmp/a\n  - zap:\n      trash: /tmp/b\n"

ERROR_CASK = """\
name: Bad
version: latest
artifacts:
  - app: Bad.app
"""


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Run every CLI test from an empty directory with no CASK_AUDIT_* settings."""
    monkeypatch.chdir(tmp_path)
    env = {k: v for k, v in os.environ.items() if not k.startswith("CASK_AUDIT_")}
    with patch.dict("os.environ", env, clear=True):
        yield


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content))
    return path


class TestAuditCommand:
    def test_passing_cask(self, tmp_path, capsys):
        path = _write(tmp_path / "good.yaml", GOOD_CASK)
        assert main(["audit", str(path)]) == 0
        assert "audit for good: passed" in capsys.readouterr().out

    def test_errors_fail(self, tmp_path, capsys):
        path = _write(tmp_path / "bad.yaml", ERROR_CASK)
        assert main(["audit", str(path)]) == 1
        out = capsys.readouterr().out
        assert "audit for bad: failed" in out
        assert " - a sha256 stanza is required" in out
        assert " - you should use version :latest instead of version 'latest'" in out

    def test_warnings_pass_unless_requested(self, tmp_path, capsys):
        path = _write(tmp_path / "warn.yaml", WARNING_CASK)
        assert main(["audit", str(path)]) == 0
        assert " - only a single zap stanza is allowed (warning)" in capsys.readouterr().out
        assert main(["audit", str(path), "--fail-on-warnings"]) == 1

    def test_missing_path(self, tmp_path):
        assert main(["audit", str(tmp_path / "nope.yaml")]) == 1

    def test_unloadable_cask_is_reported_and_others_continue(self, tmp_path, capsys):
        good = _write(tmp_path / "good.yaml", GOOD_CASK)
        broken = _write(tmp_path / "broken.yaml", "name: [unclosed\n")
        assert main(["audit", str(broken), str(good)]) == 1
        captured = capsys.readouterr()
        assert "Error loading cask" in captured.err
        assert "audit for good: passed" in captured.out

    def test_no_loadable_cask_fails(self, tmp_path):
        broken = _write(tmp_path / "broken.yaml", "name: [unclosed\n")
        assert main(["audit", str(broken)]) == 1

    def test_json_output_to_file(self, tmp_path):
        path = _write(tmp_path / "good.yaml", GOOD_CASK)
        output = tmp_path / "report.json"
        assert main(["audit", str(path), "--format", "json", "--output", str(output)]) == 0
        data = json.loads(output.read_text())
        assert data["summary"]["total_casks_audited"] == 1
        assert data["results"][0]["cask"] == "good"

    def test_markdown_output(self, tmp_path, capsys):
        path = _write(tmp_path / "bad.yaml", ERROR_CASK)
        main(["audit", str(path), "--format", "markdown"])
        assert "# Cask Audit Report" in capsys.readouterr().out

    def test_policy_preset(self, tmp_path):
        path = _write(tmp_path / "warn.yaml", WARNING_CASK)
        assert main(["audit", str(path), "--policy", "strict"]) == 1

    def test_missing_policy_file(self, tmp_path, capsys):
        path = _write(tmp_path / "good.yaml", GOOD_CASK)
        assert main(["audit", str(path), "--policy", str(tmp_path / "none.yaml")]) == 1
        assert "Policy file not found" in capsys.readouterr().err

    def test_directory_argument_expands(self, tmp_path, capsys):
        _write(tmp_path / "Casks" / "good.yaml", GOOD_CASK)
        _write(tmp_path / "Casks" / "warn.yaml", WARNING_CASK)
        assert main(["audit", str(tmp_path / "Casks")]) == 0
        assert "Casks Audited: 2" in capsys.readouterr().out


class TestCommitRange:
    def test_only_changed_casks_are_audited(self, tmp_path, monkeypatch, capsys, fake_command):
        _write(tmp_path / "Casks" / "good.yaml", GOOD_CASK)
        _write(tmp_path / "Casks" / "bad.yaml", ERROR_CASK)
        fake_command.stdout = "Casks/good.yaml\nREADME.md\n"
        monkeypatch.setattr("cask_audit.config.config.SystemCommand", lambda: fake_command)

        assert main(["audit", "Casks", "--commit-range", "HEAD~1..HEAD"]) == 0
        assert fake_command.calls == [["git", "diff", "--name-only", "HEAD~1..HEAD"]]
        out = capsys.readouterr().out
        assert "audit for good" in out
        assert "audit for bad" not in out

    def test_nothing_changed(self, tmp_path, monkeypatch, capsys, fake_command):
        _write(tmp_path / "Casks" / "good.yaml", GOOD_CASK)
        monkeypatch.setattr("cask_audit.config.config.SystemCommand", lambda: fake_command)

        assert main(["audit", "Casks", "--commit-range", "HEAD~1..HEAD"]) == 0
        assert "No casks changed in HEAD~1..HEAD" in capsys.readouterr().out


class TestAuditAllCommand:
    def test_recursive(self, tmp_path, capsys):
        _write(tmp_path / "Casks" / "a" / "good.yaml", GOOD_CASK)
        assert main(["audit-all", str(tmp_path / "Casks"), "--recursive"]) == 0
        assert "Casks Audited: 1" in capsys.readouterr().out

    def test_empty_directory_fails(self, tmp_path):
        (tmp_path / "Casks").mkdir()
        assert main(["audit-all", str(tmp_path / "Casks")]) == 1

    def test_missing_directory(self, tmp_path):
        assert main(["audit-all", str(tmp_path / "nope")]) == 1


class TestOtherCommands:
    def test_list_rules(self, capsys):
        assert main(["list-rules"]) == 0
        out = capsys.readouterr().out
        assert "SHA256_EMPTY_STRING" in out
        assert "requires --download" in out

    def test_generate_policy(self, tmp_path, capsys):
        output = tmp_path / "policy.yaml"
        assert main(["generate-policy", "-o", str(output), "--preset", "strict"]) == 0
        assert "policy_name: strict" in output.read_text()

    def test_no_command_prints_help(self):
        assert main([]) == 1
