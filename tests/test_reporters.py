# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the JSON and Markdown reporters."""

import json

import pytest

from cask_audit.core.models import AuditResult, Report
from cask_audit.core.reporters.json_reporter import JSONReporter
from cask_audit.core.reporters.markdown_reporter import MarkdownReporter


@pytest.fixture
def failing_result() -> AuditResult:
    result = AuditResult(cask_token="foo", sourcefile_path="Casks/foo.yaml")
    result.add_error("a homepage stanza is required", rule_id="REQUIRED_STANZA_MISSING", stanza="homepage")
    result.add_warning("only a single zap stanza is allowed", rule_id="SINGLE_STANZA_VIOLATION", stanza="zap")
    result.seal()
    return result


@pytest.fixture
def report(failing_result) -> Report:
    report = Report()
    report.add_result(failing_result)
    report.add_result(AuditResult(cask_token="bar"))
    report.add_load_failure("Casks/broken.yaml", "Failed to parse YAML")
    return report


class TestJSONReporter:
    def test_single_result(self, failing_result):
        data = json.loads(JSONReporter().generate_report(failing_result))
        assert data["cask"] == "foo"
        assert data["errors"] == ["a homepage stanza is required"]
        assert data["warnings"] == ["only a single zap stanza is allowed"]

    def test_report_summary(self, report):
        data = json.loads(JSONReporter(pretty=False).generate_report(report))
        assert data["summary"]["total_casks_audited"] == 2
        assert data["summary"]["passed"] == 1
        assert data["summary"]["errors"] == 1
        assert data["summary"]["warnings"] == 1
        assert data["load_failures"] == {"Casks/broken.yaml": "Failed to parse YAML"}

    def test_compact_output_has_no_indentation(self, failing_result):
        assert "\n" not in JSONReporter(pretty=False).generate_report(failing_result)


class TestMarkdownReporter:
    def test_single_result(self, failing_result):
        output = MarkdownReporter().generate_report(failing_result)
        assert output.startswith("# audit for foo")
        assert "## Errors" in output
        assert "- **REQUIRED_STANZA_MISSING** (`homepage`): a homepage stanza is required" in output
        assert "## Warnings" in output

    def test_brief_findings(self, failing_result):
        output = MarkdownReporter(detailed=False).generate_report(failing_result)
        assert "- a homepage stanza is required" in output
        assert "REQUIRED_STANZA_MISSING" not in output

    def test_report(self, report):
        output = MarkdownReporter().generate_report(report)
        assert "# Cask Audit Report" in output
        assert "- **Casks Audited:** 2" in output
        assert "## audit for bar" in output
        assert "No problems found." in output
        assert "- `Casks/broken.yaml`: Failed to parse YAML" in output

    def test_save_report(self, tmp_path, failing_result):
        path = tmp_path / "report.md"
        MarkdownReporter().save_report(failing_result, str(path))
        assert path.read_text().startswith("# audit for foo")
