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
Markdown format reporter for audit results.
"""

from ...core.models import AuditResult, Finding, Report, Severity


class MarkdownReporter:
    """Generates Markdown format reports."""

    def __init__(self, detailed: bool = True):
        """
        Initialize Markdown reporter.

        Args:
            detailed: If True, include rule IDs and stanzas for each finding
        """
        self.detailed = detailed

    def generate_report(self, data: AuditResult | Report) -> str:
        """
        Generate Markdown report.

        Args:
            data: AuditResult or Report object

        Returns:
            Markdown string
        """
        if isinstance(data, AuditResult):
            return "\n".join(self._result_lines(data, heading="#"))
        return self._generate_multi_cask_report(data)

    def _result_lines(self, result: AuditResult, heading: str) -> list[str]:
        lines = []

        lines.append(f"{heading} {result.summary_header}")
        lines.append("")
        if result.sourcefile_path:
            lines.append(f"**File:** {result.sourcefile_path}")
        lines.append(f"**Status:** {'[OK] PASSED' if result.success else '[FAIL] PROBLEMS FOUND'}")
        lines.append(f"**Audit Duration:** {result.duration_seconds:.2f}s")
        lines.append("")

        if result.success:
            lines.append("No problems found.")
            lines.append("")
            return lines

        for severity, title in ((Severity.ERROR, "Errors"), (Severity.WARNING, "Warnings")):
            findings = [f for f in result.findings if f.severity == severity]
            if not findings:
                continue
            lines.append(f"{heading}# {title}")
            lines.append("")
            for finding in findings:
                lines.append(self._format_finding(finding))
            lines.append("")

        return lines

    def _format_finding(self, finding: Finding) -> str:
        if not self.detailed:
            return f"- {finding.message}"
        location = f" (`{finding.stanza}`)" if finding.stanza else ""
        return f"- **{finding.rule_id}**{location}: {finding.message}"

    def _generate_multi_cask_report(self, report: Report) -> str:
        """Generate report for multiple casks."""
        lines = []

        lines.append("# Cask Audit Report")
        lines.append("")
        lines.append(f"**Timestamp:** {report.timestamp.isoformat()}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Casks Audited:** {report.total_casks_audited}")
        lines.append(f"- **Passed:** {report.passed_count}")
        lines.append(f"- **Errors:** {report.error_count}")
        lines.append(f"- **Warnings:** {report.warning_count}")
        if report.load_failures:
            lines.append(f"- **Failed to Load:** {len(report.load_failures)}")
        lines.append("")

        for result in report.results:
            lines.extend(self._result_lines(result, heading="##"))

        if report.load_failures:
            lines.append("## Load Failures")
            lines.append("")
            for path, message in report.load_failures.items():
                lines.append(f"- `{path}`: {message}")
            lines.append("")

        return "\n".join(lines)

    def save_report(self, data: AuditResult | Report, output_path: str):
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.generate_report(data))
