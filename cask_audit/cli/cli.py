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

"""Command-line interface for Cask Audit."""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys
from pathlib import Path

from ..config.config import AuditConfig, Config
from ..core.audit_policy import AuditPolicy
from ..core.auditor import CaskAuditor
from ..core.exceptions import CaskAuditError
from ..core.loader import CaskLoader
from ..core.models import AuditResult, Report
from ..core.reporters.json_reporter import JSONReporter
from ..core.reporters.markdown_reporter import MarkdownReporter
from ..core.rule_registry import PackLoader

logger = logging.getLogger("cask_audit.cli")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(args: argparse.Namespace, settings: Config) -> None:
    level = "DEBUG" if getattr(args, "verbose", False) else settings.log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_policy(args: argparse.Namespace) -> AuditPolicy:
    """Load audit policy from ``--policy`` flag or return the default."""
    policy_value = getattr(args, "policy", None)

    if not policy_value:
        return AuditPolicy.default()

    if policy_value.lower() in AuditPolicy.preset_names():
        policy = AuditPolicy.from_preset(policy_value)
        logger.info("Using %s audit policy (preset)", policy.policy_name)
        return policy

    policy = AuditPolicy.from_yaml(policy_value)
    logger.info("Using audit policy: %s (%s)", policy_value, policy.policy_name)
    return policy


def _build_audit_config(args: argparse.Namespace, settings: Config) -> AuditConfig:
    # Flags only ever switch checks on; the environment may already have.
    return settings.audit_config(
        check_appcast=True if getattr(args, "appcast", False) else None,
        download=True if getattr(args, "download", False) else None,
        check_token_conflicts=True if getattr(args, "token_conflicts", False) else None,
        commit_range=getattr(args, "commit_range", None),
    )


def _expand_paths(paths: list[str], loader: CaskLoader, recursive: bool = True) -> list[Path]:
    """Expand directories into the cask files they contain."""
    expanded: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            expanded.extend(loader.find_casks(path, recursive=recursive))
        else:
            expanded.append(path)
    return expanded


def _changed_in_range(config: AuditConfig, candidates: list[Path]) -> list[Path]:
    """Keep only the candidates that ``git diff --name-only`` reports for the commit range."""
    completed = config.command.run(["git", "diff", "--name-only", config.commit_range])
    changed = {Path(line.strip()).resolve() for line in completed.stdout.splitlines() if line.strip()}
    return [p for p in candidates if p.resolve() in changed]


def _format_output(args: argparse.Namespace, result_or_report: AuditResult | Report) -> str:
    """Generate the formatted output string for an audit result / report."""
    fmt = getattr(args, "format", "summary")
    if fmt == "json":
        return JSONReporter(pretty=not args.compact).generate_report(result_or_report)
    if fmt == "markdown":
        return MarkdownReporter(detailed=args.verbose).generate_report(result_or_report)
    # summary (default)
    if isinstance(result_or_report, Report):
        return _generate_multi_cask_summary(result_or_report)
    return _generate_summary(result_or_report)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}")
    else:
        print(output)


def _exit_code(args: argparse.Namespace, report: Report) -> int:
    if report.total_casks_audited == 0:
        return 1
    if report.has_errors:
        return 1
    if args.fail_on_warnings and report.warning_count:
        return 1
    return 0


def _audit_and_report(args: argparse.Namespace, cask_paths: list[Path], settings: Config, loader: CaskLoader) -> int:
    try:
        policy = _load_policy(args)
    except FileNotFoundError:
        print(f"Error: Policy file not found: {args.policy}", file=sys.stderr)
        return 1
    except CaskAuditError as e:
        print(f"Error loading policy file: {e}", file=sys.stderr)
        return 1

    config = _build_audit_config(args, settings)

    if config.commit_range:
        try:
            cask_paths = _changed_in_range(config, cask_paths)
        except (OSError, subprocess.CalledProcessError) as e:
            print(f"Error reading commit range {config.commit_range}: {e}", file=sys.stderr)
            return 1
        if not cask_paths:
            print(f"No casks changed in {config.commit_range}")
            return 0

    if not cask_paths:
        print("Error: No cask files found", file=sys.stderr)
        return 1

    with CaskAuditor(config, policy=policy, settings=settings) as auditor:
        report = auditor.audit_paths(cask_paths, loader=loader)

    for path, message in report.load_failures.items():
        print(f"Error loading cask {path}: {message}", file=sys.stderr)

    _write_output(args, _format_output(args, report))
    return _exit_code(args, report)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def audit_command(args: argparse.Namespace, settings: Config) -> int:
    """Handle the ``audit`` command for one or more cask files."""
    loader = CaskLoader()
    missing = [p for p in args.paths if not Path(p).exists()]
    for path in missing:
        print(f"Error: Path does not exist: {path}", file=sys.stderr)
    if missing:
        return 1

    return _audit_and_report(args, _expand_paths(args.paths, loader), settings, loader)


def audit_all_command(args: argparse.Namespace, settings: Config) -> int:
    """Handle the ``audit-all`` command for a directory of casks."""
    casks_dir = Path(args.casks_directory)
    if not casks_dir.is_dir():
        print(f"Error: Directory does not exist: {casks_dir}", file=sys.stderr)
        return 1

    loader = CaskLoader()
    return _audit_and_report(args, loader.find_casks(casks_dir, recursive=args.recursive), settings, loader)


def list_rules_command(_args: argparse.Namespace, _settings: Config) -> int:
    """Handle the ``list-rules`` command."""
    registry = PackLoader().build_registry()
    print("Available audit rules:\n")
    for rule_id, rule in sorted(registry.all_rules().items()):
        tags = [rule.default_severity]
        if rule.gate:
            tags.append(f"requires --{rule.gate.replace('check_', '').replace('_', '-')}")
        if rule.network:
            tags.append("network")
        print(f"  {rule_id:<30s} [{', '.join(tags)}]")
        if rule.description:
            print(f"      {rule.description}")
    return 0


def generate_policy_command(args: argparse.Namespace, _settings: Config) -> int:
    """Handle the ``generate-policy`` command."""
    output_path = Path(args.output)
    preset = getattr(args, "preset", "balanced")
    try:
        policy = AuditPolicy.from_preset(preset)
        policy.to_yaml(output_path)
    except (OSError, CaskAuditError) as e:
        print(f"Error generating policy: {e}", file=sys.stderr)
        return 1

    print(f"Generated {preset} audit policy: {output_path}\n")
    print("Edit the file to customise, then use:")
    print(f"  cask-audit audit --policy {output_path} /path/to/cask.yaml\n")
    print(f"Available presets: {' | '.join(AuditPolicy.preset_names())}")
    return 0


# ---------------------------------------------------------------------------
# Summary formatters
# ---------------------------------------------------------------------------


def _generate_summary(result: AuditResult) -> str:
    lines = [f"{result.summary_header}: {'passed' if result.success else 'failed'}"]
    for error in result.errors:
        lines.append(f" - {error}")
    for warning in result.warnings:
        lines.append(f" - {warning} (warning)")
    return "\n".join(lines)


def _generate_multi_cask_summary(report: Report) -> str:
    lines = [_generate_summary(r) for r in report.results]
    lines.extend(
        [
            "",
            "=" * 60,
            f"Casks Audited: {report.total_casks_audited}",
            f"Passed: {report.passed_count}",
            f"Errors: {report.error_count}",
            f"Warnings: {report.warning_count}",
        ]
    )
    if report.load_failures:
        lines.append(f"Failed to Load: {len(report.load_failures)}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Shared argparse helpers
# ---------------------------------------------------------------------------


def _add_common_audit_flags(parser: argparse.ArgumentParser) -> None:
    """Add flags shared between ``audit`` and ``audit-all``."""
    parser.add_argument("--download", action="store_true", help="Download and verify the cask, probe its URLs")
    parser.add_argument("--appcast", action="store_true", help="Check that the appcast mentions the version")
    parser.add_argument("--token-conflicts", action="store_true", help="Check for conflicts with core formulae")
    parser.add_argument("--commit-range", metavar="RANGE", help="Only audit casks changed in this git commit range")
    parser.add_argument(
        "--policy",
        metavar="PRESET_OR_PATH",
        help="Audit policy: preset name (balanced, strict) or path to custom YAML",
    )
    parser.add_argument(
        "--format",
        choices=["summary", "json", "markdown"],
        default="summary",
        help="Output format (default: summary)",
    )
    parser.add_argument("--output", "-o", help="Output file path")
    parser.add_argument("--compact", action="store_true", help="Compact JSON output")
    parser.add_argument("--fail-on-warnings", action="store_true", help="Exit with error if any warning is reported")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and rule IDs in Markdown output")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Cask Audit - Rule-based auditor for Homebrew Cask manifests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cask-audit audit Casks/firefox.yaml
  cask-audit audit Casks/firefox.yaml --download --appcast
  cask-audit audit Casks --commit-range origin/master...HEAD
  cask-audit audit-all Casks --recursive --format json
  cask-audit audit Casks/firefox.yaml --policy strict
  cask-audit generate-policy -o my_policy.yaml
  cask-audit list-rules
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- audit -------------------------------------------------------------
    audit_p = subparsers.add_parser("audit", help="Audit one or more cask files")
    audit_p.add_argument("paths", nargs="+", help="Cask files or directories")
    _add_common_audit_flags(audit_p)

    # -- audit-all ---------------------------------------------------------
    audit_all_p = subparsers.add_parser("audit-all", help="Audit every cask in a directory")
    audit_all_p.add_argument("casks_directory", help="Directory containing casks")
    audit_all_p.add_argument("--recursive", "-r", action="store_true", help="Recursively search for casks")
    _add_common_audit_flags(audit_all_p)

    # -- list-rules --------------------------------------------------------
    subparsers.add_parser("list-rules", help="List available audit rules")

    # -- generate-policy ---------------------------------------------------
    gp_p = subparsers.add_parser("generate-policy", help="Generate a default audit policy YAML")
    gp_p.add_argument("--output", "-o", default="audit_policy.yaml", help="Output file path")
    gp_p.add_argument("--preset", choices=AuditPolicy.preset_names(), default="balanced", help="Base preset")

    # -- dispatch ----------------------------------------------------------
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = Config.from_file(Path(".env"))
    _configure_logging(args, settings)

    dispatch = {
        "audit": audit_command,
        "audit-all": audit_all_command,
        "list-rules": list_rules_command,
        "generate-policy": generate_policy_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args, settings)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
