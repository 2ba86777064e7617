#!/usr/bin/env python3
"""CLI script to validate an exported funnel file.

Usage:
    funnel-check <funnel.json>

    # or with JSON output
    funnel-check <funnel.json> --json

Exits with status 1 when the file cannot be read or parsed, or when the
funnel has error-level issues.
"""

import argparse
import json
import sys
from pathlib import Path

from funnel_backbone.analysis.validation import ValidationSummary, summarize, validate
from funnel_backbone.errors import FunnelParseError
from funnel_backbone.models.funnel import FunnelState, IssueKind
from funnel_backbone.persistence import parse_funnel


def load_funnel_file(path: Path) -> FunnelState:
    """Load a funnel from an exported JSON file.

    Raises:
        FunnelParseError: if the file does not hold a funnel document.
        OSError: if the file cannot be read.
    """
    return parse_funnel(path.read_bytes())


def format_report(state: FunnelState, summary: ValidationSummary) -> str:
    """Format a validation report for human-readable output."""
    lines = []
    lines.append("=" * 60)
    lines.append("FUNNEL REPORT")
    lines.append("=" * 60)
    lines.append("")

    lines.append(f"Nodes:    {len(state.nodes)}")
    lines.append(f"Edges:    {len(state.edges)}")
    lines.append(f"Errors:   {summary.error_count}")
    lines.append(f"Warnings: {summary.warning_count}")
    lines.append("")

    if state.nodes:
        lines.append("-" * 40)
        lines.append("STEPS")
        lines.append("-" * 40)
        for node in state.nodes:
            lines.append(f"  • {node.data.label} [{node.node_type.value}] ({node.id})")
        lines.append("")

    if summary.issues:
        lines.append("-" * 40)
        lines.append("ISSUES")
        lines.append("-" * 40)
        for issue in summary.issues:
            marker = "✗" if issue.kind == IssueKind.error else "!"
            lines.append(f"  {marker} {issue.message}")
        lines.append("")
    else:
        lines.append("-" * 40)
        lines.append("✓ All systems operational")
        lines.append("-" * 40)
        lines.append("")

    return "\n".join(lines)


def report_to_dict(state: FunnelState, summary: ValidationSummary) -> dict:
    """Convert a validation report to a JSON-serializable dict."""
    return {
        "node_count": len(state.nodes),
        "edge_count": len(state.edges),
        **summary.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate an exported funnel file and report its issues."
    )
    parser.add_argument(
        "funnel_file",
        type=Path,
        help="path to the exported funnel JSON file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="output the report as JSON instead of human-readable format",
    )

    args = parser.parse_args(argv)

    if not args.funnel_file.exists():
        print(f"Error: funnel file not found: {args.funnel_file}", file=sys.stderr)
        return 1

    try:
        state = load_funnel_file(args.funnel_file)
    except FunnelParseError as exc:
        print(f"Error: invalid funnel file: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: cannot read funnel file: {exc}", file=sys.stderr)
        return 1

    summary = summarize(validate(state.nodes, state.edges))

    if args.json:
        print(json.dumps(report_to_dict(state, summary), indent=2))
    else:
        print(format_report(state, summary))

    return 0 if summary.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
