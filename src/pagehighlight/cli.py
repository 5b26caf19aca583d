# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Highlight CLI: inspect container candidates and apply classifier payloads offline.

Usage:
    python -m pagehighlight.cli candidates PAGE.html [--near TEXT]
    python -m pagehighlight.cli apply PAGE.html SPANS.json [--near TEXT] [-o OUT] [--format html|json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import lxml.html

from pagehighlight.config import HighlightConfig
from pagehighlight.containers.collector import collect_candidates
from pagehighlight.containers.scorer import rank_candidates
from pagehighlight.containers.selector import HeuristicSelector
from pagehighlight.content import LxmlNode, body_of, find_start_point, parse_document
from pagehighlight.errors import HighlightError
from pagehighlight.logging_config import configure
from pagehighlight.registry import HighlightRegistry
from pagehighlight.spans.applier import SpanApplier
from pagehighlight.spans.classifier import parse_classifier_response
from pagehighlight.spans.resolver import resolve_conflicts


def _require_cli_deps() -> None:
    """Check that CLI optional dependencies are installed."""
    try:
        from tabulate import tabulate  # noqa: F401
    except ImportError as e:
        print(
            f"Missing CLI dependency: {e.name}\nInstall with: pip install pagehighlight[cli]",
            file=sys.stderr,
        )
        sys.exit(1)


def _load_page(path: str, near: str | None) -> tuple[LxmlNode, LxmlNode]:
    """Parse *path* and return (document root, start point)."""
    root = parse_document(Path(path).read_text(encoding="utf-8"))
    start = None
    if near:
        start = find_start_point(body_of(root), near)
        if start is None:
            raise HighlightError(f"Text not found in page: {near!r}")
    return root, start or body_of(root)


def cmd_candidates(args: argparse.Namespace) -> None:
    """Print discovered container candidates with their scores."""
    _require_cli_deps()
    from tabulate import tabulate

    config = HighlightConfig.from_env()
    _, start = _load_page(args.file, args.near)
    candidates = collect_candidates(start, config)
    if not candidates:
        print("No container candidates; the start point would be used as-is.")
        return

    rows = [
        [rank, c.tag_hint, c.class_hint[:30], c.id_hint[:20], c.text_length, c.word_count, f"{c.score:.1f}"]
        for rank, c in enumerate(rank_candidates(candidates), start=1)
    ]
    headers = ["Rank", "Tag", "Class", "ID", "Chars", "Words", "Score"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))


def cmd_apply(args: argparse.Namespace) -> None:
    """Select a container heuristically and apply a classifier payload to it."""
    config = HighlightConfig.from_env()
    root, start = _load_page(args.file, args.near)
    spans = parse_classifier_response(Path(args.spans).read_text(encoding="utf-8"))

    choice = HeuristicSelector().choose(start, collect_candidates(start, config))
    resolved = resolve_conflicts(spans)
    registry = HighlightRegistry()
    result = SpanApplier(registry).apply(choice.node, resolved)

    if args.format == "json":
        report = {
            "container": choice.node.path(),
            "method": choice.method,
            "spans_in": len(spans),
            "spans_resolved": len(resolved),
            "total_applied": result.total_applied,
            "tiers": result.tier_counts,
            "skipped": result.skipped,
            "highlights": registry.snapshot(),
        }
        output = json.dumps(report, ensure_ascii=False, indent=2)
    else:
        output = lxml.html.tostring(root.element, encoding="unicode", doctype="<!DOCTYPE html>")

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(output, encoding="utf-8")
        print(f"Applied {result.total_applied} highlight(s) → {out}", file=sys.stderr)
    else:
        print(output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Page Highlight CLI",
        prog="python -m pagehighlight.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_candidates = subparsers.add_parser("candidates", help="List main-content container candidates")
    p_candidates.add_argument("file", metavar="FILE", help="HTML file")
    p_candidates.add_argument("--near", type=str, metavar="TEXT", help="Start from the element containing TEXT")

    p_apply = subparsers.add_parser(
        "apply",
        help="Apply a classifier payload to a page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s page.html spans.json                      Annotated HTML to stdout
  %(prog)s page.html spans.json --format json        JSON report to stdout
  %(prog)s page.html spans.json -o out/page.html     Save annotated HTML""",
    )
    p_apply.add_argument("file", metavar="FILE", help="HTML file")
    p_apply.add_argument("spans", metavar="SPANS_JSON", help="Classifier reply ({tier: [phrase, ...]})")
    p_apply.add_argument("--near", type=str, metavar="TEXT", help="Start from the element containing TEXT")
    p_apply.add_argument("-o", "--output", type=str, metavar="PATH", help="Write output to PATH")
    p_apply.add_argument("--format", choices=["html", "json"], default="html", help="Output format (default: html)")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure(json_output=args.json_logs, level="DEBUG" if args.verbose else "WARNING")

    commands = {"candidates": cmd_candidates, "apply": cmd_apply}
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except (HighlightError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
