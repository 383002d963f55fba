# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""actiondom CLI: merge, context commands.

Usage:
    python -m actiondom.cli merge EXTRACT.json [EXTRACT.json ...] [--scope SCOPE] [--format FORMAT]
    python -m actiondom.cli context EXTRACT.json [EXTRACT.json ...] [--scope SCOPE]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import Settings
from .document import AnalysisScope
from .errors import ActionDomError, ExtractError
from .extracts import load_extracts
from .logging_config import bind_run, configure
from .merge import FileExtract, merge
from .scope import build_analyzer_context
from .serializer import to_json, to_text

logger = logging.getLogger("actiondom.cli")

EXIT_OK = 0
EXIT_EXTRACT_ERROR = 2
EXIT_CONFIG_ERROR = 2


def _load_all(paths: list[str]) -> list[FileExtract]:
    extracts: list[FileExtract] = []
    for path in paths:
        extracts.extend(load_extracts(path))
    return extracts


def _resolve_scope(args: argparse.Namespace, settings: Settings) -> AnalysisScope:
    return AnalysisScope(args.scope) if args.scope else settings.scope


def cmd_merge(args: argparse.Namespace, settings: Settings) -> int:
    """Merge extracts and print the document summary."""
    extracts = _load_all(args.extracts)
    document = merge(extracts, scope=_resolve_scope(args, settings))
    if args.format == "json":
        print(to_json(document))
    else:
        print(to_text(document))
    return EXIT_OK


def cmd_context(args: argparse.Namespace, settings: Settings) -> int:
    """Print the analyzer context (document or degraded) as JSON."""
    extracts = _load_all(args.extracts)
    ctx = build_analyzer_context(extracts, scope=_resolve_scope(args, settings))
    payload = {
        "mode": ctx.mode.value,
        "degraded": ctx.degraded,
        "scope": ctx.scope.value,
        "actions": len(ctx.all()),
    }
    if ctx.degraded:
        payload["degradation_reason"] = ctx.degradation_reason
    elif ctx.document is not None:
        payload["is_full_page"] = ctx.document.is_full_page
        payload["elements"] = len(ctx.document.get_all_elements())
    print(json.dumps(payload, indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cross-file action/DOM merge for accessibility analysis",
        prog="python -m actiondom.cli",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--log-json", action="store_true", help="Emit log lines as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scopes = [s.value for s in AnalysisScope]

    p_merge = subparsers.add_parser(
        "merge",
        help="Merge file extracts and summarize the document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s page.json menu.json               Text summary
  %(prog)s page.json menu.json --format json JSON summary
  %(prog)s widget.json --scope file          Declare file scope""",
    )
    p_merge.add_argument("extracts", nargs="+", metavar="EXTRACT", help="Extract JSON file(s)")
    p_merge.add_argument("--scope", choices=scopes, help="Declared analysis scope (default: ACTIONDOM_SCOPE)")
    p_merge.add_argument("--format", choices=["text", "json"], default="text", help="Output format (default: text)")

    p_context = subparsers.add_parser("context", help="Show whether analysis runs in document or degraded mode")
    p_context.add_argument("extracts", nargs="+", metavar="EXTRACT", help="Extract JSON file(s)")
    p_context.add_argument("--scope", choices=scopes, help="Declared analysis scope (default: ACTIONDOM_SCOPE)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ActionDomError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    level = "DEBUG" if args.verbose else settings.log_level
    configure(json_output=args.log_json or settings.log_json, level=level)
    bind_run(command=args.command, extracts=len(args.extracts))

    commands = {"merge": cmd_merge, "context": cmd_context}
    try:
        return commands[args.command](args, settings)
    except ExtractError as e:
        logger.error("Extract error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_EXTRACT_ERROR


if __name__ == "__main__":
    sys.exit(main())
