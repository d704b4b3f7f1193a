"""CLI entry-point for presence_audit.

Usage:
    python -m presence_audit validate [NAME ...] [--root DIR] [--base REF]
    python -m presence_audit validate NAME --schema-file schema.json --format json
    python -m presence_audit locate <metadata.json> <key> [selector]

Exit codes follow ``presence_audit.utils.exit_codes.ExitCode``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console

from presence_audit import __version__
from presence_audit.core.config import AuditConfig
from presence_audit.core.discover import changed_presences
from presence_audit.core.locator import Selector, locate
from presence_audit.core.runner import prepare_context, run_validation
from presence_audit.errors import ChangeDetectionError, JsonAstError, RegistryError
from presence_audit.registry.client import RegistryClient
from presence_audit.reports.annotations import (
    render_console,
    running_in_github_actions,
    write_annotations,
)
from presence_audit.utils.exit_codes import ExitCode
from presence_audit.utils.json_norm import stable_json_dump

_logger = logging.getLogger("presence_audit")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="presence-audit",
        description="Validate presence metadata before merge.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )
    sub = p.add_subparsers(dest="command")

    # ── validate subcommand ─────────────────────────────────────────
    val_p = sub.add_parser(
        "validate",
        help="Validate presences (default: those changed since --base).",
    )
    val_p.add_argument(
        "presences",
        nargs="*",
        metavar="NAME",
        help="Presence names to validate. Omit to use git change detection.",
    )
    val_p.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Repository root (default: current directory).",
    )
    val_p.add_argument(
        "--base",
        default="origin/main",
        help="Git ref to diff against when no names are given (default: origin/main).",
    )
    val_p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file.",
    )
    val_p.add_argument("--api-url", dest="api_url", default=None)
    schema_src = val_p.add_mutually_exclusive_group()
    schema_src.add_argument(
        "--schema-url",
        dest="schema_url",
        default=None,
        help="URL of the latest metadata schema (also its identifier).",
    )
    schema_src.add_argument(
        "--schema-file",
        dest="schema_file",
        type=Path,
        default=None,
        help="Local copy of the schema; identified by its $id.",
    )
    val_p.add_argument(
        "--timeout",
        dest="http_timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds.",
    )
    val_p.add_argument(
        "--format",
        dest="output_format",
        choices=["auto", "github", "console", "json"],
        default="auto",
        help="Output format (default: github under GitHub Actions, else console).",
    )

    # ── locate subcommand ───────────────────────────────────────────
    loc_p = sub.add_parser(
        "locate",
        help="Print the line a field is declared on in a JSON file.",
    )
    loc_p.add_argument("file", type=Path)
    loc_p.add_argument("key", help="Top-level property name.")
    loc_p.add_argument(
        "selector",
        nargs="?",
        default=None,
        help="Nested key, array index, or array value.",
    )
    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(args: argparse.Namespace) -> AuditConfig:
    base = AuditConfig.from_yaml(args.config) if args.config else AuditConfig()
    cli: dict[str, Any] = {
        "root": args.root,
        "api_url": args.api_url,
        "schema_url": args.schema_url,
        "schema_file": args.schema_file,
        "http_timeout": args.http_timeout,
    }
    return base.with_env().merged(cli)


def _handle_validate(args: argparse.Namespace) -> int:
    try:
        config = _resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR

    root = config.root.resolve()
    if not config.presences_root.is_dir():
        print(
            f"error: presences directory does not exist: {config.presences_root}",
            file=sys.stderr,
        )
        return ExitCode.ERROR

    presences: list[str] = list(args.presences)
    if not presences:
        try:
            presences = changed_presences(
                root, args.base, presences_dir=config.presences_dir
            )
        except ChangeDetectionError as e:
            print(f"error: {e}", file=sys.stderr)
            return ExitCode.ERROR
    if not presences:
        _logger.info("No changed presences to validate")
        return ExitCode.SUCCESS

    with RegistryClient(config.api_url, timeout=config.http_timeout) as registry:
        try:
            ctx = prepare_context(config, registry)
            report = run_validation(presences, ctx)
        except RegistryError as e:
            _logger.error("Could not fetch store data: %s", e)
            return ExitCode.ERROR
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return ExitCode.ERROR

    fmt = args.output_format
    if fmt == "auto":
        fmt = "github" if running_in_github_actions() else "console"
    if fmt == "json":
        stable_json_dump(report.to_dict(), sys.stdout)
    elif fmt == "github":
        write_annotations(report, sys.stdout, root=root)
    else:
        render_console(report, Console(stderr=True), root=root)

    return ExitCode.SUCCESS if report.ok else ExitCode.VIOLATION


def _parse_selector(raw: str | None) -> Selector | None:
    if raw is None:
        return None
    return int(raw) if raw.isascii() and raw.isdigit() else raw


def _handle_locate(args: argparse.Namespace) -> int:
    try:
        text = args.file.read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return ExitCode.ERROR

    try:
        line = locate(text, args.key, _parse_selector(args.selector))
    except JsonAstError as e:
        print(f"error: {args.file}: {e}", file=sys.stderr)
        return ExitCode.ERROR

    if not line:
        print("-")
        return ExitCode.VIOLATION
    print(line)
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Entry-point — returns an ``ExitCode``."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "validate":
        return _handle_validate(args)
    if args.command == "locate":
        return _handle_locate(args)

    parser.print_help(sys.stderr)
    return ExitCode.ERROR


if __name__ == "__main__":
    raise SystemExit(main())
