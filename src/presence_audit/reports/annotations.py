"""Diagnostic reporters: GitHub workflow annotations and a rich console view.

Workflow command format (GitHub Actions)::

    ::error file=websites/Y/YouTube/metadata.json,line=4::Version has not been bumped

Line ``0`` / unknown lines are emitted as file-only annotations.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO

from rich.console import Console
from rich.table import Table

from presence_audit.model.diagnostic import Diagnostic
from presence_audit.model.run_result import RunReport

FAILED_SUMMARY = "Some Presences failed to validate."
PASSED_SUMMARY = "All Presences validated successfully"


def _escape_data(s: str) -> str:
    return s.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(s: str) -> str:
    return _escape_data(s).replace(":", "%3A").replace(",", "%2C")


def _display_path(path: Path, root: Path | None) -> str:
    if root is not None:
        try:
            return path.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def format_annotation(diag: Diagnostic, *, root: Path | None = None) -> str:
    """Render *diag* as a ``::error`` workflow command."""
    props: list[str] = []
    if diag.location is not None:
        props.append(
            "file=" + _escape_property(_display_path(diag.location.path, root))
        )
        if diag.location.has_line:
            props.append(f"line={diag.location.line}")
    head = "::error " + ",".join(props) if props else "::error"
    return f"{head}::{_escape_data(diag.message)}"


def write_annotations(
    report: RunReport, out: IO[str], *, root: Path | None = None
) -> None:
    for diag in report.diagnostics:
        out.write(format_annotation(diag, root=root) + "\n")
    if report.ok:
        out.write(PASSED_SUMMARY + "\n")
    else:
        out.write(f"::error::{FAILED_SUMMARY}\n")


def running_in_github_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS") == "true"


def render_console(
    report: RunReport, console: Console, *, root: Path | None = None
) -> None:
    """Human summary: one table row per diagnostic."""
    if report.ok:
        console.print(f"[green]{PASSED_SUMMARY}[/green]")
        return

    table = Table(title=FAILED_SUMMARY, title_style="bold red")
    table.add_column("Presence", style="cyan", no_wrap=True)
    table.add_column("Location")
    table.add_column("Kind")
    table.add_column("Message")
    for diag in report.diagnostics:
        where = ""
        if diag.location is not None:
            where = _display_path(diag.location.path, root)
            if diag.location.has_line:
                where += f":{diag.location.line}"
        table.add_row(diag.presence, where, diag.kind.value, diag.message)
    console.print(table)
