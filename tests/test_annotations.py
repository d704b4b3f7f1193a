"""Tests for the workflow-command and console reporters."""

from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console

from presence_audit.model import DiagnosticKind
from presence_audit.model.diagnostic import Diagnostic, Location
from presence_audit.model.run_result import EntryResult, RunReport
from presence_audit.reports.annotations import (
    FAILED_SUMMARY,
    PASSED_SUMMARY,
    format_annotation,
    render_console,
    write_annotations,
)


def _diag(message: str, path: str | None = "websites/E/Example/metadata.json", line: int | None = None) -> Diagnostic:
    return Diagnostic(
        presence="Example",
        message=message,
        kind=DiagnosticKind.POLICY,
        location=Location(Path(path), line) if path is not None else None,
    )


class TestFormatAnnotation:
    def test_file_and_line(self) -> None:
        out = format_annotation(_diag("Version has not been bumped", line=4))
        assert out == (
            "::error file=websites/E/Example/metadata.json,line=4::"
            "Version has not been bumped"
        )

    def test_sentinel_line_zero_is_file_only(self) -> None:
        out = format_annotation(_diag("'version' is a required property", line=0))
        assert out == (
            "::error file=websites/E/Example/metadata.json::"
            "'version' is a required property"
        )

    def test_no_location(self) -> None:
        assert format_annotation(_diag("oops", path=None)) == "::error::oops"

    def test_escaping(self) -> None:
        out = format_annotation(_diag("100% bad\nreally", path="a,b:c.json", line=1))
        assert out == "::error file=a%2Cb%3Ac.json,line=1::100%25 bad%0Areally"

    def test_paths_relative_to_root(self, tmp_path: Path) -> None:
        target = tmp_path / "websites" / "E" / "Example" / "iframe.ts"
        out = format_annotation(_diag("x", path=str(target)), root=tmp_path)
        assert out == "::error file=websites/E/Example/iframe.ts::x"


def test_write_annotations_failed_run() -> None:
    report = RunReport.from_entries(
        [EntryResult("Example", (_diag("a", line=2), _diag("b")))]
    )
    buf = io.StringIO()
    write_annotations(report, buf)
    lines = buf.getvalue().splitlines()
    assert len(lines) == 3
    assert lines[-1] == f"::error::{FAILED_SUMMARY}"


def test_write_annotations_passed_run() -> None:
    buf = io.StringIO()
    write_annotations(RunReport.from_entries([EntryResult("Example")]), buf)
    assert buf.getvalue() == PASSED_SUMMARY + "\n"


def test_render_console_lists_each_diagnostic() -> None:
    console = Console(file=io.StringIO(), width=200, color_system=None)
    report = RunReport.from_entries(
        [EntryResult("Example", (_diag("Language xx is not supported", line=7),))]
    )
    render_console(report, console)
    text = console.file.getvalue()  # type: ignore[attr-defined]
    assert FAILED_SUMMARY in text
    assert "Language xx is not supported" in text
    assert "metadata.json:7" in text


def test_render_console_success() -> None:
    console = Console(file=io.StringIO(), width=200, color_system=None)
    render_console(RunReport(), console)
    assert PASSED_SUMMARY in console.file.getvalue()  # type: ignore[attr-defined]
