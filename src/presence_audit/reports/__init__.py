"""Reports — render a RunReport for CI or humans."""

from presence_audit.reports.annotations import (
    format_annotation,
    render_console,
    write_annotations,
)

__all__ = ["format_annotation", "render_console", "write_annotations"]
