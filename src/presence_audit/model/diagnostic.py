"""Diagnostic — one recorded validation failure."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from . import DiagnosticKind


@dataclass(frozen=True, slots=True)
class Location:
    """File (and, when derivable, line) a diagnostic points at.

    ``line`` of ``None`` or ``0`` means file-only context.
    """

    path: Path
    line: int | None = None

    @property
    def has_line(self) -> bool:
        return bool(self.line)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    presence: str
    message: str
    kind: DiagnosticKind
    location: Location | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "presence": self.presence,
            "message": self.message,
            "kind": self.kind.value,
        }
        if self.location is not None:
            d["file"] = self.location.path.as_posix()
            if self.location.has_line:
                d["line"] = self.location.line
        return d
