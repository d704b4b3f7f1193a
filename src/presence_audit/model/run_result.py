"""EntryResult / RunReport — what the validation driver hands the reporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from presence_audit import __version__
from presence_audit.model.diagnostic import Diagnostic


@dataclass(frozen=True, slots=True)
class EntryResult:
    """Outcome of validating a single presence.

    An entry passed iff ``diagnostics`` is empty.
    """

    presence: str
    diagnostics: tuple[Diagnostic, ...] = ()
    service: str | None = None

    @property
    def ok(self) -> bool:
        return not self.diagnostics


@dataclass(slots=True)
class RunReport:
    """All entry results of a run, in validation order."""

    entries: list[EntryResult] = field(default_factory=list)
    tool_version: str = __version__

    @classmethod
    def from_entries(cls, entries: Iterable[EntryResult]) -> "RunReport":
        return cls(entries=list(entries))

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Flattened diagnostics across every entry."""
        return [d for e in self.entries for d in e.diagnostics]

    @property
    def ok(self) -> bool:
        return all(e.ok for e in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool_version": self.tool_version,
            "ok": self.ok,
            "summary": {
                "presences_total": len(self.entries),
                "presences_failed": sum(1 for e in self.entries if not e.ok),
                "diagnostics_total": len(self.diagnostics),
            },
            "presences": [
                {
                    "presence": e.presence,
                    "service": e.service,
                    "ok": e.ok,
                    "diagnostics": [d.to_dict() for d in e.diagnostics],
                }
                for e in self.entries
            ],
        }
