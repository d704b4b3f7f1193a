"""Runner — validates changed presences, collects diagnostics, builds RunReport.

Checks for one presence run in a fixed order.  Once its metadata decodes,
the store record for the presence is fetched before any rule runs.  Structural
and schema failures end that presence's validation because every later rule
assumes a schema-valid document; policy failures are recorded and the
remaining checks still run.  Nothing short-circuits across presences.

``RegistryError`` is not handled here: when the registry is
unreachable the whole run is aborted by the caller, even if every presence
would have failed its schema checks.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable

from presence_audit.contracts.load import (
    LatestSchema,
    fetch_latest_schema,
    load_schema_file,
    schema_issues,
)
from presence_audit.core.discover import IFRAME_FILE, METADATA_FILE, presence_folder
from presence_audit.core.json_ast import ObjectNode, parse_json_object
from presence_audit.core.locator import Selector, locate_node
from presence_audit.errors import JsonAstError, RegistryError
from presence_audit.model import DiagnosticKind
from presence_audit.model.diagnostic import Diagnostic, Location
from presence_audit.model.run_result import EntryResult, RunReport
from presence_audit.utils.semver import compare_versions, parse_semver

if TYPE_CHECKING:
    from presence_audit.core.config import AuditConfig
    from presence_audit.registry.client import RegistryClient, StorePresence

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationContext:
    """Everything fetched once per run and shared by all presences."""

    schema: LatestSchema
    languages: frozenset[str]
    registry: "RegistryClient"
    presences_root: Path
    initial_version: str = "1.0.0"


def prepare_context(config: "AuditConfig", registry: "RegistryClient") -> ValidationContext:
    """Fetch the schema and the language list up front."""
    if config.schema_file is not None:
        schema = load_schema_file(config.schema_file, config.schema_url)
    else:
        schema = fetch_latest_schema(config.schema_url, registry)
    languages = frozenset(registry.languages(config.language_project))
    return ValidationContext(
        schema=schema,
        languages=languages,
        registry=registry,
        presences_root=config.presences_root,
        initial_version=config.initial_version,
    )


# ── per-entry state ─────────────────────────────────────────────────


@dataclass
class _Entry:
    presence: str
    folder: Path
    text: str
    metadata: dict[str, Any]
    published: "StorePresence | None" = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def service(self) -> str:
        service = self.metadata.get("service")
        return service if isinstance(service, str) else self.presence

    @property
    def metadata_path(self) -> Path:
        return self.folder / METADATA_FILE

    @cached_property
    def _tree(self) -> ObjectNode | None:
        try:
            return parse_json_object(self.text)
        except JsonAstError as exc:
            _logger.warning(
                "%s: cannot derive line numbers (%s)", self.metadata_path, exc
            )
            return None

    def line(self, key: str, selector: Selector | None = None) -> int | None:
        tree = self._tree
        if tree is None:
            return None
        return locate_node(tree, key, selector)

    def report(
        self,
        message: str,
        kind: DiagnosticKind,
        *,
        path: Path | None = None,
        line: int | None = None,
    ) -> None:
        self.diagnostics.append(
            Diagnostic(
                presence=self.presence,
                message=message,
                kind=kind,
                location=Location(path or self.metadata_path, line),
            )
        )


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def _load_metadata(presence: str, folder: Path) -> _Entry | Diagnostic:
    path = folder / METADATA_FILE

    def structural(message: str) -> Diagnostic:
        return Diagnostic(
            presence=presence,
            message=message,
            kind=DiagnosticKind.STRUCTURAL,
            location=Location(path),
        )

    if not path.is_file():
        return structural("Presence is missing metadata.json")
    try:
        text = path.read_text(encoding="utf-8")
        metadata = json.loads(text, parse_constant=_reject_constant)
    except (OSError, UnicodeDecodeError, ValueError):
        return structural("Presence metadata.json is not a valid JSON file")
    if not isinstance(metadata, dict):
        return structural("Presence metadata.json must contain a JSON object")
    return _Entry(presence=presence, folder=folder, text=text, metadata=metadata)


# ── gating checks (any diagnostic stops the entry) ──────────────────


def _check_schema(entry: _Entry, ctx: ValidationContext) -> None:
    for issue in schema_issues(entry.metadata, ctx.schema.schema):
        line = entry.line(*issue.field) if issue.field is not None else None
        entry.report(issue.message, DiagnosticKind.SCHEMA, line=line)


def _check_schema_version(entry: _Entry, ctx: ValidationContext) -> None:
    declared = entry.metadata.get("$schema")
    if declared != ctx.schema.url:
        entry.report(
            "Schema version is not up to date - "
            f"expected: {ctx.schema.url}, got: {declared}",
            DiagnosticKind.SCHEMA,
            line=entry.line("$schema"),
        )


# ── policy checks (all run) ─────────────────────────────────────────


def _check_version(entry: _Entry, ctx: ValidationContext) -> None:
    version = str(entry.metadata.get("version", ""))
    line = entry.line("version")
    if parse_semver(version) is None:
        entry.report(
            f"Version {version} is not a valid semantic version",
            DiagnosticKind.POLICY,
            line=line,
        )
        return

    published = entry.published
    if published is None:
        if version != ctx.initial_version:
            entry.report(
                f"Initial version must be {ctx.initial_version}",
                DiagnosticKind.POLICY,
                line=line,
            )
        return

    try:
        bumped = compare_versions(version, published.version) > 0
    except ValueError as exc:
        raise RegistryError(
            f"registry version of {entry.service!r} is unusable: {exc}"
        ) from exc
    if not bumped:
        entry.report("Version has not been bumped", DiagnosticKind.POLICY, line=line)


def _check_iframe(entry: _Entry, ctx: ValidationContext) -> None:
    iframe_path = entry.folder / IFRAME_FILE
    has_file = iframe_path.is_file()
    wants_iframe = bool(entry.metadata.get("iframe"))

    if wants_iframe and not has_file:
        entry.report(
            "Presence is missing iframe.ts", DiagnosticKind.POLICY, path=iframe_path
        )
    if not wants_iframe and has_file:
        entry.report(
            "Presence has iframe.ts but metadata.iframe is set to false",
            DiagnosticKind.POLICY,
            path=iframe_path,
        )


def _check_languages(entry: _Entry, ctx: ValidationContext) -> None:
    description = entry.metadata.get("description")
    if not isinstance(description, dict):
        return
    for lang in description:
        if lang not in ctx.languages:
            entry.report(
                f"Language {lang} is not supported",
                DiagnosticKind.POLICY,
                line=entry.line("description", lang),
            )


_Check = Callable[[_Entry, ValidationContext], None]

GATING_CHECKS: tuple[_Check, ...] = (_check_schema, _check_schema_version)
POLICY_CHECKS: tuple[_Check, ...] = (_check_version, _check_iframe, _check_languages)


# ── public entry points ─────────────────────────────────────────────


def validate_presence(presence: str, ctx: ValidationContext) -> EntryResult:
    """Run every check for *presence* and return its result."""
    folder = presence_folder(ctx.presences_root, presence)
    loaded = _load_metadata(presence, folder)
    if isinstance(loaded, Diagnostic):
        return EntryResult(presence=presence, diagnostics=(loaded,))

    entry = loaded
    entry.published = ctx.registry.find_store_presence(entry.service)
    service = entry.metadata.get("service")
    service = service if isinstance(service, str) else None
    _logger.debug("%s: store record %s", presence, entry.published)

    for check in GATING_CHECKS:
        check(entry, ctx)
        if entry.diagnostics:
            return EntryResult(presence, tuple(entry.diagnostics), service)

    for check in POLICY_CHECKS:
        check(entry, ctx)

    if not entry.diagnostics:
        _logger.info("%s validated successfully", service or presence)
    return EntryResult(presence, tuple(entry.diagnostics), service)


def run_validation(presences: Iterable[str], ctx: ValidationContext) -> RunReport:
    """Validate *presences* one after another, in order.

    Raises
    ------
    RegistryError
        If the registry cannot be queried; the run is aborted.
    """
    entries: list[EntryResult] = []
    for presence in presences:
        _logger.debug("validating %s", presence)
        entries.append(validate_presence(presence, ctx))
    report = RunReport.from_entries(entries)
    _logger.debug(
        "%d presence(s) validated, %d diagnostic(s)",
        len(report.entries),
        len(report.diagnostics),
    )
    return report
