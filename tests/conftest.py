"""Shared fixtures: a throwaway presences tree, a schema, a fake registry."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from presence_audit.contracts.load import LatestSchema
from presence_audit.core.runner import ValidationContext
from presence_audit.errors import RegistryError
from presence_audit.registry.client import StorePresence

SCHEMA_URL = "https://schemas.premid.app/metadata/1.10"
OLD_SCHEMA_URL = "https://schemas.premid.app/metadata/1.9"

METADATA_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": SCHEMA_URL,
    "type": "object",
    "required": ["$schema", "service", "version", "description"],
    "properties": {
        "$schema": {"type": "string"},
        "service": {"type": "string"},
        "version": {"type": "string"},
        "description": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
        "tags": {"type": "array", "items": {"type": "string"}},
        "iframe": {"type": "boolean"},
    },
    "additionalProperties": False,
}


class FakeRegistry:
    """Stands in for ``RegistryClient``; records which services were queried."""

    def __init__(
        self,
        published: dict[str, str] | None = None,
        languages: list[str] | None = None,
        *,
        fail: bool = False,
    ) -> None:
        self.published = published or {}
        self._languages = languages if languages is not None else ["en", "de", "fr"]
        self.fail = fail
        self.queried: list[str] = []

    def find_store_presence(self, service: str) -> StorePresence | None:
        self.queried.append(service)
        if self.fail:
            raise RegistryError("connection refused")
        version = self.published.get(service)
        return StorePresence(service, version) if version is not None else None

    def languages(self, project: str = "presence") -> list[str]:
        if self.fail:
            raise RegistryError("connection refused")
        return list(self._languages)

    def get_json(self, url: str) -> Any:
        if self.fail:
            raise RegistryError("connection refused")
        return METADATA_SCHEMA

    def __enter__(self) -> "FakeRegistry":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        pass


def base_metadata(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "$schema": SCHEMA_URL,
        "service": "Example",
        "version": "1.0.0",
        "description": {"en": "An example presence"},
    }
    data.update(overrides)
    return data


def line_of(text: str, needle: str) -> int:
    """1-based line of the first line containing *needle*."""
    for i, line in enumerate(text.splitlines(), start=1):
        if needle in line:
            return i
    raise AssertionError(f"{needle!r} not in document")


class PresenceTree:
    """Builds ``websites/<bucket>/<name>/`` folders under a temp root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.presences_root = root / "websites"
        self.presences_root.mkdir(parents=True, exist_ok=True)

    def folder(self, name: str) -> Path:
        bucket = name[0].upper() if name[0].isalpha() else "#"
        path = self.presences_root / bucket / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def write(self, name: str, metadata: dict[str, Any] | str) -> str:
        text = metadata if isinstance(metadata, str) else json.dumps(metadata, indent=2)
        (self.folder(name) / "metadata.json").write_text(text, encoding="utf-8")
        return text

    def add_iframe(self, name: str) -> Path:
        path = self.folder(name) / "iframe.ts"
        path.write_text("// iframe\n", encoding="utf-8")
        return path


@pytest.fixture
def tree(tmp_path: Path) -> PresenceTree:
    return PresenceTree(tmp_path)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def context(tree: PresenceTree, registry: FakeRegistry) -> ValidationContext:
    return ValidationContext(
        schema=LatestSchema(url=SCHEMA_URL, schema=METADATA_SCHEMA),
        languages=frozenset(registry.languages()),
        registry=registry,  # type: ignore[arg-type]
        presences_root=tree.presences_root,
    )
