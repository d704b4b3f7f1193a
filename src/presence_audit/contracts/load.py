"""Load the latest metadata schema and validate documents against it.

Usage::

    from presence_audit.contracts.load import fetch_latest_schema, schema_issues

    latest = fetch_latest_schema(url, client)
    for issue in schema_issues(metadata, latest.schema):
        print(issue.message, issue.field)
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jsonschema
from jsonschema.exceptions import ValidationError

from presence_audit.errors import RegistryError

if TYPE_CHECKING:
    from presence_audit.registry.client import RegistryClient

_logger = logging.getLogger(__name__)

# (top-level key, optional nested selector)
FieldRef = tuple[str, str | int | None]


@dataclass(frozen=True, slots=True)
class LatestSchema:
    """The schema every entry is validated against, and its identifier.

    ``url`` is what a conforming document must declare in ``$schema``.
    """

    url: str
    schema: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    message: str
    field: FieldRef | None


def _check_schema_document(schema: Any, origin: str) -> dict[str, Any]:
    if not isinstance(schema, dict):
        raise RegistryError(f"{origin}: schema document is not a JSON object")
    validator_cls = jsonschema.validators.validator_for(
        schema, default=jsonschema.Draft202012Validator
    )
    try:
        validator_cls.check_schema(schema)
    except jsonschema.SchemaError as exc:
        raise RegistryError(f"{origin}: invalid JSON Schema: {exc.message}") from exc
    return schema


def fetch_latest_schema(url: str, client: "RegistryClient") -> LatestSchema:
    """Download the schema published at *url*; *url* becomes its identifier."""
    schema = _check_schema_document(client.get_json(url), url)
    _logger.info("Using metadata schema %s", url)
    return LatestSchema(url=url, schema=schema)


def load_schema_file(path: Path, url: str | None = None) -> LatestSchema:
    """Load a local schema copy.

    The identifier is the document's ``$id``, else *url*.
    """
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RegistryError(f"cannot read schema file {path}: {exc}") from exc
    schema = _check_schema_document(schema, str(path))

    ident = schema.get("$id") or url
    if not isinstance(ident, str) or not ident:
        raise ValueError(f"{path}: schema has no $id and no URL was configured")
    _logger.info("Using metadata schema %s (from %s)", ident, path)
    return LatestSchema(url=ident, schema=schema)


# ── validation ──────────────────────────────────────────────────────


def _unexpected_property(error: ValidationError) -> str | None:
    instance = error.instance
    schema = error.schema if isinstance(error.schema, dict) else {}
    if not isinstance(instance, dict):
        return None
    known = schema.get("properties") or {}
    patterns = list((schema.get("patternProperties") or {}).keys())
    for key in instance:
        if key in known:
            continue
        if any(re.search(p, key) for p in patterns):
            continue
        return key
    return None


def _missing_property(error: ValidationError) -> str | None:
    instance = error.instance if isinstance(error.instance, dict) else {}
    for key in error.validator_value or ():
        if key not in instance:
            return key
    return None


def error_field(error: ValidationError) -> FieldRef | None:
    """The (key, selector) an error should be reported against.

    The first element of the error's path is the top-level key and the
    second, if any, the nested selector.  Errors raised on the document
    root are attributed to the property they are about.
    """
    path = list(error.absolute_path)
    if path:
        key = path[0]
        if not isinstance(key, str):
            return None
        return key, (path[1] if len(path) > 1 else None)

    if error.validator == "required":
        missing = _missing_property(error)
    elif error.validator == "additionalProperties":
        missing = _unexpected_property(error)
    else:
        missing = None
    return (missing, None) if missing is not None else None


def schema_issues(instance: Any, schema: dict[str, Any]) -> list[SchemaIssue]:
    """Every way *instance* violates *schema*, in validator order."""
    validator_cls = jsonschema.validators.validator_for(
        schema, default=jsonschema.Draft202012Validator
    )
    validator = validator_cls(schema)
    return [
        SchemaIssue(message=err.message, field=error_field(err))
        for err in validator.iter_errors(instance)
    ]
