"""Audit configuration dataclass."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_API_URL = "https://api.premid.app/v3"
DEFAULT_SCHEMA_URL = "https://schemas.premid.app/metadata/1.10"

# Environment overrides: variable name → (field, converter)
_ENV_OVERRIDES: dict[str, tuple[str, Any]] = {
    "PRESENCE_AUDIT_API_URL": ("api_url", str),
    "PRESENCE_AUDIT_SCHEMA_URL": ("schema_url", str),
    "PRESENCE_AUDIT_HTTP_TIMEOUT": ("http_timeout", float),
}

_PATH_FIELDS = frozenset({"root", "schema_file"})


@dataclass(frozen=True)
class AuditConfig:
    """Immutable validator configuration.

    Precedence, lowest first: defaults, YAML file, environment, CLI flags.
    """

    root: Path = field(default_factory=lambda: Path("."))
    presences_dir: str = "websites"
    api_url: str = DEFAULT_API_URL
    schema_url: str = DEFAULT_SCHEMA_URL
    schema_file: Path | None = None
    initial_version: str = "1.0.0"
    http_timeout: float = 30.0
    language_project: str = "presence"

    @property
    def presences_root(self) -> Path:
        return self.root / self.presences_dir

    def merged(self, overrides: Mapping[str, Any]) -> "AuditConfig":
        """Return a copy with every non-``None`` known key of *overrides* applied."""
        names = {f.name for f in dataclasses.fields(self)}
        changes: dict[str, Any] = {}
        for k, v in overrides.items():
            if k not in names or v is None:
                continue
            changes[k] = Path(v) if k in _PATH_FIELDS else v
        return dataclasses.replace(self, **changes)

    def with_env(self, environ: Mapping[str, str] | None = None) -> "AuditConfig":
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for var, (name, convert) in _ENV_OVERRIDES.items():
            raw = env.get(var, "").strip()
            if not raw:
                continue
            try:
                overrides[name] = convert(raw)
            except ValueError:
                raise ValueError(f"{var}: cannot interpret {raw!r}") from None
        return self.merged(overrides)

    @classmethod
    def from_yaml(cls, path: Path) -> "AuditConfig":
        """Load configuration from a YAML file; unknown keys are ignored."""
        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"{path}: invalid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return cls().merged(data)
