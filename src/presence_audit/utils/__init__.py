"""Shared utilities for presence_audit."""

from presence_audit.utils.exit_codes import ExitCode
from presence_audit.utils.json_norm import stable_json_dump, stable_json_dumps
from presence_audit.utils.semver import SemVer, compare_versions, parse_semver

__all__ = [
    "ExitCode",
    "stable_json_dump",
    "stable_json_dumps",
    "SemVer",
    "compare_versions",
    "parse_semver",
]
