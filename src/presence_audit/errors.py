"""Exception hierarchy.

Per-entry validation failures are never raised; they are recorded as
diagnostics.  Only conditions that invalidate the whole run surface here.
"""

from __future__ import annotations


class PresenceAuditError(Exception):
    """Base class for all presence_audit errors."""


class JsonAstError(PresenceAuditError, ValueError):
    """Raised when a document cannot be turned into a JSON syntax tree."""


class RegistryError(PresenceAuditError):
    """Raised when the remote registry or schema source is unavailable."""


class ChangeDetectionError(PresenceAuditError):
    """Raised when the set of changed presences cannot be determined."""
