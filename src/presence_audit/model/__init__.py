"""Enums shared across the driver and reporting layers."""

from __future__ import annotations

from enum import Enum


class DiagnosticKind(str, Enum):
    """Failure taxonomy for per-entry diagnostics.

    ``STRUCTURAL`` and ``SCHEMA`` stop the remaining checks of an entry;
    ``POLICY`` diagnostics are recorded and the entry keeps going.
    """

    STRUCTURAL = "structural"
    SCHEMA = "schema"
    POLICY = "policy"
