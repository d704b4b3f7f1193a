"""Centralized exit-code contract for all CLI commands.

Code  Meaning
----  -------
  0   Success — every presence validated
  1   Violation — at least one diagnostic was recorded (or a lookup missed)
  2   Error — usage error, git failure, registry or schema source unreachable
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    VIOLATION = 1
    ERROR = 2
