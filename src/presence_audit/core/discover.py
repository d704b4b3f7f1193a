"""Presence discovery — resolve presence folders and detect changed presences."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path, PurePosixPath
from typing import Iterable

from presence_audit.errors import ChangeDetectionError

_logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
IFRAME_FILE = "iframe.ts"

# Bucket directory for presence names that do not start with a letter.
_NON_ALPHA_BUCKET = "#"


def bucket_for(name: str) -> str:
    """Return the single-character directory a presence is filed under."""
    first = name[:1]
    return first.upper() if first.isalpha() else _NON_ALPHA_BUCKET


def presence_folder(presences_root: Path, name: str) -> Path:
    """Resolve the folder of presence *name* under *presences_root*.

    The canonical location is ``<root>/<bucket>/<name>``; if that does not
    exist, any ``<root>/*/<name>`` directory is accepted.  When neither
    exists the canonical path is returned so callers report it as missing.
    """
    canonical = presences_root / bucket_for(name) / name
    if canonical.is_dir():
        return canonical
    for candidate in sorted(presences_root.glob(f"*/{name}")):
        if candidate.is_dir():
            return candidate
    return canonical


def presences_from_paths(
    paths: Iterable[str], *, presences_dir: str = "websites"
) -> list[str]:
    """Map changed repository paths to presence names.

    Only files below ``<presences_dir>/<bucket>/<name>/`` count.  Names are
    unique and keep first-seen order.
    """
    seen: dict[str, None] = {}
    for raw in paths:
        parts = PurePosixPath(raw.strip()).parts
        if len(parts) < 4 or parts[0] != presences_dir:
            continue
        seen.setdefault(parts[2], None)
    return list(seen)


def changed_presences(
    root: Path, base_ref: str, *, presences_dir: str = "websites"
) -> list[str]:
    """List presences touched between *base_ref* and ``HEAD``.

    Deleted files are ignored, and so are presences whose folder no longer
    exists in the working tree.
    """
    try:
        result = subprocess.run(
            [
                "git",
                "diff",
                "--name-only",
                "--diff-filter=d",
                f"{base_ref}...HEAD",
                "--",
                presences_dir,
            ],
            capture_output=True,
            text=True,
            check=True,
            cwd=root,
        )
    except FileNotFoundError as exc:
        raise ChangeDetectionError("git executable not found") from exc
    except subprocess.CalledProcessError as exc:
        raise ChangeDetectionError(
            f"git diff against {base_ref!r} failed: {exc.stderr.strip()}"
        ) from exc

    names = presences_from_paths(
        result.stdout.splitlines(), presences_dir=presences_dir
    )
    presences_root = root / presences_dir
    existing = [n for n in names if presence_folder(presences_root, n).is_dir()]
    _logger.debug(
        "git diff %s...HEAD: %d changed presence(s), %d still present",
        base_ref,
        len(names),
        len(existing),
    )
    return existing
