"""Semantic Versioning 2.0.0 parsing and precedence.

Only what the version-bump gate needs: parse a version string and order two
of them.  Build metadata is parsed but never affects precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += "-" + ".".join(self.prerelease)
        if self.build:
            s += "+" + ".".join(self.build)
        return s


def parse_semver(version: str) -> SemVer | None:
    """Parse *version*; return ``None`` when it is not valid SemVer.

    A leading ``v`` and surrounding whitespace are tolerated.
    """
    m = _SEMVER_RE.match(version.strip())
    if not m:
        return None
    pre = m.group("pre")
    build = m.group("build")
    return SemVer(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=tuple(pre.split(".")) if pre else (),
        build=tuple(build.split(".")) if build else (),
    )


def _cmp(a: int | str, b: int | str) -> int:
    return (a > b) - (a < b)


def _compare_identifier(a: str, b: str) -> int:
    # Numeric identifiers always have lower precedence than alphanumeric ones.
    a_num, b_num = a.isdigit(), b.isdigit()
    if a_num and b_num:
        return _cmp(int(a), int(b))
    if a_num:
        return -1
    if b_num:
        return 1
    return _cmp(a, b)


def _compare_prerelease(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    if not a and not b:
        return 0
    # A release outranks any of its pre-releases.
    if not a:
        return 1
    if not b:
        return -1
    for x, y in zip(a, b):
        c = _compare_identifier(x, y)
        if c:
            return c
    return _cmp(len(a), len(b))


def compare_versions(a: str | SemVer, b: str | SemVer) -> int:
    """Return -1, 0 or 1 as *a* orders before, equal to, or after *b*.

    Raises
    ------
    ValueError
        If either side is not a valid semantic version.
    """
    va = a if isinstance(a, SemVer) else parse_semver(a)
    vb = b if isinstance(b, SemVer) else parse_semver(b)
    if va is None:
        raise ValueError(f"invalid semantic version: {a!r}")
    if vb is None:
        raise ValueError(f"invalid semantic version: {b!r}")

    core = _cmp((va.major, va.minor, va.patch), (vb.major, vb.minor, vb.patch))
    if core:
        return core
    return _compare_prerelease(va.prerelease, vb.prerelease)
