"""Semantic version values that carry a leading ``v``."""

from __future__ import annotations

import re
from dataclasses import dataclass

_VERSION_RE = re.compile(r"^\s*v?([0-9]+(?:\.[0-9]+)*)(.*)\Z", re.S)
_EXTRA_RE = re.compile(
    r"^(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?\s*\Z"
)


@dataclass(frozen=True)
class Version:
    """A parsed semantic version."""

    components: tuple[int, int, int]
    pre_release: str = ""
    build_metadata: str = ""

    def __str__(self) -> str:
        text = "v" + ".".join(str(c) for c in self.components)
        if self.pre_release:
            text += "-" + self.pre_release
        if self.build_metadata:
            text += "+" + self.build_metadata
        return text


def parse(s: str) -> Version:
    """Parse a semantic version string starting with ``v``.

    Raises ValueError when the string is not a valid version.
    """
    if not s.startswith("v"):
        raise ValueError(f"version string {s!r} not starting with 'v'")
    match = _VERSION_RE.match(s)
    if match is None:
        raise ValueError(f"could not parse {s!r} as version")
    numbers, extra = match.group(1), match.group(2)
    parts = numbers.split(".")
    if len(parts) != 3:
        raise ValueError(f"illegal version string {s!r}")
    for part in parts:
        if len(part) > 1 and part.startswith("0"):
            raise ValueError(f"illegal zero-prefixed version component {part!r} in {s!r}")
    extra_match = _EXTRA_RE.match(extra)
    if extra_match is None:
        raise ValueError(f"could not parse pre-release/metadata ({extra}) in version {s!r}")
    major, minor, patch = (int(p) for p in parts)
    return Version(
        components=(major, minor, patch),
        pre_release=extra_match.group(1) or "",
        build_metadata=extra_match.group(2) or "",
    )


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_identifiers(a: str, b: str) -> int:
    if a == b:
        return 0
    a_num, b_num = a.isdigit() and a.isascii(), b.isdigit() and b.isascii()
    if a_num and b_num:
        return _cmp(int(a), int(b))
    if a_num:
        return -1
    if b_num:
        return 1
    return _cmp(a, b)


def _compare(a: Version, b: Version) -> int:
    for x, y in zip(a.components, b.components):
        if x != y:
            return _cmp(x, y)
    if a.pre_release == b.pre_release:
        return 0
    if not a.pre_release:
        return 1
    if not b.pre_release:
        return -1
    a_ids, b_ids = a.pre_release.split("."), b.pre_release.split(".")
    for x, y in zip(a_ids, b_ids):
        result = _compare_identifiers(x, y)
        if result:
            return result
    return _cmp(len(a_ids), len(b_ids))


def less(a: Version, b: Version) -> bool:
    """Tell whether ``a`` is strictly lower than ``b``; build metadata is ignored."""
    return _compare(a, b) < 0