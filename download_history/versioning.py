"""
Version identifier ordering.

Identifiers are dotted numeric sequences with an optional pre-release
suffix (``1.2.3-beta``). Ordering rules:

1. numeric components left to right, missing trailing components are zero;
2. on a numeric tie, an identifier without a suffix sorts after one with a suffix;
3. two suffixes compare lexicographically.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, List, Optional, Tuple

_BASE_SPLIT = re.compile(r"[-+]")


def split_version(identifier: str) -> Tuple[List[int], Optional[str]]:
    """Split an identifier into numeric components and its pre-release suffix."""
    base = _BASE_SPLIT.split(identifier, maxsplit=1)[0]
    parts = []
    for part in base.split("."):
        match = re.match(r"\d+", part)
        parts.append(int(match.group()) if match else 0)

    suffix = None
    if "-" in identifier:
        suffix = identifier.split("-", 2)[1]
    return parts, suffix


def compare_versions(a: str, b: str) -> int:
    """Return a negative, zero or positive number as a sorts before, with or after b."""
    a_parts, a_suffix = split_version(a)
    b_parts, b_suffix = split_version(b)

    width = max(len(a_parts), len(b_parts))
    a_parts += [0] * (width - len(a_parts))
    b_parts += [0] * (width - len(b_parts))
    for a_val, b_val in zip(a_parts, b_parts):
        if a_val != b_val:
            return a_val - b_val

    if a_suffix is None and b_suffix is None:
        return 0
    if a_suffix is None:
        return 1
    if b_suffix is None:
        return -1
    return (a_suffix > b_suffix) - (a_suffix < b_suffix)


version_key = functools.cmp_to_key(compare_versions)


def sort_versions(identifiers: Iterable[str], reverse: bool = False) -> List[str]:
    """Sort identifiers oldest-first (or newest-first with ``reverse``)."""
    return sorted(identifiers, key=version_key, reverse=reverse)
