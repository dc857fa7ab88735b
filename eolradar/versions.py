"""Version normalization and range matching.

Keys in both feeds are npm-style ranges (``v18``, ``18.x``,
``>=10.0.0 <10.5.2``, ``^14.17.0 || ^16.4.0``); matching uses
``semantic_version.NpmSpec``.  No I/O: all inputs are in-memory mappings.
"""

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import TypeVar

from semantic_version import NpmSpec, Version

from .exceptions import InvalidVersionError

R = TypeVar("R")

# node-semver allows whitespace between an operator and its version (">= 1.2.3")
_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|~>?|\^)\s+")


def normalize_version(version: str) -> str:
    """Normalize a version string for comparison.

    Strips whitespace, lowercases, and drops leading ``v``s so that
    ``"V20.1.0"``, ``"v20.1.0"`` and ``"20.1.0"`` compare equal.
    Idempotent.
    """
    return (version or "").strip().lower().lstrip("v")


def parse_version(version: str) -> Version:
    """Parse a version string (leading ``v`` allowed).

    Raises:
        InvalidVersionError: the string is not a full semantic version.
    """
    try:
        return Version(normalize_version(version))
    except ValueError as e:
        raise InvalidVersionError(f"Invalid version: {version!r}") from e


def compact_range(range_expr: str) -> str:
    """Rewrite node-semver range spellings that ``NpmSpec`` rejects.

    ``">= 17.0.0"`` becomes ``">=17.0.0"`` and ``"~>1.2"`` becomes
    ``"~1.2"``.  An empty range becomes ``"*"``.
    """
    expr = _OPERATOR_GAP.sub(r"\1", (range_expr or "").strip())
    return expr.replace("~>", "~") or "*"


@lru_cache(maxsize=1024)
def _spec(range_expr: str) -> NpmSpec | None:
    expr = compact_range(range_expr)
    for candidate in (expr, normalize_version(expr)):
        try:
            return NpmSpec(candidate)
        except ValueError:
            continue
    return None


def is_valid_range(range_expr: str) -> bool:
    return _spec(range_expr) is not None


def satisfies(version: Version | str, range_expr: str) -> bool:
    """Whether ``version`` falls inside an npm range expression.

    An empty range matches everything; a range that cannot be parsed
    matches nothing.

    Raises:
        InvalidVersionError: ``version`` is a string that cannot be parsed.
    """
    if not isinstance(version, Version):
        version = parse_version(version)
    spec = _spec(range_expr)
    return spec is not None and spec.match(version)


def resolve(mapping: Mapping[str, R], query: str) -> R | None:
    """Find the record that applies to ``query``.

    An exact key match (after normalization of both sides) wins.
    Otherwise entries are tried in mapping order and the first key that
    the query satisfies as a range is returned. Ranges may overlap and
    no attempt is made to pick the most specific one.

    Args:
        mapping: Range key to record, in insertion order.
        query: Version to look up, with or without a leading ``v``.

    Returns:
        The matching record, or ``None``.
    """
    normalized = normalize_version(query)
    for key, record in mapping.items():
        if normalize_version(key) == normalized:
            return record

    try:
        version = Version(normalized)
    except ValueError:
        return None

    for key, record in mapping.items():
        if satisfies(version, key):
            return record
    return None
