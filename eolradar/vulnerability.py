"""Vulnerability lookups against the security advisory feed.

Unlike the end-of-life check, every advisory is evaluated: a version is
usually covered by several independent advisories at once.
"""

import sys
from collections.abc import Mapping

from .exceptions import UnsupportedPlatformError
from .schemas import VulnerabilityRecord
from .versions import parse_version, satisfies

PLATFORMS: tuple[str, ...] = (
    "aix",
    "darwin",
    "freebsd",
    "linux",
    "openbsd",
    "sunos",
    "win32",
    "android",
)

# sys.platform prefixes → platform names used by the advisory feed
_SYS_PLATFORM_PREFIXES = {
    "aix": "aix",
    "darwin": "darwin",
    "freebsd": "freebsd",
    "linux": "linux",
    "openbsd": "openbsd",
    "sunos": "sunos",
    "win32": "win32",
    "cygwin": "win32",
    "android": "android",
}


def current_platform() -> str:
    """Map ``sys.platform`` onto the feed's platform vocabulary."""
    for prefix, name in _SYS_PLATFORM_PREFIXES.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def check_platform(platform: str) -> str:
    """Validate a platform identifier.

    Raises:
        UnsupportedPlatformError: ``platform`` is not a known platform.
    """
    if platform not in PLATFORMS:
        raise UnsupportedPlatformError(
            f"Unsupported platform {platform!r}; expected one of: {', '.join(PLATFORMS)}"
        )
    return platform


def applies_to(record: VulnerabilityRecord, version, platform: str) -> bool:
    """Whether one advisory covers a parsed version on a platform."""
    if not satisfies(version, record.vulnerable):
        return False
    if satisfies(version, record.patched):
        return False
    if record.affected_environments:
        return platform in record.affected_environments
    return True


def list_vulnerabilities(
    version: str,
    platform: str,
    database: Mapping[str, VulnerabilityRecord],
) -> list[VulnerabilityRecord]:
    """List advisories that affect ``version`` on ``platform``.

    An advisory applies when the version is inside its ``vulnerable``
    range, outside its ``patched`` range, and (if the advisory names
    affected environments) the platform is one of them.

    Args:
        version: Version string, with or without a leading ``v``.
        platform: Platform identifier (e.g. ``linux``, ``win32``).
        database: Validated vulnerability mapping.

    Returns:
        Matching records in database order.

    Raises:
        InvalidVersionError: ``version`` cannot be parsed.
    """
    parsed = parse_version(version)
    return [record for record in database.values() if applies_to(record, parsed, platform)]


def is_vulnerable(
    version: str,
    platform: str,
    database: Mapping[str, VulnerabilityRecord],
) -> bool:
    return bool(list_vulnerabilities(version, platform, database))
