"""Release-schedule (end-of-life) checks."""

import datetime as dt
from collections.abc import Mapping

from .exceptions import UnresolvedVersionError
from .schemas import ScheduleRecord
from .versions import resolve


def utc_today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def get_version_info(version: str, schedule: Mapping[str, ScheduleRecord]) -> ScheduleRecord | None:
    """Return the schedule record covering ``version``, or ``None``."""
    return resolve(schedule, version)


def is_end_of_life(
    version: str,
    schedule: Mapping[str, ScheduleRecord],
    today: dt.date | None = None,
) -> bool:
    """Check whether a runtime version is past its end-of-life date.

    Args:
        version: Version string, e.g. ``"v20.10.0"`` or ``"18.0.0"``.
        schedule: Validated release-schedule mapping.
        today: Date to evaluate against; defaults to the current UTC date.

    Returns:
        ``True`` if the version's line has an end date strictly before
        ``today``.  A line without an end date is never end-of-life.

    Raises:
        UnresolvedVersionError: no schedule entry covers ``version``.

    Example::

        >>> is_end_of_life("v16.0.0", schedule, today=dt.date(2024, 1, 1))
        True
    """
    info = get_version_info(version, schedule)
    if info is None:
        raise UnresolvedVersionError(f"Could not load version information for {version}")

    if info.end is None:
        return False

    if today is None:
        today = utc_today()
    return today > info.end
