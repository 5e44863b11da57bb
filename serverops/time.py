"""
Timestamp helpers shared by errors, logging and the startup banner.

Timestamps are rendered in a fixed human-readable layout, for example
``10/17/2026, 02:30:05 PM``, in the local timezone unless an IANA zone name is
given.
"""

import datetime
from zoneinfo import ZoneInfo

TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


def now(time_zone: str | None = None) -> datetime.datetime:
    """
    Get the current time as an aware datetime.

    Args:
        time_zone: IANA zone name (e.g. "America/New_York"). None means the
            local timezone of the host.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the zone name is unknown
    """
    if time_zone is None or time_zone == "local":
        return datetime.datetime.now().astimezone()
    return datetime.datetime.now(ZoneInfo(time_zone))


def timestamp(time_zone: str | None = None) -> str:
    """
    Format the current time for log lines.

    Args:
        time_zone: IANA zone name, or None for local time

    Returns:
        str: Timestamp such as ``10/17/2026, 02:30:05 PM``
    """
    return now(time_zone).strftime(TIMESTAMP_FORMAT)
