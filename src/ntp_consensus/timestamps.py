"""RFC 3339 timestamp formatting using IANA tzdata."""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def corrected_now(offset_ns: int, now: datetime | None = None) -> datetime:
    """Apply a clock offset to the local clock.

    Args:
        offset_ns: Offset in nanoseconds (server - local)
        now: Local time to correct; defaults to the current UTC time

    Returns:
        Timezone-aware corrected datetime
    """
    base = now if now is not None else datetime.now(UTC)
    # timedelta resolution is one microsecond
    return base + timedelta(microseconds=offset_ns / 1000)


def format_timestamp(dt: datetime, tz_name: str | None = None) -> str:
    """Format a datetime as RFC 3339 at second precision.

    Args:
        dt: Timezone-aware datetime (naive values are taken as UTC)
        tz_name: Optional IANA timezone to render in; UTC otherwise

    Returns:
        String such as ``2024-01-15T12:30:45Z`` or ``2024-01-15T07:30:45-05:00``
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    local_dt = dt.astimezone(ZoneInfo(tz_name) if tz_name else UTC)
    local_dt = local_dt.replace(microsecond=0)

    offset = local_dt.utcoffset()
    if not offset:
        return local_dt.strftime("%Y-%m-%dT%H:%M:%SZ")

    # %z gives +HHMM; RFC 3339 wants +HH:MM
    text = local_dt.strftime(RFC3339_FORMAT)
    return f"{text[:-2]}:{text[-2:]}"


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp produced by ``format_timestamp``.

    Raises:
        ValueError: If the string has no zone designator or is malformed
    """
    dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        raise ValueError(f"timestamp has no timezone: {text}")
    return dt
