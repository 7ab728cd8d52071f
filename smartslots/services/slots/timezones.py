# smartslots/services/slots/timezones.py
"""
Time-zone interval utility.

Converts between business wall-clock time and absolute instants.

Rules:
  - Instants are aware UTC datetimes; all interval math happens on them.
  - Local days are calendar days in the business zone (23h / 24h / 25h).
  - Spring-forward gap: a missing wall time resolves to the first valid
    instant after the gap (the transition itself, e.g. 02:30 → 03:00).
  - Fall-back overlap: an ambiguous wall time resolves to its first
    occurrence (fold=0).
  - Unknown zone name → UTC, logged as degraded mode.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .domain import LocalWallTime

logger = logging.getLogger(__name__)

UTC = timezone.utc


def resolve_zone(name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to UTC."""
    if not name:
        logger.warning("Empty time zone, falling back to UTC")
        return ZoneInfo("UTC")
    # tzdata directory names ("America") and overlong names raise OSError
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning(f"Unknown time zone {name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def ensure_instant(value: datetime | str) -> datetime:
    """
    Normalize a store value to an aware UTC instant.

    Naive datetimes are taken as UTC (SQLite drops offsets).
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_local(instant: datetime, time_zone: str | ZoneInfo) -> LocalWallTime:
    """Render an instant in the zone's civil calendar."""
    return LocalWallTime.from_datetime(_local_datetime(instant, time_zone))


def to_instant(local: LocalWallTime, time_zone: str | ZoneInfo) -> datetime:
    """Resolve a civil time in a zone to an absolute instant."""
    return resolve_wall_time(local.to_naive(), time_zone)


def resolve_wall_time(naive: datetime, time_zone: str | ZoneInfo) -> datetime:
    """Resolve a naive wall-clock datetime (seconds kept) to an instant."""
    zone = _zone(time_zone)

    first = naive.replace(tzinfo=zone, fold=0).astimezone(UTC)
    if first.astimezone(zone).replace(tzinfo=None) == naive:
        return first

    # Wall time falls in a gap: fold=1 maps it before the transition,
    # fold=0 after. The transition lies between them.
    return _transition_between(
        naive.replace(tzinfo=zone, fold=1).astimezone(UTC),
        first,
        zone,
    )


def start_of_local_day(instant: datetime, time_zone: str | ZoneInfo) -> datetime:
    """Instant of local 00:00 on the calendar day containing instant."""
    local = to_local(instant, time_zone)
    return to_instant(LocalWallTime(local.year, local.month, local.day), time_zone)


def add_local_days(instant: datetime, n: int, time_zone: str | ZoneInfo) -> datetime:
    """Add n calendar days in local civil time (keeps the wall clock)."""
    return resolve_wall_time(wall_clock(instant, time_zone) + timedelta(days=n), time_zone)


def local_date_key(instant: datetime, time_zone: str | ZoneInfo) -> str:
    """"YYYY-MM-DD" of the local calendar day containing instant."""
    return to_local(instant, time_zone).date().isoformat()


def combine_local(day: date, clock: time, time_zone: str | ZoneInfo) -> datetime:
    """Instant of wall-clock `clock` on local calendar `day`."""
    return to_instant(LocalWallTime.at(day, clock), time_zone)


def wall_clock(instant: datetime, time_zone: str | ZoneInfo) -> datetime:
    """Naive local datetime of an instant, seconds included."""
    return _local_datetime(instant, time_zone).replace(tzinfo=None)


# ── Helpers ──────────────────────────────────────────────────────────────


def _zone(time_zone: str | ZoneInfo) -> ZoneInfo:
    if isinstance(time_zone, ZoneInfo):
        return time_zone
    return resolve_zone(time_zone)


def _local_datetime(instant: datetime, time_zone: str | ZoneInfo) -> datetime:
    return ensure_instant(instant).astimezone(_zone(time_zone))


def _transition_between(low: datetime, high: datetime, zone: ZoneInfo) -> datetime:
    """
    First instant in (low, high] whose UTC offset differs from low's.

    Bisects on whole seconds; gaps are at most a few hours.
    """
    low = low.replace(microsecond=0)
    before = low.astimezone(zone).utcoffset()
    lo, hi = 0, int((high - low).total_seconds())
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if (low + timedelta(seconds=mid)).astimezone(zone).utcoffset() == before:
            lo = mid
        else:
            hi = mid
    return low + timedelta(seconds=hi)
