# smartslots/services/slots/windows.py
"""
Daily working window resolution.

For a local calendar day: weekday row (or defaults) → absolute
[day_start, day_end] + granularity, or None when the day is closed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from .config import AvailabilityConfig, get_availability_config, parse_time_str
from .domain import DaySchedule
from .timezones import combine_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayWindow:
    day_start: datetime
    day_end: datetime
    granularity_min: int


def sunday_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday (Python's date.weekday() is Monday-based)."""
    return (day.weekday() + 1) % 7


def default_day_schedule(
    weekday: int,
    config: AvailabilityConfig | None = None,
) -> DaySchedule:
    config = config or get_availability_config()
    return DaySchedule(
        weekday=weekday,
        start_time=parse_time_str(config.default_start),
        end_time=parse_time_str(config.default_end),
        is_closed=False,
        granularity_min=config.default_granularity_min,
    )


def find_day_schedule(
    weekday: int,
    schedules: Iterable[DaySchedule],
    config: AvailabilityConfig | None = None,
) -> DaySchedule:
    """Row for weekday, or the default 09:00–18:00 / open / 15 min."""
    for row in schedules:
        if row.weekday == weekday:
            return row
    return default_day_schedule(weekday, config)


def resolve_day_window(
    day: date,
    schedules: Iterable[DaySchedule],
    time_zone: str | ZoneInfo,
    config: AvailabilityConfig | None = None,
) -> Optional[DayWindow]:
    """
    Resolve the open window for a local calendar day.

    Returns:
        DayWindow, or None when closed / zero-length / inverted.
    """
    config = config or get_availability_config()
    schedule = find_day_schedule(sunday_weekday(day), schedules, config)

    if schedule.is_closed:
        return None

    granularity = schedule.granularity_min
    if granularity is None or granularity <= 0:
        logger.warning(
            f"Invalid granularity {granularity!r} for weekday {schedule.weekday}, "
            f"using {config.default_granularity_min}"
        )
        granularity = config.default_granularity_min

    day_start = combine_local(day, schedule.start_time, time_zone)
    day_end = combine_local(day, schedule.end_time, time_zone)

    if day_end <= day_start:
        return None

    return DayWindow(day_start, day_end, granularity)
