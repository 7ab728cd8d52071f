# smartslots/services/slots/config.py
"""
Availability engine configuration.
"""

from dataclasses import dataclass, field
from datetime import time
from functools import lru_cache


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" or "HH:MM:SS" to minutes since midnight."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def parse_time_str(value: str) -> time:
    """Parse a schedule time string ("HH:MM" / "HH:MM:SS") into datetime.time."""
    total = time_str_to_minutes(value)
    return time(total // 60, total % 60)


@dataclass(frozen=True)
class AvailabilityConfig:
    """
    Configuration for the availability engine.

    Attributes:
        horizon_days: Number of local calendar days offered (today included)
        default_start: Opening time when a weekday has no schedule row
        default_end: Closing time when a weekday has no schedule row
        default_granularity_min: Step between candidate start times
        recommended_per_day: How many top-ranked slots per day are recommended
        peak_windows: Local (start, end) "HH:MM" windows that earn a peak bonus
        adjacency_decay_min: Gap (minutes) after which adjacency earns nothing
        busy_weight: Score for touching a busy interval, per side
        edge_weight: Score for touching the working window edge, per side
        peak_weight: Score for starting inside a peak window
    """
    horizon_days: int = 31
    default_start: str = "09:00"
    default_end: str = "18:00"
    default_granularity_min: int = 15
    recommended_per_day: int = 8
    peak_windows: tuple[tuple[str, str], ...] = field(
        default=(("10:00", "13:00"), ("16:00", "19:00"))
    )
    adjacency_decay_min: int = 60
    busy_weight: float = 40.0
    edge_weight: float = 15.0
    peak_weight: float = 20.0

    def __post_init__(self):
        """Validate configuration."""
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be positive, got {self.horizon_days}")
        if self.default_granularity_min <= 0:
            raise ValueError(
                f"default_granularity_min must be positive, got {self.default_granularity_min}"
            )
        if self.recommended_per_day < 0:
            raise ValueError(
                f"recommended_per_day must be >= 0, got {self.recommended_per_day}"
            )
        if self.adjacency_decay_min <= 0:
            raise ValueError(
                f"adjacency_decay_min must be positive, got {self.adjacency_decay_min}"
            )
        if time_str_to_minutes(self.default_end) <= time_str_to_minutes(self.default_start):
            raise ValueError("default_end must be after default_start")
        for start, end in self.peak_windows:
            if time_str_to_minutes(end) <= time_str_to_minutes(start):
                raise ValueError(f"Invalid peak window {start}-{end}")

    @property
    def peak_minutes(self) -> list[tuple[int, int]]:
        """Peak windows as (start_min, end_min) pairs."""
        return [
            (time_str_to_minutes(start), time_str_to_minutes(end))
            for start, end in self.peak_windows
        ]

    def is_peak(self, hour: int, minute: int) -> bool:
        """True when local HH:MM falls inside a peak window."""
        total = hour * 60 + minute
        return any(start <= total < end for start, end in self.peak_minutes)


@lru_cache
def get_availability_config() -> AvailabilityConfig:
    """
    Get availability configuration (singleton).

    In the future, this can read per-business overrides from the database.
    """
    return AvailabilityConfig()
