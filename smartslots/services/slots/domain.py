# smartslots/services/slots/domain.py
"""
Value types for availability computation.

All of them are built fresh per request from collaborator rows and are
never persisted. Instants are timezone-aware UTC datetimes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from uuid import UUID


# Statuses that provisionally or definitely occupy the calendar.
OCCUPYING_STATUSES = frozenset({
    "pending_confirmation",
    "confirmed",
    "awaiting_payment",
    "paid",
})

WHOLE_BUSINESS_PREFIXES = ("fallback-", "business-")


class InvalidSlotRequest(ValueError):
    """Structurally invalid availability input (4xx for the API layer)."""


@dataclass(frozen=True)
class LocalWallTime:
    """Civil (wall-clock) time in some named zone."""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0

    @classmethod
    def from_datetime(cls, value: datetime) -> "LocalWallTime":
        return cls(value.year, value.month, value.day, value.hour, value.minute)

    @classmethod
    def at(cls, day: date, clock: time) -> "LocalWallTime":
        return cls(day.year, day.month, day.day, clock.hour, clock.minute)

    def to_naive(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    def date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def weekday(self) -> int:
        """0 = Sunday ... 6 = Saturday."""
        return (self.date().weekday() + 1) % 7


@dataclass(frozen=True)
class BusyInterval:
    """Half-open [starts_at, ends_at) occupancy. Zero width is allowed."""
    starts_at: datetime
    ends_at: datetime

    def __post_init__(self):
        if self.ends_at < self.starts_at:
            raise ValueError(
                f"BusyInterval ends before it starts: {self.starts_at} > {self.ends_at}"
            )

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.ends_at and end > self.starts_at

    def touches(self, start: datetime, end: datetime) -> bool:
        """Closed-range intersection, used for day filtering."""
        return self.starts_at <= end and self.ends_at >= start


@dataclass(frozen=True)
class DaySchedule:
    """
    Weekly recurring schedule row.

    Attributes:
        weekday: 0 = Sunday ... 6 = Saturday
        start_time: Local opening time
        end_time: Local closing time
        is_closed: Whole weekday closed
        granularity_min: Step between candidate start times
    """
    weekday: int
    start_time: time = time(9, 0)
    end_time: time = time(18, 0)
    is_closed: bool = False
    granularity_min: int = 15

    def __post_init__(self):
        if not 0 <= self.weekday <= 6:
            raise ValueError(f"weekday must be 0..6, got {self.weekday}")

    @classmethod
    def default(cls, weekday: int) -> "DaySchedule":
        return cls(weekday=weekday)


@dataclass(frozen=True)
class SpecificStaff:
    staff_id: UUID

    @property
    def label(self) -> str:
        return str(self.staff_id)


@dataclass(frozen=True)
class WholeBusiness:
    """No specific provider: every business booking consumes the calendar."""
    label: str


StaffSelector = Union[SpecificStaff, WholeBusiness]


def parse_staff_selector(value: Union[str, UUID], business_id: Optional[str] = None) -> StaffSelector:
    """
    Resolve a raw staff id into a StaffSelector.

    Accepts a UUID, or a sentinel prefixed with "fallback-" / "business-".
    An empty value means whole-business availability.
    """
    if isinstance(value, UUID):
        return SpecificStaff(value)

    raw = (value or "").strip()
    if not raw:
        return WholeBusiness(f"business-{business_id}" if business_id else "business")
    if raw.startswith(WHOLE_BUSINESS_PREFIXES):
        return WholeBusiness(raw)

    try:
        return SpecificStaff(UUID(raw))
    except ValueError:
        raise InvalidSlotRequest(f"Malformed staff id: {raw!r}") from None


@dataclass(frozen=True)
class SlotRequest:
    business_id: str
    staff: StaffSelector
    service_duration_min: int
    time_zone: str = "UTC"
    buffer_before_min: int = 0
    buffer_after_min: int = 0

    def validate(self) -> None:
        """Fail fast on structurally invalid values."""
        if not self.business_id:
            raise InvalidSlotRequest("business_id is required")
        if self.service_duration_min is None or self.service_duration_min <= 0:
            raise InvalidSlotRequest(
                f"service_duration_min must be positive, got {self.service_duration_min}"
            )
        if self.buffer_before_min < 0 or self.buffer_after_min < 0:
            raise InvalidSlotRequest("Buffers must be >= 0")

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.service_duration_min)

    @property
    def buffer_before(self) -> timedelta:
        return timedelta(minutes=self.buffer_before_min)

    @property
    def buffer_after(self) -> timedelta:
        return timedelta(minutes=self.buffer_after_min)


@dataclass(frozen=True)
class BookingPolicy:
    booking_lead_days: int = 0

    def __post_init__(self):
        if self.booking_lead_days < 0:
            raise ValueError(f"booking_lead_days must be >= 0, got {self.booking_lead_days}")


@dataclass(frozen=True)
class BusinessRecord:
    id: str
    timezone: Optional[str] = None


@dataclass(frozen=True)
class AppointmentRow:
    starts_at: datetime
    ends_at: Optional[datetime] = None
    staff_id: Optional[str] = None
    status: str = "confirmed"


@dataclass(frozen=True)
class TimeBlockRow:
    starts_at: datetime
    ends_at: Optional[datetime] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class Slot:
    staff_id: str
    starts_at: datetime
    ends_at: datetime
    score: float
    recommended: bool = False

    @property
    def key(self) -> tuple[str, datetime]:
        return self.staff_id, self.starts_at


@dataclass(frozen=True)
class AvailabilityInputs:
    """Everything one computation reads from the store."""
    policy: BookingPolicy = field(default_factory=BookingPolicy)
    schedules: tuple[DaySchedule, ...] = ()
    busy: tuple[BusyInterval, ...] = ()
