# smartslots/services/slots/__init__.py
"""
Availability engine.

Time-zone utility → busy collector + daily window → slot generator,
driven over the rolling horizon by the orchestrator.
"""

from .config import AvailabilityConfig, get_availability_config
from .domain import (
    BookingPolicy,
    BusyInterval,
    DaySchedule,
    InvalidSlotRequest,
    Slot,
    SlotRequest,
    SpecificStaff,
    WholeBusiness,
    parse_staff_selector,
)
from .availability import (
    compute_availability,
    get_availability,
    group_slots_by_day,
    load_availability_inputs,
)
from .generator import generate_day_slots
from .store import AvailabilityStore, SqlAvailabilityStore
from .redis_store import ScheduleRedisStore
from .invalidator import invalidate_schedule_cache

__all__ = [
    "AvailabilityConfig",
    "get_availability_config",
    "BookingPolicy",
    "BusyInterval",
    "DaySchedule",
    "InvalidSlotRequest",
    "Slot",
    "SlotRequest",
    "SpecificStaff",
    "WholeBusiness",
    "parse_staff_selector",
    "compute_availability",
    "get_availability",
    "group_slots_by_day",
    "load_availability_inputs",
    "generate_day_slots",
    "AvailabilityStore",
    "SqlAvailabilityStore",
    "ScheduleRedisStore",
    "invalidate_schedule_cache",
]
