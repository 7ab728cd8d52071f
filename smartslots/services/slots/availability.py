# smartslots/services/slots/availability.py
"""
Availability orchestration over the rolling horizon.

Flow:
  1. Fan out the store reads (policy, weekly schedule, appointments,
     time blocks) and wait for all of them
  2. lead_start = start of local day (now + lead_days), or now when 0
  3. For each local day in [today, today + horizon_days):
       - skip days before lead_start's local day
       - resolve the working window (closed / invalid → skip)
       - keep busy intervals touching the buffer-padded window
       - generate and score slots
  4. Drop slots starting before lead_start

Per-day computation is pure and independent; no cross-day state.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from .busy import fetch_busy_intervals
from .config import AvailabilityConfig, get_availability_config
from .domain import (
    AvailabilityInputs,
    BusyInterval,
    DaySchedule,
    Slot,
    SlotRequest,
)
from .generator import generate_day_slots
from .timezones import (
    add_local_days,
    combine_local,
    ensure_instant,
    local_date_key,
    resolve_zone,
    start_of_local_day,
    to_local,
)
from .windows import resolve_day_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayBucket:
    """Slots of one local calendar day (booking UI day picker)."""
    date: str
    slots: list[Slot]

    @property
    def recommended(self) -> list[Slot]:
        return [slot for slot in self.slots if slot.recommended]


async def get_availability(
    store,
    request: SlotRequest,
    now: Optional[datetime] = None,
    config: AvailabilityConfig | None = None,
) -> list[Slot]:
    """Load inputs from the store and compute availability."""
    request.validate()
    now = ensure_instant(now) if now is not None else datetime.now(timezone.utc)
    config = config or get_availability_config()

    inputs = await load_availability_inputs(store, request, now, config)
    return compute_availability(request, inputs, now, config)


async def load_availability_inputs(
    store,
    request: SlotRequest,
    now: datetime,
    config: AvailabilityConfig | None = None,
) -> AvailabilityInputs:
    """
    Read everything one computation needs, concurrently.

    Store errors propagate; nothing partial is returned.
    """
    config = config or get_availability_config()
    zone = resolve_zone(request.time_zone)
    range_start, range_end = busy_range(request, now, zone, config)

    policy, schedules, busy = await asyncio.gather(
        asyncio.to_thread(store.get_policy, request.business_id),
        asyncio.to_thread(store.list_schedules, request.business_id),
        fetch_busy_intervals(
            store,
            request.business_id,
            request.staff,
            range_start,
            range_end,
        ),
    )

    return AvailabilityInputs(
        policy=policy,
        schedules=tuple(schedules),
        busy=tuple(busy),
    )


def compute_availability(
    request: SlotRequest,
    inputs: AvailabilityInputs,
    now: datetime,
    config: AvailabilityConfig | None = None,
) -> list[Slot]:
    """
    Bookable slots over the horizon, day-ascending then start-ascending.

    Pure: same request, inputs and now → same list.

    Raises:
        InvalidSlotRequest: structurally invalid request.
    """
    request.validate()
    config = config or get_availability_config()
    now = ensure_instant(now)
    zone = resolve_zone(request.time_zone)

    lead_start = compute_lead_start(now, inputs.policy.booking_lead_days, zone)
    first_bookable_day = start_of_local_day(lead_start, zone)

    slots: list[Slot] = []
    for day in horizon_dates(now, zone, config.horizon_days):
        if combine_local(day, time(0, 0), zone) < first_bookable_day:
            continue
        slots.extend(compute_day_slots(
            day, request, inputs.schedules, inputs.busy, zone, config
        ))

    result = [slot for slot in slots if slot.starts_at >= lead_start]
    logger.info(
        f"Availability for business={request.business_id} staff={request.staff.label}: "
        f"{len(result)} slots, lead_start={lead_start.isoformat()}"
    )
    return result


def compute_day_slots(
    day: date,
    request: SlotRequest,
    schedules: Iterable[DaySchedule],
    busy: Iterable[BusyInterval],
    zone: ZoneInfo,
    config: AvailabilityConfig,
) -> list[Slot]:
    """Slots for one local calendar day (empty when closed)."""
    window = resolve_day_window(day, schedules, zone, config)
    if window is None:
        return []

    padded_start = window.day_start - request.buffer_before
    padded_end = window.day_end + request.buffer_after
    day_busy = [b for b in busy if b.touches(padded_start, padded_end)]

    return generate_day_slots(
        staff_id=request.staff.label,
        work_start=window.day_start,
        work_end=window.day_end,
        service_duration_min=request.service_duration_min,
        granularity_min=window.granularity_min,
        busy=day_busy,
        buffer_before_min=request.buffer_before_min,
        buffer_after_min=request.buffer_after_min,
        time_zone=zone,
        config=config,
    )


def compute_lead_start(now: datetime, lead_days: int, zone: ZoneInfo) -> datetime:
    """Earliest bookable instant under the lead-time policy."""
    if lead_days > 0:
        return start_of_local_day(add_local_days(now, lead_days, zone), zone)
    return now


def horizon_dates(now: datetime, zone: ZoneInfo, horizon_days: int) -> list[date]:
    """Local calendar dates [today, today + horizon_days)."""
    today = to_local(now, zone).date()
    return [today + timedelta(days=offset) for offset in range(horizon_days)]


def busy_range(
    request: SlotRequest,
    now: datetime,
    zone: ZoneInfo,
    config: AvailabilityConfig,
) -> tuple[datetime, datetime]:
    """Absolute range whose busy intervals can affect the horizon."""
    today_start = start_of_local_day(now, zone)
    horizon_end = add_local_days(today_start, config.horizon_days, zone)
    return (
        today_start - request.buffer_before,
        horizon_end + request.buffer_after,
    )


def group_slots_by_day(slots: Iterable[Slot], time_zone: str | ZoneInfo) -> list[DayBucket]:
    """Bucket slots by local calendar day, preserving order."""
    zone = time_zone if isinstance(time_zone, ZoneInfo) else resolve_zone(time_zone)
    buckets: dict[str, list[Slot]] = {}
    for slot in slots:
        buckets.setdefault(local_date_key(slot.starts_at, zone), []).append(slot)
    return [DayBucket(date=key, slots=items) for key, items in buckets.items()]
