# smartslots/services/slots/busy.py
"""
Busy-interval collection.

Merges two independent sources of unavailability into one list:
  - appointments in an occupying status (pending_confirmation, confirmed,
    awaiting_payment, paid); canceled / no-show / completed free the slot
  - manual time blocks (business-wide, never staff-specific)

Overlaps are NOT merged here; the slot generator tests every interval.
"""

import asyncio
import logging
from datetime import datetime
from typing import Iterable

from .domain import (
    OCCUPYING_STATUSES,
    AppointmentRow,
    BusyInterval,
    SpecificStaff,
    StaffSelector,
    TimeBlockRow,
)
from .timezones import ensure_instant

logger = logging.getLogger(__name__)


def collect_busy_intervals(
    appointments: Iterable[AppointmentRow],
    blocks: Iterable[TimeBlockRow],
    staff: StaffSelector,
    range_start: datetime,
    range_end: datetime,
) -> list[BusyInterval]:
    """
    Build the busy set for [range_start, range_end].

    Returns:
        Appointment intervals followed by block intervals.
    """
    busy: list[BusyInterval] = []

    for row in appointments:
        if row.status not in OCCUPYING_STATUSES:
            continue
        if isinstance(staff, SpecificStaff) and not _same_staff(row.staff_id, staff):
            continue
        busy.append(normalize_interval(row.starts_at, row.ends_at))

    for row in blocks:
        busy.append(normalize_interval(row.starts_at, row.ends_at))

    return [item for item in busy if item.touches(range_start, range_end)]


def normalize_interval(starts_at, ends_at) -> BusyInterval:
    """
    Normalize raw start/end values into a BusyInterval.

    Missing end → zero-width occupancy at starts_at.
    End before start → clamped to zero width.
    """
    start = ensure_instant(starts_at)
    end = ensure_instant(ends_at) if ends_at is not None else start
    if end < start:
        logger.warning(f"Busy interval ends before start ({start} > {end}), clamping")
        end = start
    return BusyInterval(start, end)


async def fetch_busy_intervals(
    store,
    business_id: str,
    staff: StaffSelector,
    range_start: datetime,
    range_end: datetime,
) -> list[BusyInterval]:
    """Read appointments and time blocks concurrently, then collect."""
    staff_id = staff.label if isinstance(staff, SpecificStaff) else None

    appointments, blocks = await asyncio.gather(
        asyncio.to_thread(
            store.list_appointments,
            business_id,
            range_start,
            range_end,
            staff_id,
        ),
        asyncio.to_thread(store.list_time_blocks, business_id),
    )

    busy = collect_busy_intervals(appointments, blocks, staff, range_start, range_end)
    logger.debug(
        f"Busy intervals for business={business_id}: "
        f"{len(appointments)} appointments, {len(blocks)} blocks, {len(busy)} in range"
    )
    return busy


def _same_staff(row_staff_id, staff: SpecificStaff) -> bool:
    if row_staff_id is None:
        return False
    return str(row_staff_id).lower() == str(staff.staff_id).lower()
