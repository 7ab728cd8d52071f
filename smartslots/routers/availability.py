# smartslots/routers/availability.py
"""
Availability API endpoints.

POST /availability      - Flat slot list over the rolling horizon
GET  /availability/days - Same slots grouped by local calendar day
"""

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import settings
from ..database import SessionLocal
from ..redis_client import redis_client
from ..schemas.availability import (
    AvailabilityDay,
    AvailabilityDaysResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    SlotRead,
)
from ..services.slots import (
    AvailabilityStore,
    InvalidSlotRequest,
    Slot,
    SlotRequest,
    SqlAvailabilityStore,
    get_availability,
    group_slots_by_day,
    parse_staff_selector,
)
from ..services.slots.timezones import resolve_zone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


def get_availability_store() -> AvailabilityStore:
    """Store dependency; 500 when the database is not configured."""
    if not settings.database_url:
        raise HTTPException(status_code=500, detail="DATABASE_URL is not configured")
    return SqlAvailabilityStore(
        SessionLocal,
        redis=redis_client,
        cache_ttl_seconds=settings.schedule_cache_ttl_seconds,
    )


def get_now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("", response_model=AvailabilityResponse)
async def post_availability(
    data: AvailabilityRequest,
    store: AvailabilityStore = Depends(get_availability_store),
    now: datetime = Depends(get_now),
):
    """Bookable slots for the next 31 local days."""
    request = await _build_slot_request(
        store,
        data.business_id,
        data.staff_id,
        data.service_duration_min,
        data.buffer_before_min,
        data.buffer_after_min,
    )
    slots = await _compute(store, request, now)

    return AvailabilityResponse(
        business_id=request.business_id,
        time_zone=request.time_zone,
        slots=[_slot_read(slot) for slot in slots],
    )


@router.get("/days", response_model=AvailabilityDaysResponse)
async def get_availability_days(
    business_id: str,
    service_duration_min: int = Query(..., gt=0),
    staff_id: str = "",
    buffer_before_min: int = Query(0, ge=0),
    buffer_after_min: int = Query(0, ge=0),
    store: AvailabilityStore = Depends(get_availability_store),
    now: datetime = Depends(get_now),
):
    """Bookable slots grouped by the business's local calendar day."""
    request = await _build_slot_request(
        store,
        business_id,
        staff_id,
        service_duration_min,
        buffer_before_min,
        buffer_after_min,
    )
    slots = await _compute(store, request, now)

    days = [
        AvailabilityDay(
            date=bucket.date,
            slots=[_slot_read(slot) for slot in bucket.slots],
            recommended=[_slot_read(slot) for slot in bucket.recommended],
        )
        for bucket in group_slots_by_day(slots, request.time_zone)
    ]

    return AvailabilityDaysResponse(
        business_id=request.business_id,
        time_zone=request.time_zone,
        days=days,
    )


# ── Helpers ──────────────────────────────────────────────────────────────


async def _build_slot_request(
    store: AvailabilityStore,
    business_id: str,
    staff_id: str,
    service_duration_min: int,
    buffer_before_min: int,
    buffer_after_min: int,
) -> SlotRequest:
    business = await asyncio.to_thread(store.get_business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    try:
        request = SlotRequest(
            business_id=business.id,
            staff=parse_staff_selector(staff_id, business.id),
            service_duration_min=service_duration_min,
            time_zone=resolve_zone(business.timezone).key,
            buffer_before_min=buffer_before_min,
            buffer_after_min=buffer_after_min,
        )
        request.validate()
    except InvalidSlotRequest as e:
        raise HTTPException(status_code=400, detail=str(e))

    return request


async def _compute(store: AvailabilityStore, request: SlotRequest, now: datetime) -> list[Slot]:
    try:
        return await get_availability(store, request, now=now)
    except InvalidSlotRequest as e:
        raise HTTPException(status_code=400, detail=str(e))


def _slot_read(slot: Slot) -> SlotRead:
    return SlotRead(
        staff_id=slot.staff_id,
        starts_at=slot.starts_at,
        ends_at=slot.ends_at,
        score=slot.score,
        recommended=slot.recommended,
    )
