# smartslots/routers/schedules.py
"""
Weekly schedule endpoints.

GET /schedules/{business_id}            - Effective row for each weekday
PUT /schedules/{business_id}/{weekday}  - Upsert one weekday (invalidates cache)
"""

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Businesses as DBBusinesses
from ..models.tables import BusinessSchedules as DBSchedules
from ..redis_client import redis_client
from ..schemas.schedules import DayScheduleRead, DayScheduleUpdate
from ..services.slots import DaySchedule, invalidate_schedule_cache
from ..services.slots.store import schedule_from_row
from ..services.slots.windows import find_day_schedule

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.get("/{business_id}", response_model=list[DayScheduleRead])
def get_week_schedule(business_id: str, db: Session = Depends(get_db)):
    if not db.get(DBBusinesses, business_id):
        raise HTTPException(status_code=404, detail="Business not found")

    stored = [
        schedule_from_row(row)
        for row in db.query(DBSchedules).filter(DBSchedules.business_id == business_id)
    ]
    stored_weekdays = {row.weekday for row in stored}

    week = []
    for weekday in range(7):
        row = find_day_schedule(weekday, stored)
        week.append(_day_read(row, is_default=weekday not in stored_weekdays))
    return week


@router.put("/{business_id}/{weekday}", response_model=DayScheduleRead)
def put_day_schedule(
    data: DayScheduleUpdate,
    business_id: str,
    weekday: int = Path(..., ge=0, le=6),
    db: Session = Depends(get_db),
):
    if not db.get(DBBusinesses, business_id):
        raise HTTPException(status_code=404, detail="Business not found")

    obj = (
        db.query(DBSchedules)
        .filter(
            DBSchedules.business_id == business_id,
            DBSchedules.weekday == weekday,
        )
        .first()
    )
    if obj is None:
        obj = DBSchedules(business_id=business_id, weekday=weekday)
        db.add(obj)

    obj.start_time = data.start_time
    obj.end_time = data.end_time
    obj.is_closed = data.is_closed
    obj.slot_granularity_min = data.slot_granularity_min
    db.commit()
    db.refresh(obj)

    invalidate_schedule_cache(redis_client, business_id)

    return _day_read(schedule_from_row(obj))


def _day_read(row: DaySchedule, is_default: bool = False) -> DayScheduleRead:
    return DayScheduleRead(
        weekday=row.weekday,
        start_time=row.start_time.strftime("%H:%M"),
        end_time=row.end_time.strftime("%H:%M"),
        is_closed=row.is_closed,
        slot_granularity_min=row.granularity_min,
        is_default=is_default,
    )
