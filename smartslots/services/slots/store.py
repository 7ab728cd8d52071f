# smartslots/services/slots/store.py
"""
Collaborator store: the reads the availability engine needs.

Each read opens its own session so the orchestrator can run them
concurrently in worker threads (asyncio.to_thread).
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional, Protocol

from redis import Redis
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from .config import parse_time_str
from .domain import (
    OCCUPYING_STATUSES,
    AppointmentRow,
    BookingPolicy,
    BusinessRecord,
    DaySchedule,
    TimeBlockRow,
)
from .redis_store import ScheduleRedisStore
from .timezones import ensure_instant

logger = logging.getLogger(__name__)


class AvailabilityStore(Protocol):
    def get_business(self, business_id: str) -> Optional[BusinessRecord]: ...

    def get_policy(self, business_id: str) -> BookingPolicy: ...

    def list_schedules(self, business_id: str) -> list[DaySchedule]: ...

    def list_time_blocks(self, business_id: str) -> list[TimeBlockRow]: ...

    def list_appointments(
        self,
        business_id: str,
        range_start: datetime,
        range_end: datetime,
        staff_id: Optional[str] = None,
    ) -> list[AppointmentRow]: ...


class SqlAvailabilityStore:
    """AvailabilityStore over the SQLAlchemy models, with optional schedule cache."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        redis: Redis | None = None,
        cache_ttl_seconds: int = 3600,
    ):
        self.session_factory = session_factory
        self.cache = ScheduleRedisStore(redis, cache_ttl_seconds) if redis is not None else None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def get_business(self, business_id: str) -> Optional[BusinessRecord]:
        from ...models.tables import Businesses

        with self._session() as db:
            row = db.get(Businesses, business_id)
            if not row:
                return None
            return BusinessRecord(id=row.id, timezone=row.timezone)

    def get_policy(self, business_id: str) -> BookingPolicy:
        """Policy row, or the zero-lead default when absent."""
        from ...models.tables import BusinessPolicies

        with self._session() as db:
            row = db.get(BusinessPolicies, business_id)
            if not row or row.booking_lead_days is None:
                return BookingPolicy()
            return BookingPolicy(booking_lead_days=max(0, row.booking_lead_days))

    def list_schedules(self, business_id: str) -> list[DaySchedule]:
        """Weekly rows, served from Redis when cached."""
        if self.cache is not None:
            cached = self.cache.get_schedules(business_id)
            if cached is not None:
                return cached

        rows = self._load_schedules(business_id)

        if self.cache is not None:
            self.cache.store_schedules(business_id, rows)
        return rows

    def list_time_blocks(self, business_id: str) -> list[TimeBlockRow]:
        from ...models.tables import BusinessTimeBlocks

        with self._session() as db:
            rows = (
                db.query(BusinessTimeBlocks)
                .filter(BusinessTimeBlocks.business_id == business_id)
                .order_by(BusinessTimeBlocks.starts_at)
                .all()
            )
            return [
                TimeBlockRow(
                    starts_at=ensure_instant(row.starts_at),
                    ends_at=ensure_instant(row.ends_at) if row.ends_at else None,
                    reason=row.reason,
                )
                for row in rows
            ]

    def list_appointments(
        self,
        business_id: str,
        range_start: datetime,
        range_end: datetime,
        staff_id: Optional[str] = None,
    ) -> list[AppointmentRow]:
        """Occupying appointments overlapping [range_start, range_end]."""
        from ...models.tables import Appointments

        range_start = ensure_instant(range_start)
        range_end = ensure_instant(range_end)

        with self._session() as db:
            query = db.query(Appointments).filter(
                Appointments.business_id == business_id,
                Appointments.status.in_(sorted(OCCUPYING_STATUSES)),
                Appointments.starts_at <= range_end,
                or_(
                    Appointments.ends_at >= range_start,
                    and_(
                        Appointments.ends_at.is_(None),
                        Appointments.starts_at >= range_start,
                    ),
                ),
            )
            if staff_id is not None:
                # case-insensitive, like the in-memory staff check
                query = query.filter(func.lower(Appointments.staff_id) == staff_id.lower())

            return [
                AppointmentRow(
                    starts_at=ensure_instant(row.starts_at),
                    ends_at=ensure_instant(row.ends_at) if row.ends_at else None,
                    staff_id=row.staff_id,
                    status=row.status,
                )
                for row in query.order_by(Appointments.starts_at).all()
            ]

    # ── Helpers ──────────────────────────────────────────────────────────

    def _load_schedules(self, business_id: str) -> list[DaySchedule]:
        from ...models.tables import BusinessSchedules

        with self._session() as db:
            rows = (
                db.query(BusinessSchedules)
                .filter(BusinessSchedules.business_id == business_id)
                .order_by(BusinessSchedules.weekday)
                .all()
            )
            return [schedule_from_row(row) for row in rows]


def schedule_from_row(row) -> DaySchedule:
    """Convert a business_schedules row into a DaySchedule."""
    return DaySchedule(
        weekday=row.weekday,
        start_time=parse_time_str(row.start_time),
        end_time=parse_time_str(row.end_time),
        is_closed=bool(row.is_closed),
        granularity_min=row.slot_granularity_min,
    )
