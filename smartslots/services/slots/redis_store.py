# smartslots/services/slots/redis_store.py
"""
Redis cache for weekly schedule rows.

Key format: schedule:week:{business_id}
Value: JSON list of rows
       [{"weekday": 1, "start_time": "09:00", "end_time": "17:00",
         "is_closed": false, "granularity_min": 15}, ...]
Empty list is a valid cached value ("no rows, use defaults").

Slots themselves are never cached: they depend on "now" and on bookings.
"""

import json
import logging
from datetime import time

from redis import Redis
from redis.exceptions import RedisError

from .domain import DaySchedule

logger = logging.getLogger(__name__)


class ScheduleRedisStore:
    """Redis storage wrapper for weekly schedule rows."""

    KEY_PREFIX = "schedule:week"

    def __init__(self, redis: Redis, ttl_seconds: int = 3600):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, business_id: str) -> str:
        return f"{self.KEY_PREFIX}:{business_id}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_schedules(self, business_id: str, rows: list[DaySchedule]) -> None:
        payload = json.dumps([_row_to_dict(row) for row in rows])
        try:
            self.redis.setex(self._key(business_id), self.ttl_seconds, payload)
        except RedisError as e:
            logger.warning(f"Failed to cache schedule for business {business_id}: {e}")

    # ── Read ─────────────────────────────────────────────────────────────

    def get_schedules(self, business_id: str) -> list[DaySchedule] | None:
        """
        Get cached rows.

        Returns:
            List of DaySchedule, or None on cache miss / cache failure.
        """
        try:
            raw = self.redis.get(self._key(business_id))
        except RedisError as e:
            logger.warning(f"Schedule cache read failed for business {business_id}: {e}")
            return None

        if raw is None:
            return None

        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return [_row_from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Corrupt schedule cache for business {business_id}: {e}")
            return None

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_schedules(self, business_id: str) -> int:
        """Returns number of deleted keys."""
        return self.redis.delete(self._key(business_id))


def _row_to_dict(row: DaySchedule) -> dict:
    return {
        "weekday": row.weekday,
        "start_time": row.start_time.strftime("%H:%M:%S"),
        "end_time": row.end_time.strftime("%H:%M:%S"),
        "is_closed": row.is_closed,
        "granularity_min": row.granularity_min,
    }


def _row_from_dict(item: dict) -> DaySchedule:
    return DaySchedule(
        weekday=int(item["weekday"]),
        start_time=time.fromisoformat(item["start_time"]),
        end_time=time.fromisoformat(item["end_time"]),
        is_closed=bool(item["is_closed"]),
        granularity_min=int(item["granularity_min"]),
    )
