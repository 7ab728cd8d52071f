# smartslots/services/slots/invalidator.py
"""
Cache invalidation for weekly schedules.

Triggers:
✓ Schedule row created/updated → drop the business's cached week

Does NOT trigger:
✗ Appointment created/cancelled (read fresh on every request)
✗ Time block created/deleted (read fresh on every request)
"""

import logging

from redis import Redis
from redis.exceptions import RedisError

from .redis_store import ScheduleRedisStore

logger = logging.getLogger(__name__)


def invalidate_schedule_cache(
    redis: Redis | None,
    business_id: str,
) -> int:
    """
    Invalidate the cached week for a business.

    A failed delete leaves the entry to expire with its TTL.

    Returns:
        Number of deleted cache keys (0 without Redis or on failure).
    """
    if redis is None:
        return 0

    store = ScheduleRedisStore(redis)
    try:
        return store.delete_schedules(business_id)
    except RedisError as e:
        logger.error(f"Failed to invalidate schedule cache for business {business_id}: {e}")
        return 0
