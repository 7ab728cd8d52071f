from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from smartslots.models.tables import Base
from smartslots.services.slots.domain import BookingPolicy, BusinessRecord

NY = "America/New_York"
BUSINESS_ID = "5b0a5d8e-4f7a-4c2e-9c65-2f1b0c7e9a11"
STAFF_ID = "0f4c2a9e-6d1b-4e8a-9b3c-7a5d2e1f0c44"
OTHER_STAFF_ID = "9d8e7f6a-5b4c-4d3e-8f2a-1b0c9d8e7f6a"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeStore:
    """In-memory AvailabilityStore; rows are returned unfiltered."""

    def __init__(
        self,
        business: BusinessRecord | None = None,
        policy: BookingPolicy | None = None,
        schedules=(),
        appointments=(),
        blocks=(),
    ):
        self.business = business or BusinessRecord(id=BUSINESS_ID, timezone=NY)
        self.policy = policy or BookingPolicy()
        self.schedules = list(schedules)
        self.appointments = list(appointments)
        self.blocks = list(blocks)
        self.calls: list[tuple] = []

    def get_business(self, business_id):
        self.calls.append(("get_business", business_id))
        return self.business if self.business.id == business_id else None

    def get_policy(self, business_id):
        self.calls.append(("get_policy", business_id))
        return self.policy

    def list_schedules(self, business_id):
        self.calls.append(("list_schedules", business_id))
        return list(self.schedules)

    def list_time_blocks(self, business_id):
        self.calls.append(("list_time_blocks", business_id))
        return list(self.blocks)

    def list_appointments(self, business_id, range_start, range_end, staff_id=None):
        self.calls.append(("list_appointments", business_id, range_start, range_end, staff_id))
        return list(self.appointments)


class FakeRedis:
    def __init__(self):
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value.encode() if isinstance(value, str) else value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'smartslots.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autoflush=False, bind=engine)
    yield factory
    engine.dispose()
