from datetime import time, timedelta
from uuid import UUID

import pytest

from smartslots.services.slots.availability import (
    compute_availability,
    compute_lead_start,
    get_availability,
    group_slots_by_day,
    horizon_dates,
    load_availability_inputs,
)
from smartslots.services.slots.domain import (
    AppointmentRow,
    AvailabilityInputs,
    BookingPolicy,
    BusyInterval,
    DaySchedule,
    InvalidSlotRequest,
    SlotRequest,
    SpecificStaff,
    WholeBusiness,
)
from smartslots.services.slots.timezones import local_date_key, resolve_zone, to_local

from .conftest import BUSINESS_ID, NY, STAFF_ID, FakeStore, utc

# Monday 2026-10-19 10:00 in New York
MONDAY_10AM = utc(2026, 10, 19, 14, 0)


def _request(**kwargs) -> SlotRequest:
    params = dict(
        business_id=BUSINESS_ID,
        staff=SpecificStaff(UUID(STAFF_ID)),
        service_duration_min=60,
        time_zone=NY,
    )
    params.update(kwargs)
    return SlotRequest(**params)


def _hhmm(instant, zone=NY) -> str:
    local = to_local(instant, zone)
    return f"{local.hour:02d}:{local.minute:02d}"


def _by_day(slots, zone=NY) -> dict[str, list]:
    return {bucket.date: bucket.slots for bucket in group_slots_by_day(slots, zone)}


def test_horizon_is_31_local_days():
    dates = horizon_dates(MONDAY_10AM, resolve_zone(NY), 31)

    assert dates[0].isoformat() == "2026-10-19"
    assert dates[-1].isoformat() == "2026-11-18"
    assert len(dates) == 31


def test_lead_start_is_local_midnight_lead_days_ahead():
    zone = resolve_zone(NY)

    assert compute_lead_start(MONDAY_10AM, 2, zone) == utc(2026, 10, 21, 4, 0)
    assert compute_lead_start(MONDAY_10AM, 0, zone) == MONDAY_10AM


def test_lead_days_skip_monday_and_tuesday():
    inputs = AvailabilityInputs(policy=BookingPolicy(booking_lead_days=2))

    slots = compute_availability(_request(service_duration_min=30), inputs, MONDAY_10AM)
    days = _by_day(slots)

    assert min(s.starts_at for s in slots) == utc(2026, 10, 21, 13, 0)
    assert all(s.starts_at >= utc(2026, 10, 21, 4, 0) for s in slots)
    assert "2026-10-19" not in days
    assert "2026-10-20" not in days
    assert list(days)[0] == "2026-10-21"
    assert list(days)[-1] == "2026-11-18"
    assert len(days) == 29


def test_no_lead_drops_past_slots_of_today():
    now = MONDAY_10AM + timedelta(minutes=7)

    slots = compute_availability(_request(service_duration_min=30), AvailabilityInputs(), now)

    assert slots[0].starts_at == utc(2026, 10, 19, 14, 15)
    assert _hhmm(slots[0].starts_at) == "10:15"


def test_monday_scenario_through_orchestrator():
    sunday_noon = utc(2026, 10, 18, 16, 0)
    inputs = AvailabilityInputs(
        schedules=(DaySchedule(weekday=1, start_time=time(9, 0), end_time=time(17, 0)),),
        busy=(BusyInterval(utc(2026, 10, 19, 14, 0), utc(2026, 10, 19, 15, 0)),),
    )

    slots = compute_availability(_request(), inputs, sunday_noon)
    monday = _by_day(slots)["2026-10-19"]
    times = [_hhmm(s.starts_at) for s in monday]

    assert times[0] == "09:00"
    assert times[1] == "11:00"
    assert times[-1] == "16:00"
    assert len(monday) == 22


def test_closed_weekday_never_appears():
    inputs = AvailabilityInputs(schedules=(DaySchedule(weekday=0, is_closed=True),))

    slots = compute_availability(_request(), inputs, MONDAY_10AM)

    assert slots
    assert all(to_local(s.starts_at, NY).weekday != 0 for s in slots)


def test_busy_before_window_still_blocks_buffered_slot():
    # ends 08:55 local; a 10 minute pre-buffer makes 09:00 collide
    inputs = AvailabilityInputs(
        busy=(BusyInterval(utc(2026, 10, 20, 12, 0), utc(2026, 10, 20, 12, 55)),),
    )

    slots = compute_availability(_request(buffer_before_min=10), inputs, MONDAY_10AM)
    tuesday = _by_day(slots)["2026-10-20"]

    assert _hhmm(tuesday[0].starts_at) == "09:15"


def test_no_double_booking_with_buffers():
    busy = (
        BusyInterval(utc(2026, 10, 20, 15, 0), utc(2026, 10, 20, 16, 30)),
        BusyInterval(utc(2026, 10, 21, 13, 0), utc(2026, 10, 21, 13, 0)),
        BusyInterval(utc(2026, 10, 22, 20, 0), utc(2026, 10, 23, 14, 0)),
    )
    request = _request(buffer_before_min=10, buffer_after_min=20)

    slots = compute_availability(request, AvailabilityInputs(busy=busy), MONDAY_10AM)

    for slot in slots:
        footprint = (slot.starts_at - timedelta(minutes=10), slot.ends_at + timedelta(minutes=20))
        assert not any(b.overlaps(*footprint) for b in busy)


def test_spring_forward_window_is_deterministic():
    # Sunday 2026-03-08 00:00 EST; 02:00–03:00 does not exist that night
    now = utc(2026, 3, 8, 5, 0)
    inputs = AvailabilityInputs(schedules=(
        DaySchedule(weekday=0, start_time=time(1, 0), end_time=time(5, 0), granularity_min=30),
    ))

    slots = compute_availability(_request(), inputs, now)
    sunday = _by_day(slots)["2026-03-08"]

    assert [_hhmm(s.starts_at) for s in sunday] == ["01:00", "01:30", "03:00", "03:30", "04:00"]
    assert all(s.ends_at - s.starts_at == timedelta(minutes=60) for s in sunday)
    assert compute_availability(_request(), inputs, now) == slots


def test_output_is_day_then_start_ascending_and_idempotent():
    inputs = AvailabilityInputs(
        busy=(BusyInterval(utc(2026, 10, 20, 15, 0), utc(2026, 10, 20, 16, 0)),),
    )

    first = compute_availability(_request(), inputs, MONDAY_10AM)
    second = compute_availability(_request(), inputs, MONDAY_10AM)

    assert first == second
    assert [s.starts_at for s in first] == sorted(s.starts_at for s in first)


def test_recommended_subset_per_day():
    slots = compute_availability(_request(), AvailabilityInputs(), MONDAY_10AM)

    for bucket in group_slots_by_day(slots, NY):
        recommended = bucket.recommended
        others = [s for s in bucket.slots if not s.recommended]
        assert set(recommended) <= set(bucket.slots)
        if recommended and others:
            assert min(s.score for s in recommended) >= max(s.score for s in others)


def test_whole_business_label_is_used_as_staff_id():
    request = _request(staff=WholeBusiness("fallback-main"))

    slots = compute_availability(request, AvailabilityInputs(), MONDAY_10AM)

    assert {s.staff_id for s in slots} == {"fallback-main"}


def test_unknown_zone_computes_in_utc():
    request = _request(time_zone="Nowhere/Special")

    slots = compute_availability(request, AvailabilityInputs(), MONDAY_10AM)

    # 14:00Z "now" is past 09:00 UTC; tomorrow opens at 09:00Z
    tomorrow = _by_day(slots, "UTC")["2026-10-20"]
    assert tomorrow[0].starts_at == utc(2026, 10, 20, 9, 0)


def test_invalid_duration_is_rejected():
    with pytest.raises(InvalidSlotRequest):
        compute_availability(_request(service_duration_min=0), AvailabilityInputs(), MONDAY_10AM)


def test_group_slots_by_day_uses_business_zone():
    slots = compute_availability(_request(), AvailabilityInputs(), MONDAY_10AM)

    for key, items in _by_day(slots).items():
        assert all(local_date_key(s.starts_at, NY) == key for s in items)


@pytest.mark.asyncio
async def test_get_availability_reads_store_and_computes():
    store = FakeStore(
        policy=BookingPolicy(booking_lead_days=1),
        schedules=[DaySchedule(weekday=2, is_closed=True)],
        appointments=[
            AppointmentRow(
                starts_at=utc(2026, 10, 21, 13, 0),
                ends_at=utc(2026, 10, 21, 14, 0),
                staff_id=STAFF_ID,
                status="paid",
            ),
        ],
    )

    slots = await get_availability(store, _request(), now=MONDAY_10AM)
    days = _by_day(slots)

    # lead 1 → from Tuesday, but Tuesday (weekday 2) is closed
    assert "2026-10-19" not in days
    assert "2026-10-20" not in days
    assert _hhmm(days["2026-10-21"][0].starts_at) == "10:00"
    called = {call[0] for call in store.calls}
    assert called == {"get_policy", "list_schedules", "list_appointments", "list_time_blocks"}


@pytest.mark.asyncio
async def test_load_inputs_requests_padded_horizon():
    store = FakeStore()

    await load_availability_inputs(store, _request(buffer_before_min=15, buffer_after_min=30), MONDAY_10AM)

    call = next(c for c in store.calls if c[0] == "list_appointments")
    _, business_id, range_start, range_end, staff_id = call
    assert business_id == BUSINESS_ID
    assert staff_id == STAFF_ID
    assert range_start == utc(2026, 10, 19, 4, 0) - timedelta(minutes=15)
    # local midnight of 2026-11-19 is EST (-5)
    assert range_end == utc(2026, 11, 19, 5, 0) + timedelta(minutes=30)


@pytest.mark.asyncio
async def test_invalid_request_fails_before_any_read():
    store = FakeStore()

    with pytest.raises(InvalidSlotRequest):
        await get_availability(store, _request(service_duration_min=-1), now=MONDAY_10AM)

    assert store.calls == []


@pytest.mark.asyncio
async def test_store_errors_propagate():
    class BrokenStore(FakeStore):
        def list_schedules(self, business_id):
            raise ConnectionError("store unavailable")

    with pytest.raises(ConnectionError):
        await get_availability(BrokenStore(), _request(), now=MONDAY_10AM)
