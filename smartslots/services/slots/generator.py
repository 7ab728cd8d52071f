# smartslots/services/slots/generator.py
"""
Slot generation for one working window.

Steps:
  1. Candidate anchors: work_start + k * granularity on the local wall
     clock, resolved to instants, while anchor + duration <= work_end
  2. Footprint [anchor - buffer_before, anchor + duration + buffer_after)
     is rejected on any half-open overlap with a busy interval
  3. Survivors become slots [anchor, anchor + duration)
  4. Score, rank by (-score, starts_at), flag the top N as recommended
  5. Return in ascending starts_at

Scoring (tunable, see AvailabilityConfig):
  - per side: touching a busy interval earns busy_weight, decaying
    linearly to 0 over adjacency_decay_min; touching the working window
    edge earns edge_weight with the same decay; the better of the two counts
  - starting inside a local peak window earns peak_weight
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from .config import AvailabilityConfig, get_availability_config
from .domain import BusyInterval, InvalidSlotRequest, Slot
from .timezones import resolve_wall_time, to_local, wall_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringContext:
    """What a scorer may look at for one surviving slot."""
    starts_at: datetime
    ends_at: datetime
    footprint_start: datetime
    footprint_end: datetime
    work_start: datetime
    work_end: datetime
    busy: tuple[BusyInterval, ...]
    local_hour: int
    local_minute: int


SlotScorer = Callable[[ScoringContext, AvailabilityConfig], float]


def generate_day_slots(
    staff_id: str,
    work_start: datetime,
    work_end: datetime,
    service_duration_min: int,
    granularity_min: int,
    busy: Iterable[BusyInterval] = (),
    buffer_before_min: int = 0,
    buffer_after_min: int = 0,
    time_zone: str | ZoneInfo = "UTC",
    config: AvailabilityConfig | None = None,
    scorer: Optional[SlotScorer] = None,
) -> list[Slot]:
    """
    Generate scored, non-overlapping slots for one day.

    Raises:
        InvalidSlotRequest: non-positive duration or negative buffers.
    """
    config = config or get_availability_config()
    scorer = scorer or score_slot

    if service_duration_min is None or service_duration_min <= 0:
        raise InvalidSlotRequest(
            f"service_duration_min must be positive, got {service_duration_min}"
        )
    if buffer_before_min < 0 or buffer_after_min < 0:
        raise InvalidSlotRequest("Buffers must be >= 0")
    if granularity_min is None or granularity_min <= 0:
        logger.warning(
            f"Invalid granularity {granularity_min!r}, "
            f"using {config.default_granularity_min}"
        )
        granularity_min = config.default_granularity_min

    duration = timedelta(minutes=service_duration_min)
    before = timedelta(minutes=buffer_before_min)
    after = timedelta(minutes=buffer_after_min)
    step = timedelta(minutes=granularity_min)
    busy = tuple(sorted(busy, key=lambda b: (b.starts_at, b.ends_at)))

    slots: list[Slot] = []
    wall_start = wall_clock(work_start, time_zone)
    previous: Optional[datetime] = None
    k = 0
    while True:
        # step on the local grid; gap wall times can collapse onto one instant
        anchor = resolve_wall_time(wall_start + k * step, time_zone)
        k += 1
        if anchor + duration > work_end:
            break
        if previous is not None and anchor <= previous:
            continue
        previous = anchor

        footprint_start = anchor - before
        footprint_end = anchor + duration + after

        if not any(b.overlaps(footprint_start, footprint_end) for b in busy):
            local = to_local(anchor, time_zone)
            context = ScoringContext(
                starts_at=anchor,
                ends_at=anchor + duration,
                footprint_start=footprint_start,
                footprint_end=footprint_end,
                work_start=work_start,
                work_end=work_end,
                busy=busy,
                local_hour=local.hour,
                local_minute=local.minute,
            )
            slots.append(Slot(
                staff_id=staff_id,
                starts_at=anchor,
                ends_at=anchor + duration,
                score=round(scorer(context, config), 2),
            ))

    return mark_recommended(slots, config.recommended_per_day)


def rank_slots(slots: Iterable[Slot]) -> list[Slot]:
    """Total order: higher score first, earlier start on ties."""
    return sorted(slots, key=lambda s: (-s.score, s.starts_at))


def mark_recommended(slots: Iterable[Slot], count: int) -> list[Slot]:
    """
    Flag the top `count` slots of rank_slots() as recommended.

    Returns:
        All slots in ascending starts_at order.
    """
    ranked = rank_slots(slots)
    top = {slot.key for slot in ranked[:count]}
    flagged = [replace(slot, recommended=slot.key in top) for slot in ranked]
    return sorted(flagged, key=lambda s: s.starts_at)


# ── Scoring ──────────────────────────────────────────────────────────────


def score_slot(context: ScoringContext, config: AvailabilityConfig) -> float:
    """Default desirability score (higher is better)."""
    gap_before, gap_after = _busy_gaps(context)

    edge_before = max(context.footprint_start - context.work_start, timedelta(0))
    edge_after = max(context.work_end - context.footprint_end, timedelta(0))

    score = max(
        _decay(gap_before, config.busy_weight, config),
        _decay(edge_before, config.edge_weight, config),
    )
    score += max(
        _decay(gap_after, config.busy_weight, config),
        _decay(edge_after, config.edge_weight, config),
    )

    if config.is_peak(context.local_hour, context.local_minute):
        score += config.peak_weight

    return score


def _busy_gaps(context: ScoringContext) -> tuple[Optional[timedelta], Optional[timedelta]]:
    """Distance from the footprint to the nearest busy interval on each side."""
    ends_before = [
        b.ends_at for b in context.busy if b.ends_at <= context.footprint_start
    ]
    starts_after = [
        b.starts_at for b in context.busy if b.starts_at >= context.footprint_end
    ]
    gap_before = context.footprint_start - max(ends_before) if ends_before else None
    gap_after = min(starts_after) - context.footprint_end if starts_after else None
    return gap_before, gap_after


def _decay(gap: Optional[timedelta], weight: float, config: AvailabilityConfig) -> float:
    if gap is None:
        return 0.0
    minutes = gap.total_seconds() / 60
    return weight * max(0.0, 1.0 - minutes / config.adjacency_decay_min)
