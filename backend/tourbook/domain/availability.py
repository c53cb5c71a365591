from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..models import Activity, AvailabilityDay, OccupancyBand


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    available: int | None
    is_full: bool


@dataclass(frozen=True)
class DayAvailability:
    occupancy_percent: int
    available_slots: list[SlotAvailability]
    is_closed: bool

    @property
    def band(self) -> OccupancyBand:
        if self.is_closed:
            return OccupancyBand.FULL
        return occupancy_band(self.occupancy_percent)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_day(day: AvailabilityDay) -> DayAvailability:
    slots = [
        SlotAvailability(
            time=slot.time,
            available=max(0, slot.total_slots - slot.booked_slots),
            is_full=slot.total_slots - slot.booked_slots <= 0,
        )
        for slot in day.time_slots
    ]
    total = sum(slot.total_slots for slot in day.time_slots)
    booked = sum(slot.booked_slots for slot in day.time_slots)
    if total <= 0:
        return DayAvailability(occupancy_percent=0, available_slots=slots, is_closed=True)

    occupancy = round_half_up(Decimal(booked) * 100 / Decimal(total))
    is_closed = all(slot.is_full for slot in slots)
    return DayAvailability(occupancy_percent=occupancy, available_slots=slots, is_closed=is_closed)


def occupancy_band(percent: int | float) -> OccupancyBand:
    if percent >= 100:
        return OccupancyBand.FULL
    if percent >= 80:
        return OccupancyBand.NEAR_FULL
    if percent >= 50:
        return OccupancyBand.MODERATE
    return OccupancyBand.OPEN


def list_available_times(activity: Activity, day: AvailabilityDay | None) -> list[str]:
    """Bookable times for a date; without day data every default time is offered."""
    if day is None or not day.time_slots:
        return list(activity.default_times)
    return [slot.time for slot in compute_day(day).available_slots if not slot.is_full]


def compute_calendar(days: Iterable[AvailabilityDay]) -> list[tuple[AvailabilityDay, DayAvailability]]:
    return [(day, compute_day(day)) for day in sorted(days, key=lambda d: d.date)]
