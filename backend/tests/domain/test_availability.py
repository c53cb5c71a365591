from datetime import date

import pytest
from tourbook.domain.availability import compute_calendar, compute_day, list_available_times, occupancy_band
from tourbook.models import Activity, AvailabilityDay, AvailabilitySlot, OccupancyBand


def _day(*slots: tuple[str, int, int], on: date = date(2025, 6, 15)) -> AvailabilityDay:
    return AvailabilityDay(
        date=on,
        time_slots=[AvailabilitySlot(time=t, total_slots=total, booked_slots=booked) for t, total, booked in slots],
    )


def test_compute_day_reports_free_places_per_slot() -> None:
    summary = compute_day(_day(("09:00", 10, 4), ("14:00", 10, 10)))
    assert [(s.time, s.available, s.is_full) for s in summary.available_slots] == [
        ("09:00", 6, False),
        ("14:00", 0, True),
    ]
    assert summary.occupancy_percent == 70
    assert summary.is_closed is False
    assert summary.band == OccupancyBand.MODERATE


def test_overbooked_slot_never_goes_negative() -> None:
    summary = compute_day(_day(("09:00", 5, 7)))
    assert summary.available_slots[0].available == 0
    assert summary.available_slots[0].is_full is True


def test_day_with_every_slot_full_is_closed() -> None:
    summary = compute_day(_day(("09:00", 10, 10), ("14:00", 5, 5)))
    assert summary.is_closed is True
    assert summary.occupancy_percent == 100
    assert summary.band == OccupancyBand.FULL


def test_zero_capacity_day_is_closed() -> None:
    summary = compute_day(_day(("09:00", 0, 0)))
    assert summary.is_closed is True
    assert summary.occupancy_percent == 0
    assert summary.band == OccupancyBand.FULL


def test_occupancy_rounds_half_up() -> None:
    # 1 of 8 booked is 12.5%
    assert compute_day(_day(("09:00", 8, 1))).occupancy_percent == 13


@pytest.mark.parametrize(
    ("percent", "band"),
    [
        (0, OccupancyBand.OPEN),
        (49, OccupancyBand.OPEN),
        (50, OccupancyBand.MODERATE),
        (79, OccupancyBand.MODERATE),
        (80, OccupancyBand.NEAR_FULL),
        (99, OccupancyBand.NEAR_FULL),
        (100, OccupancyBand.FULL),
    ],
)
def test_occupancy_band_thresholds(percent: int, band: OccupancyBand) -> None:
    assert occupancy_band(percent) == band


def test_available_times_skip_full_slots() -> None:
    activity = Activity(id=1, base_price=100, default_times=["08:00"])
    day = _day(("09:00", 10, 4), ("14:00", 10, 10), ("17:00", 4, 0))
    assert list_available_times(activity, day) == ["09:00", "17:00"]


def test_available_times_fall_back_to_defaults_without_data() -> None:
    activity = Activity(id=1, base_price=100, default_times=["09:00", "13:00"])
    assert list_available_times(activity, None) == ["09:00", "13:00"]
    assert list_available_times(activity, AvailabilityDay(date=date(2025, 6, 15))) == ["09:00", "13:00"]


def test_calendar_is_ordered_by_date() -> None:
    late = _day(("09:00", 10, 0), on=date(2025, 6, 20))
    early = _day(("09:00", 10, 10), on=date(2025, 6, 18))
    rows = compute_calendar([late, early])
    assert [day.date for day, _ in rows] == [date(2025, 6, 18), date(2025, 6, 20)]
    assert rows[0][1].is_closed is True
    assert rows[1][1].band == OccupancyBand.OPEN
