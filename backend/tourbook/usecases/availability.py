from dataclasses import dataclass
from datetime import date

from ..domain.availability import DayAvailability, SlotAvailability, compute_day, list_available_times
from ..domain.gateways import ActivityGateway
from ..domain.services import PriceBreakdown, compute_total
from ..models import Activity, AvailabilityDay, ReservationDraft


@dataclass(frozen=True)
class DayOverview:
    activity: Activity
    date: date
    day: AvailabilityDay | None
    summary: DayAvailability
    available_times: list[str]


async def load_day(activities: ActivityGateway, activity: Activity, on: date) -> DayOverview:
    day = await activities.get_availability(activity.id, on)
    if day is None:
        # No capacity rows for the date: default times with unknown capacity.
        summary = DayAvailability(
            occupancy_percent=0,
            available_slots=[SlotAvailability(time=t, available=None, is_full=False) for t in activity.default_times],
            is_closed=not activity.default_times,
        )
    else:
        summary = compute_day(day)
    return DayOverview(
        activity=activity,
        date=on,
        day=day,
        summary=summary,
        available_times=list_available_times(activity, day),
    )


def quote(activity: Activity, *, on: date | None, participants: int) -> PriceBreakdown:
    count = max(1, min(participants, activity.max_participants))
    draft = ReservationDraft(activity_id=activity.id, date=on, participant_count=count)
    return compute_total(activity, draft)
