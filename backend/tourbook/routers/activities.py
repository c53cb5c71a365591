from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ..deps import get_agency_client
from ..domain.errors import BookingError
from ..infrastructure.agency_api import AgencyApiClient
from ..schemas import ActivityDayRead, PriceRead
from ..usecases import availability as availability_usecase
from .http_errors import to_http_exception

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("/{activity_id}/quote", response_model=PriceRead)
async def get_quote(
    activity_id: int = Path(..., ge=1),
    on: Optional[date] = Query(default=None, alias="date"),
    participants: int = Query(default=1, ge=1),
    client: AgencyApiClient = Depends(get_agency_client),
) -> PriceRead:
    try:
        activity = await client.get_activity(activity_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    breakdown = availability_usecase.quote(activity, on=on, participants=participants)
    return PriceRead.from_breakdown(breakdown)


@router.get("/{activity_id}/availability", response_model=ActivityDayRead)
async def get_day_availability(
    activity_id: int = Path(..., ge=1),
    on: date = Query(..., alias="date"),
    client: AgencyApiClient = Depends(get_agency_client),
) -> ActivityDayRead:
    try:
        activity = await client.get_activity(activity_id)
        overview = await availability_usecase.load_day(client, activity, on)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return ActivityDayRead.from_overview(overview)
