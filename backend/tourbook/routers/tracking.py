from datetime import datetime
from typing import List
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Path, status

from ..deps import get_agency_client, get_agency_zone, get_now
from ..domain.errors import BookingError
from ..infrastructure.agency_api import AgencyApiClient
from ..models import CustomerRequest, CustomerRequestAck
from ..schemas import CustomerRequestCreate, DayRead, TrackingRead
from ..usecases import tracking as tracking_usecase
from .http_errors import to_http_exception

router = APIRouter(prefix="/track", tags=["tracking"])


@router.get("/{token}", response_model=TrackingRead)
async def get_tracking(
    token: str = Path(..., min_length=1),
    client: AgencyApiClient = Depends(get_agency_client),
    tz: ZoneInfo = Depends(get_agency_zone),
    now: datetime = Depends(get_now),
) -> TrackingRead:
    try:
        view = await tracking_usecase.track(client, token, tz=tz, now=now)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return TrackingRead.from_view(view)


@router.get("/{token}/calendar", response_model=List[DayRead])
async def get_reschedule_calendar(
    token: str = Path(..., min_length=1),
    client: AgencyApiClient = Depends(get_agency_client),
) -> list[DayRead]:
    try:
        rows = await tracking_usecase.reschedule_calendar(client, token)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return [DayRead.from_summary(day.date, summary) for day, summary in rows]


@router.post("/{token}/requests", response_model=CustomerRequestAck, status_code=status.HTTP_201_CREATED)
async def create_customer_request(
    payload: CustomerRequestCreate,
    token: str = Path(..., min_length=1),
    client: AgencyApiClient = Depends(get_agency_client),
    tz: ZoneInfo = Depends(get_agency_zone),
    now: datetime = Depends(get_now),
) -> CustomerRequestAck:
    request = CustomerRequest(token=token, **payload.model_dump())
    try:
        view = await tracking_usecase.track(client, token, tz=tz, now=now)
        return await tracking_usecase.submit_customer_request(client, view, request)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
