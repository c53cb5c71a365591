from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Path, Response, status

from ..config import Settings, get_settings
from ..deps import get_agency_client, get_agency_zone, get_flow_store
from ..domain.errors import BookingError
from ..domain.flow import ReservationFlow
from ..infrastructure.agency_api import AgencyApiClient
from ..infrastructure.flow_store import InMemoryFlowStore
from ..schemas import ContactUpdate, ExtraUpdate, FlowCreate, FlowRead, ParticipantsUpdate, SelectionUpdate
from ..usecases import reservations as reservation_usecase
from .http_errors import to_http_exception

router = APIRouter(prefix="/flows", tags=["reservations"])


async def _load(flow_id: str, store: InMemoryFlowStore) -> ReservationFlow:
    try:
        return await store.get(flow_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=FlowRead, status_code=status.HTTP_201_CREATED)
async def create_flow(
    payload: FlowCreate,
    client: AgencyApiClient = Depends(get_agency_client),
    store: InMemoryFlowStore = Depends(get_flow_store),
    settings: Settings = Depends(get_settings),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    try:
        flow_id, flow = await reservation_usecase.start_flow(
            client,
            client,
            client,
            store,
            activity_id=payload.activity_id,
            payment_callback_url=settings.payment_callback_url,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.get("/{flow_id}", response_model=FlowRead)
async def get_flow(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.delete("/{flow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_flow(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
) -> Response:
    await store.discard(flow_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{flow_id}/selection", response_model=FlowRead)
async def update_selection(
    payload: SelectionUpdate,
    flow_id: str = Path(..., min_length=1),
    client: AgencyApiClient = Depends(get_agency_client),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        await reservation_usecase.update_selection(
            client,
            flow,
            on=payload.date,
            slot_time=payload.time,
            participant_count=payload.participant_count,
        )
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.put("/{flow_id}/extras", response_model=FlowRead)
async def update_extra(
    payload: ExtraUpdate,
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        flow.set_extra(payload.name, payload.quantity)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.put("/{flow_id}/participants", response_model=FlowRead)
async def update_participants(
    payload: ParticipantsUpdate,
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        reservation_usecase.update_participants(flow, payload.participants)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.put("/{flow_id}/contact", response_model=FlowRead)
async def update_contact(
    payload: ContactUpdate,
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    contact = payload.model_dump(
        include={"customer_name", "customer_phone", "customer_email", "notes"},
        exclude_none=True,
    )
    try:
        if contact:
            flow.update_contact(**contact)
        if payload.has_transfer is not None or payload.transfer_zone or payload.hotel_name:
            has_transfer = flow.draft.has_transfer if payload.has_transfer is None else payload.has_transfer
            flow.set_transfer(has_transfer, zone=payload.transfer_zone, hotel_name=payload.hotel_name)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.post("/{flow_id}/next", response_model=FlowRead)
async def advance_flow(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        flow.advance()
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.post("/{flow_id}/back", response_model=FlowRead)
async def step_back(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        flow.back()
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.post("/{flow_id}/reset", response_model=FlowRead)
async def reset_flow(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        flow.reset()
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)


@router.post("/{flow_id}/submit", response_model=FlowRead)
async def submit_flow(
    flow_id: str = Path(..., min_length=1),
    store: InMemoryFlowStore = Depends(get_flow_store),
    tz: ZoneInfo = Depends(get_agency_zone),
) -> FlowRead:
    flow = await _load(flow_id, store)
    try:
        await reservation_usecase.submit_flow(flow, flow_id=flow_id)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    return FlowRead.from_flow(flow_id, flow, tz=tz)
