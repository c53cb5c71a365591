from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from .config import Settings, get_settings
from .infrastructure.agency_api import AgencyApiClient
from .infrastructure.flow_store import InMemoryFlowStore
from .utils.time import agency_zone, utc_now


def get_agency_client(request: Request) -> AgencyApiClient:
    client = getattr(request.app.state, "agency_client", None)
    if client is None:
        client = AgencyApiClient.from_settings(get_settings())
        request.app.state.agency_client = client
    return client


def get_flow_store(request: Request, settings: Settings = Depends(get_settings)) -> InMemoryFlowStore:
    store = getattr(request.app.state, "flow_store", None)
    if store is None:
        store = InMemoryFlowStore(ttl=timedelta(minutes=settings.flow_ttl_minutes))
        request.app.state.flow_store = store
    return store


def get_agency_zone(settings: Settings = Depends(get_settings)) -> ZoneInfo:
    return agency_zone(settings.agency_timezone)


def get_now() -> datetime:
    return utc_now()
