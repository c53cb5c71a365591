from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from httpx_retries import Retry, RetryTransport

from ..config import Settings
from ..domain.errors import ExternalServiceError, NetworkError
from ..domain.gateways import ActivityGateway, PaymentGateway, ReservationGateway, TrackingGateway
from ..models import (
    Activity,
    AvailabilityDay,
    AvailabilitySlot,
    CustomerRequest,
    CustomerRequestAck,
    PaymentInitRequest,
    PaymentSession,
    ReservationResult,
    ReservationSubmission,
    TrackedReservation,
)
from ..utils.request_id import get_request_id

logger = logging.getLogger(__name__)


async def _forward_request_id(request: httpx.Request) -> None:
    request_id = get_request_id()
    if request_id:
        request.headers["X-Request-ID"] = request_id


class AgencyApiClient(ActivityGateway, ReservationGateway, PaymentGateway, TrackingGateway):
    """
    Async client for the agency's public API.

    Reads are retried on 5xx responses; writes are sent exactly once so a
    failed submit never books twice behind the caller's back.
    """

    HEADERS = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 20.0,
        read_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if transport is None:
            retry = Retry(
                total=read_retries,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET"],
            )
            transport = RetryTransport(transport=httpx.AsyncHTTPTransport(), retry=retry)
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            transport=transport,
            timeout=timeout,
            event_hooks={"request": [_forward_request_id]},
        )
        self.client.headers.update(self.HEADERS)
        if api_key:
            self.client.headers["X-API-Key"] = api_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "AgencyApiClient":
        return cls(
            settings.agency_api_url,
            settings.agency_api_key,
            timeout=settings.http_timeout_seconds,
            read_retries=settings.http_read_retries,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_activity(self, activity_id: int) -> Activity:
        data = await self._request("GET", f"activities/{activity_id}")
        return Activity.model_validate(data)

    async def get_availability(self, activity_id: int, on: date) -> AvailabilityDay | None:
        data = await self._request(
            "GET",
            "availability",
            params={"activityId": activity_id, "date": on.isoformat()},
        )
        slots = [AvailabilitySlot.model_validate(item) for item in data or []]
        if not slots:
            return None
        return AvailabilityDay(date=on, time_slots=slots)

    async def create_reservation(self, submission: ReservationSubmission) -> ReservationResult:
        data = await self._request(
            "POST",
            "reservations",
            json=submission.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return ReservationResult.model_validate(data)

    async def initialize_payment(self, request: PaymentInitRequest) -> PaymentSession:
        data = await self._request(
            "POST",
            "payment/initialize",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        if data.get("success") is False or not data.get("paymentPageUrl"):
            message = data.get("errorMessage") or "payment could not be initialized"
            raise ExternalServiceError(message, code=data.get("errorCode"))
        return PaymentSession.model_validate(data)

    async def get_tracked_reservation(self, token: str) -> TrackedReservation:
        data = await self._request("GET", f"track/{token}")
        return TrackedReservation.model_validate(data)

    async def get_reschedule_calendar(self, token: str) -> list[AvailabilityDay]:
        data = await self._request("GET", f"track/{token}/availability")
        return [AvailabilityDay.model_validate(item) for item in data or []]

    async def create_customer_request(self, request: CustomerRequest) -> CustomerRequestAck:
        data = await self._request(
            "POST",
            "customer-requests",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return CustomerRequestAck.model_validate(data)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("agency API timeout: %s %s", method, path)
            raise NetworkError(f"agency API did not answer in time ({method} {path})") from exc
        except httpx.TransportError as exc:
            logger.warning("agency API unreachable: %s %s: %s", method, path, exc)
            raise NetworkError(f"agency API unreachable ({method} {path})") from exc

        if response.is_error:
            raise _service_error(response)
        return response.json()


def _service_error(response: httpx.Response) -> ExternalServiceError:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or body.get("message") or response.reason_phrase or "agency API error"
    logger.info("agency API answered %s: %s", response.status_code, message)
    return ExternalServiceError(str(message), status_code=response.status_code, code=body.get("code"))
