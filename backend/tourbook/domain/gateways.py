from __future__ import annotations

from datetime import date
from typing import Protocol

from ..models import (
    Activity,
    AvailabilityDay,
    CustomerRequest,
    CustomerRequestAck,
    PaymentInitRequest,
    PaymentSession,
    ReservationResult,
    ReservationSubmission,
    TrackedReservation,
)


class ActivityGateway(Protocol):
    async def get_activity(self, activity_id: int) -> Activity: ...

    async def get_availability(self, activity_id: int, on: date) -> AvailabilityDay | None: ...


class ReservationGateway(Protocol):
    async def create_reservation(self, submission: ReservationSubmission) -> ReservationResult: ...


class PaymentGateway(Protocol):
    async def initialize_payment(self, request: PaymentInitRequest) -> PaymentSession: ...


class TrackingGateway(Protocol):
    async def get_tracked_reservation(self, token: str) -> TrackedReservation: ...

    async def get_reschedule_calendar(self, token: str) -> list[AvailabilityDay]: ...

    async def create_customer_request(self, request: CustomerRequest) -> CustomerRequestAck: ...
