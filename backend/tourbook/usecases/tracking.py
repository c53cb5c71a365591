from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from ..domain.availability import DayAvailability, compute_calendar
from ..domain.errors import IneligibleActionError
from ..domain.gateways import TrackingGateway
from ..domain.services import CancellationEligibility, cancellation_eligibility
from ..models import (
    AvailabilityDay,
    CustomerRequest,
    CustomerRequestAck,
    RequestType,
    ReservationStatus,
    TrackedReservation,
)
from ..utils.audit_log import emit_audit_log
from ..utils.time import local_start

_CLOSED_STATUSES = (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)
_WINDOWED_REQUESTS = (RequestType.CANCELLATION, RequestType.DATE_CHANGE)


@dataclass(frozen=True)
class TrackingView:
    reservation: TrackedReservation
    eligibility: CancellationEligibility
    starts_at: datetime


def evaluate(reservation: TrackedReservation, *, tz: ZoneInfo, now: datetime) -> TrackingView:
    starts_at = local_start(reservation.date, reservation.time, tz)
    eligibility = cancellation_eligibility(
        starts_at,
        free_cancellation_hours=reservation.free_cancellation_hours,
        now=now,
    )
    if reservation.status in _CLOSED_STATUSES:
        eligibility = CancellationEligibility(
            cancellation_allowed=False,
            hours_until_activity=eligibility.hours_until_activity,
            free_cancellation_hours=eligibility.free_cancellation_hours,
        )
    return TrackingView(reservation=reservation, eligibility=eligibility, starts_at=starts_at)


async def track(tracking: TrackingGateway, token: str, *, tz: ZoneInfo, now: datetime) -> TrackingView:
    reservation = await tracking.get_tracked_reservation(token)
    return evaluate(reservation, tz=tz, now=now)


async def reschedule_calendar(
    tracking: TrackingGateway, token: str
) -> list[tuple[AvailabilityDay, DayAvailability]]:
    return compute_calendar(await tracking.get_reschedule_calendar(token))


async def submit_customer_request(
    tracking: TrackingGateway,
    view: TrackingView,
    request: CustomerRequest,
) -> CustomerRequestAck:
    """
    Send a change request for a tracked reservation.

    Cancellations and date changes outside the free-cancellation window, and
    any request against a cancelled or completed reservation, are rejected
    here without calling the agency API.
    """
    reservation = view.reservation
    reason: str | None = None
    if reservation.status in _CLOSED_STATUSES:
        reason = f"reservation is {reservation.status.value}; no further requests are accepted"
    elif request.request_type in _WINDOWED_REQUESTS and not view.eligibility.cancellation_allowed:
        reason = (
            f"{request.request_type.value.replace('_', ' ')} is only possible up to "
            f"{reservation.free_cancellation_hours} hours before the activity; "
            f"{view.eligibility.hours_until_activity} hours remain"
        )
    if reason is not None:
        emit_audit_log(
            action="customer_request.rejected",
            activity_id=None,
            reservation_id=reservation.id,
            message=reason,
            extra={"request_type": request.request_type},
        )
        raise IneligibleActionError(reason)

    ack = await tracking.create_customer_request(request)
    emit_audit_log(
        action="customer_request.created",
        activity_id=None,
        reservation_id=reservation.id,
        extra={"request_type": request.request_type, "customer_request_id": ack.id},
    )
    return ack
