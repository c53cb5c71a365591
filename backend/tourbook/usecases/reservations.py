from __future__ import annotations

from datetime import date

from ..domain.errors import BookingError, ValidationError
from ..domain.flow import ReservationFlow
from ..domain.gateways import ActivityGateway, PaymentGateway, ReservationGateway
from ..infrastructure.flow_store import InMemoryFlowStore
from ..models import FlowStep, Participant
from ..utils.audit_log import emit_audit_log


async def start_flow(
    activities: ActivityGateway,
    reservations: ReservationGateway,
    payments: PaymentGateway,
    store: InMemoryFlowStore,
    *,
    activity_id: int,
    payment_callback_url: str | None = None,
) -> tuple[str, ReservationFlow]:
    activity = await activities.get_activity(activity_id)
    flow = ReservationFlow(activity, reservations, payments, payment_callback_url=payment_callback_url)
    flow_id = await store.add(flow)
    return flow_id, flow


async def update_selection(
    activities: ActivityGateway,
    flow: ReservationFlow,
    *,
    on: date | None = None,
    slot_time: str | None = None,
    participant_count: int | None = None,
) -> ReservationFlow:
    """Apply selection changes in order: date (always refreshing availability), count, time."""
    if on is not None:
        day = await activities.get_availability(flow.activity.id, on)
        flow.select_date(on, day)
    if participant_count is not None:
        flow.set_participant_count(participant_count)
    if slot_time is not None:
        flow.select_time(slot_time)
    return flow


def update_participants(flow: ReservationFlow, participants: list[Participant]) -> ReservationFlow:
    for index, participant in enumerate(participants):
        flow.update_participant(index, **participant.model_dump())
    return flow


async def submit_flow(flow: ReservationFlow, *, flow_id: str) -> FlowStep:
    step_from = flow.step
    first_attempt = flow.result is None
    try:
        step = await flow.submit()
    except BookingError as exc:
        if first_attempt and flow.result is not None:
            _audit_submitted(flow, flow_id, step_from)
        emit_audit_log(
            action="reservation.submit_failed" if flow.result is None else "reservation.payment_failed",
            activity_id=flow.activity.id,
            flow_id=flow_id,
            reservation_id=flow.result.id if flow.result else None,
            step_from=step_from,
            step_to=flow.step,
            message=str(exc),
        )
        raise

    if first_attempt:
        _audit_submitted(flow, flow_id, step_from)
    result = flow.result
    if result is None:
        raise ValidationError("submit finished without a reservation")
    emit_audit_log(
        action="reservation.payment_redirect" if step == FlowStep.PAYMENT_REDIRECT else "reservation.completed",
        activity_id=flow.activity.id,
        flow_id=flow_id,
        reservation_id=result.id,
        step_from=FlowStep.SUBMITTING,
        step_to=step,
        amount=result.deposit_required,
        payment_type=result.payment_type,
    )
    return step


def _audit_submitted(flow: ReservationFlow, flow_id: str, step_from: FlowStep) -> None:
    result = flow.result
    if result is None:
        raise ValidationError("no reservation was created")
    emit_audit_log(
        action="reservation.submitted",
        activity_id=flow.activity.id,
        flow_id=flow_id,
        reservation_id=result.id,
        step_from=step_from,
        step_to=FlowStep.SUBMITTING,
        amount=result.total_price,
        payment_type=result.payment_type,
    )
