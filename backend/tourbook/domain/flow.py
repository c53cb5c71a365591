from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from ..models import (
    Activity,
    AvailabilityDay,
    FlowStep,
    Participant,
    PaymentInitRequest,
    PaymentType,
    ReservationDraft,
    ReservationResult,
    ReservationSubmission,
    SelectedExtra,
)
from ..utils.time import parse_calendar_date
from .availability import list_available_times
from .errors import BookingError, ValidationError
from .gateways import PaymentGateway, ReservationGateway
from .services import PriceBreakdown, compute_total

logger = logging.getLogger(__name__)

_EDITABLE_STEPS = frozenset({FlowStep.SELECTION, FlowStep.PARTICIPANTS, FlowStep.CONTACT})
_PARTICIPANT_FIELDS = frozenset({"first_name", "last_name", "birth_date"})
_CONTACT_FIELDS = frozenset({"customer_name", "customer_phone", "customer_email", "notes"})


class ReservationFlow:
    """
    Step-by-step reservation of one activity by one browsing session.

    Steps run Selection -> Participants -> Contact -> Submitting and end in
    either PaymentRedirect or Success. Guards are checked when a transition is
    requested; mutators only keep the draft's own invariants (participant list
    length, extra quantities). Once a terminal step is reached the draft is
    read-only.
    """

    def __init__(
        self,
        activity: Activity,
        reservations: ReservationGateway,
        payments: PaymentGateway,
        *,
        payment_callback_url: str | None = None,
    ) -> None:
        self.activity = activity
        self._reservations = reservations
        self._payments = payments
        self._payment_callback_url = payment_callback_url
        self.step = FlowStep.SELECTION
        self.draft = ReservationDraft(activity_id=activity.id)
        self.availability: AvailabilityDay | None = None
        self.result: ReservationResult | None = None
        self.payment_page_url: str | None = None
        self.last_error: BookingError | None = None

    # derived state

    @property
    def price(self) -> PriceBreakdown:
        return compute_total(self.activity, self.draft)

    @property
    def available_times(self) -> list[str]:
        return list_available_times(self.activity, self.availability)

    @property
    def is_terminal(self) -> bool:
        return self.step in (FlowStep.PAYMENT_REDIRECT, FlowStep.SUCCESS)

    # selection

    def select_date(self, on: date | datetime | str, availability: AvailabilityDay | None = None) -> None:
        self._ensure_step(FlowStep.SELECTION)
        self._ensure_not_booked()
        self.draft.date = parse_calendar_date(on)
        self.availability = availability
        if self.draft.time is not None and self.draft.time not in self.available_times:
            self.draft.time = None

    def select_time(self, slot_time: str) -> None:
        self._ensure_step(FlowStep.SELECTION)
        self._ensure_not_booked()
        if self.draft.date is None:
            raise ValidationError("select a date before choosing a time")
        if slot_time not in self.available_times:
            raise ValidationError(f"time {slot_time} is not available on {self.draft.date.isoformat()}")
        self.draft.time = slot_time

    def set_participant_count(self, count: int) -> int:
        """Clamp to the activity limits, then keep extras and participants in step."""
        self._ensure_step(FlowStep.SELECTION)
        self._ensure_not_booked()
        count = max(1, min(int(count), self.activity.max_participants))
        self.draft.participant_count = count
        for extra in self.draft.selected_extras:
            extra.quantity = min(extra.quantity, count)

        participants = self.draft.participants[:count]
        participants.extend(Participant() for _ in range(count - len(participants)))
        self.draft.participants = participants
        return count

    def set_extra(self, name: str, quantity: int) -> None:
        """Select, update or (quantity <= 0) remove an extra."""
        self._ensure_editable()
        option = self.activity.extra_named(name)
        if option is None:
            raise ValidationError(f"unknown extra: {name}")

        extras = [extra for extra in self.draft.selected_extras if extra.name != name]
        if quantity > 0:
            extras.append(
                SelectedExtra(
                    name=option.name,
                    unit_price=option.price_amount,
                    quantity=min(quantity, self.draft.participant_count),
                )
            )
        self.draft.selected_extras = extras

    # participants and contact

    def update_participant(self, index: int, **fields: Any) -> None:
        self._ensure_editable()
        unknown = set(fields) - _PARTICIPANT_FIELDS
        if unknown:
            raise ValidationError(f"unknown participant fields: {', '.join(sorted(unknown))}")
        if not 0 <= index < len(self.draft.participants):
            raise ValidationError(f"participant index {index} out of range")
        current = self.draft.participants[index]
        self.draft.participants[index] = current.model_copy(update=fields)

    def update_contact(self, **fields: Any) -> None:
        self._ensure_editable()
        unknown = set(fields) - _CONTACT_FIELDS
        if unknown:
            raise ValidationError(f"unknown contact fields: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(self.draft, key, value or "")

    def set_transfer(self, has_transfer: bool, *, zone: str | None = None, hotel_name: str | None = None) -> None:
        self._ensure_editable()
        if has_transfer and not self.activity.has_free_hotel_transfer:
            raise ValidationError("this activity does not offer hotel transfer")
        if zone is not None and self.activity.zone_named(zone) is None:
            raise ValidationError(f"unknown transfer zone: {zone}")
        self.draft.has_transfer = has_transfer
        if zone is not None:
            self.draft.transfer_zone = zone
        if hotel_name is not None:
            self.draft.hotel_name = hotel_name

    # transitions

    def advance(self) -> FlowStep:
        if self.step == FlowStep.SELECTION:
            missing = [
                label
                for label, value in (("date", self.draft.date), ("time", self.draft.time))
                if value is None
            ]
            if missing:
                raise ValidationError(f"missing {' and '.join(missing)}")
            if self.draft.participant_count < 1:
                raise ValidationError("at least one participant is required")
            self.step = FlowStep.PARTICIPANTS
        elif self.step == FlowStep.PARTICIPANTS:
            incomplete = [str(i + 1) for i, p in enumerate(self.draft.participants) if not p.is_complete()]
            if incomplete:
                raise ValidationError(f"participant details incomplete: {', '.join(incomplete)}")
            self.step = FlowStep.CONTACT
        elif self.step == FlowStep.CONTACT:
            raise ValidationError("use submit to leave the contact step")
        else:
            raise ValidationError(f"cannot advance from {self.step}")
        return self.step

    def back(self) -> FlowStep:
        self._ensure_not_booked()
        if self.step == FlowStep.PARTICIPANTS:
            self.step = FlowStep.SELECTION
        elif self.step == FlowStep.CONTACT:
            self.step = FlowStep.PARTICIPANTS
        else:
            raise ValidationError(f"cannot go back from {self.step}")
        return self.step

    def reset(self) -> None:
        if self.step == FlowStep.SUBMITTING:
            raise ValidationError("a submission is in progress")
        self.step = FlowStep.SELECTION
        self.draft = ReservationDraft(activity_id=self.activity.id)
        self.availability = None
        self.result = None
        self.payment_page_url = None
        self.last_error = None

    async def submit(self) -> FlowStep:
        """
        Create the reservation, then either start payment or finish.

        On any failure the flow returns to Contact with the draft intact and
        the error is re-raised. When the reservation was already created by an
        earlier attempt only the payment initialization is retried, and the
        draft stays locked until the flow is reset.
        """
        if self.step == FlowStep.SUBMITTING:
            raise ValidationError("a submission is already in progress")
        self._ensure_step(FlowStep.CONTACT)
        self._check_contact()

        self.step = FlowStep.SUBMITTING
        self.last_error = None
        try:
            if self.result is None:
                submission = ReservationSubmission.from_draft(self.draft)
                self.result = await self._reservations.create_reservation(submission)
                logger.info(
                    "reservation %s created for activity %s (payment %s)",
                    self.result.id,
                    self.activity.id,
                    self.result.payment_type,
                )
            if _payment_due(self.result):
                session = await self._payments.initialize_payment(self._payment_request(self.result))
                self.payment_page_url = session.payment_page_url
                self.step = FlowStep.PAYMENT_REDIRECT
            else:
                self.step = FlowStep.SUCCESS
        except BookingError as exc:
            logger.warning("submit failed for activity %s: %s", self.activity.id, exc)
            self.last_error = exc
            self.step = FlowStep.CONTACT
            raise
        except Exception:
            self.step = FlowStep.CONTACT
            raise
        return self.step

    # guards

    def _check_contact(self) -> None:
        missing = []
        if not self.draft.customer_name.strip():
            missing.append("customer name")
        if not self.draft.customer_phone.strip():
            missing.append("customer phone")
        if self.draft.has_transfer:
            if not self.draft.transfer_zone:
                missing.append("transfer zone")
            if not (self.draft.hotel_name or "").strip():
                missing.append("hotel name")
        if missing:
            raise ValidationError(f"missing {', '.join(missing)}")

    def _payment_request(self, result: ReservationResult) -> PaymentInitRequest:
        amount = result.deposit_required if result.deposit_required > 0 else result.total_price
        return PaymentInitRequest(
            reservation_id=result.id,
            amount=amount,
            customer_name=self.draft.customer_name.strip(),
            customer_email=self.draft.customer_email.strip() or None,
            customer_phone=self.draft.customer_phone.strip(),
            callback_url=self._payment_callback_url,
        )

    def _ensure_step(self, step: FlowStep) -> None:
        if self.step != step:
            raise ValidationError(f"not allowed in step {self.step}, expected {step}")

    def _ensure_editable(self) -> None:
        if self.step not in _EDITABLE_STEPS:
            raise ValidationError(f"reservation can no longer be changed in step {self.step}")
        self._ensure_not_booked()

    def _ensure_not_booked(self) -> None:
        # Payment is only retried for the reservation as it was created.
        if self.result is not None:
            raise ValidationError(
                f"reservation {self.result.id} already created; retry payment or start over"
            )


def _payment_due(result: ReservationResult) -> bool:
    return result.deposit_required > 0 or result.payment_type == PaymentType.FULL
