from __future__ import annotations

import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from .domain.errors import ValidationError

# Prices travel as JSON numbers, not strings.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DepositType(StrEnum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentType(StrEnum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


class ReservationStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RequestType(StrEnum):
    DATE_CHANGE = "date_change"
    CANCELLATION = "cancellation"
    OTHER = "other"


class FlowStep(StrEnum):
    SELECTION = "selection"
    PARTICIPANTS = "participants"
    CONTACT = "contact"
    SUBMITTING = "submitting"
    PAYMENT_REDIRECT = "payment_redirect"
    SUCCESS = "success"


class OccupancyBand(StrEnum):
    OPEN = "open"
    MODERATE = "moderate"
    NEAR_FULL = "near_full"
    FULL = "full"


class ExtraOption(CamelModel):
    name: str
    price_amount: Money = Field(ge=0)
    per_person: bool = True
    description: Optional[str] = None


class TransferZone(CamelModel):
    zone_name: str
    minutes_before: int = Field(default=0, ge=0)


class Activity(CamelModel):
    id: int
    name: str = ""
    base_price: Money = Field(ge=0)
    seasonal_pricing_enabled: bool = False
    seasonal_prices: dict[int, Money] = Field(default_factory=dict)
    max_participants: int = Field(default=10, ge=1)
    default_times: list[str] = Field(default_factory=list)
    extras: list[ExtraOption] = Field(default_factory=list)
    requires_deposit: bool = False
    deposit_type: DepositType = DepositType.PERCENTAGE
    deposit_amount: Money = Field(default=Decimal(0), ge=0)
    full_payment_required: bool = False
    has_free_hotel_transfer: bool = False
    transfer_zones: list[TransferZone] = Field(default_factory=list)
    duration_minutes: Optional[int] = None

    @field_validator("max_participants", mode="before")
    @classmethod
    def _default_max_participants(cls, value: Any) -> Any:
        return 10 if value is None else value

    @field_validator("transfer_zones", mode="before")
    @classmethod
    def _zones_from_names(cls, value: Any) -> Any:
        # Older tenants store transfer zones as bare names.
        if isinstance(value, list):
            return [{"zoneName": zone} if isinstance(zone, str) else zone for zone in value]
        return value

    def extra_named(self, name: str) -> ExtraOption | None:
        return next((extra for extra in self.extras if extra.name == name), None)

    def zone_named(self, zone_name: str) -> TransferZone | None:
        return next((zone for zone in self.transfer_zones if zone.zone_name == zone_name), None)


class AvailabilitySlot(CamelModel):
    time: str
    total_slots: int = Field(default=0, ge=0)
    booked_slots: int = Field(default=0, ge=0)


class AvailabilityDay(CamelModel):
    date: datetime.date
    time_slots: list[AvailabilitySlot] = Field(default_factory=list)


class SelectedExtra(CamelModel):
    name: str
    unit_price: Money = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class Participant(CamelModel):
    first_name: str = ""
    last_name: str = ""
    birth_date: str = ""

    def is_complete(self) -> bool:
        return all(value.strip() for value in (self.first_name, self.last_name, self.birth_date))


class ReservationDraft(CamelModel):
    activity_id: int
    date: Optional[datetime.date] = None
    time: Optional[str] = None
    participant_count: int = 1
    selected_extras: list[SelectedExtra] = Field(default_factory=list)
    participants: list[Participant] = Field(default_factory=lambda: [Participant()])
    has_transfer: bool = False
    transfer_zone: Optional[str] = None
    hotel_name: Optional[str] = None
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: str = ""
    notes: str = ""


class ReservationSubmission(CamelModel):
    activity_id: int
    date: datetime.date
    time: str
    quantity: int
    selected_extras: list[SelectedExtra]
    participants: list[Participant]
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    hotel_name: Optional[str] = None
    has_transfer: bool = False
    transfer_zone: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: ReservationDraft) -> "ReservationSubmission":
        if draft.date is None or draft.time is None:
            raise ValidationError("date and time are required to submit a reservation")
        return cls(
            activity_id=draft.activity_id,
            date=draft.date,
            time=draft.time,
            quantity=draft.participant_count,
            selected_extras=[extra.model_copy() for extra in draft.selected_extras],
            participants=[participant.model_copy() for participant in draft.participants],
            customer_name=draft.customer_name.strip(),
            customer_phone=draft.customer_phone.strip(),
            customer_email=draft.customer_email.strip() or None,
            hotel_name=draft.hotel_name if draft.has_transfer else None,
            has_transfer=draft.has_transfer,
            transfer_zone=draft.transfer_zone if draft.has_transfer else None,
            notes=draft.notes or None,
        )


class ReservationResult(CamelModel):
    id: int
    tracking_token: Optional[str] = None
    total_price: Money = Decimal(0)
    deposit_required: Money = Decimal(0)
    payment_type: PaymentType = PaymentType.NONE
    remaining_payment: Money = Decimal(0)


class TrackedReservation(ReservationResult):
    status: ReservationStatus = ReservationStatus.PENDING
    free_cancellation_hours: int = Field(default=24, ge=0)
    payment_status: str = "pending"
    activity_name: str = ""
    date: datetime.date
    time: str
    quantity: int = 1
    customer_name: str = ""
    hotel_name: Optional[str] = None
    has_transfer: bool = False


class PaymentInitRequest(CamelModel):
    reservation_id: int
    amount: Money
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: str
    callback_url: Optional[str] = None


class PaymentSession(CamelModel):
    payment_page_url: str


class CustomerRequest(CamelModel):
    token: str
    request_type: RequestType
    preferred_date: Optional[datetime.date] = None
    preferred_time: Optional[str] = None
    request_details: Optional[str] = None


class CustomerRequestAck(CamelModel):
    id: Optional[int] = None
    status: str = "pending"
    message: str = ""
