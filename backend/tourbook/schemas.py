import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import Field

from .domain.availability import DayAvailability
from .domain.flow import ReservationFlow
from .domain.services import PriceBreakdown, pickup_time
from .models import (
    CamelModel,
    FlowStep,
    Money,
    OccupancyBand,
    Participant,
    PaymentType,
    ReservationDraft,
    ReservationResult,
    RequestType,
    TrackedReservation,
)
from .usecases.availability import DayOverview
from .usecases.tracking import TrackingView


class PriceRead(CamelModel):
    unit_price: Money
    base_price_total: Money
    extras_total: Money
    grand_total: Money
    deposit_required: Money
    remaining_payment: Money
    payment_type: PaymentType

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> "PriceRead":
        return cls(
            unit_price=breakdown.unit_price,
            base_price_total=breakdown.base_price_total,
            extras_total=breakdown.extras_total,
            grand_total=breakdown.grand_total,
            deposit_required=breakdown.deposit_required,
            remaining_payment=breakdown.remaining_payment,
            payment_type=breakdown.payment_type,
        )


class SlotRead(CamelModel):
    time: str
    available: Optional[int]
    is_full: bool


class DayRead(CamelModel):
    date: datetime.date
    occupancy_percent: int
    band: OccupancyBand
    is_closed: bool
    slots: list[SlotRead]

    @classmethod
    def from_summary(cls, on: datetime.date, summary: DayAvailability) -> "DayRead":
        return cls(
            date=on,
            occupancy_percent=summary.occupancy_percent,
            band=summary.band,
            is_closed=summary.is_closed,
            slots=[
                SlotRead(time=slot.time, available=slot.available, is_full=slot.is_full)
                for slot in summary.available_slots
            ],
        )


class ActivityDayRead(DayRead):
    activity_id: int
    available_times: list[str]

    @classmethod
    def from_overview(cls, overview: DayOverview) -> "ActivityDayRead":
        day = DayRead.from_summary(overview.date, overview.summary)
        return cls(
            **day.model_dump(),
            activity_id=overview.activity.id,
            available_times=overview.available_times,
        )


class FlowCreate(CamelModel):
    activity_id: int = Field(ge=1)


class SelectionUpdate(CamelModel):
    date: Optional[datetime.date] = None
    time: Optional[str] = None
    participant_count: Optional[int] = None


class ExtraUpdate(CamelModel):
    name: str
    quantity: int = Field(ge=0)


class ParticipantsUpdate(CamelModel):
    participants: list[Participant]


class ContactUpdate(CamelModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    has_transfer: Optional[bool] = None
    transfer_zone: Optional[str] = None
    hotel_name: Optional[str] = None


class FlowRead(CamelModel):
    flow_id: str
    step: FlowStep
    draft: ReservationDraft
    price: PriceRead
    available_times: list[str]
    pickup_at: Optional[datetime.datetime] = None
    result: Optional[ReservationResult] = None
    payment_page_url: Optional[str] = None
    last_error: Optional[str] = None

    @classmethod
    def from_flow(cls, flow_id: str, flow: ReservationFlow, *, tz: ZoneInfo) -> "FlowRead":
        draft = flow.draft
        pickup_at = None
        zone = flow.activity.zone_named(draft.transfer_zone) if draft.transfer_zone else None
        if draft.has_transfer and zone is not None and draft.date is not None and draft.time is not None:
            pickup_at = pickup_time(draft.date, draft.time, minutes_before=zone.minutes_before, tz=tz)
        return cls(
            flow_id=flow_id,
            step=flow.step,
            draft=draft.model_copy(deep=True),
            price=PriceRead.from_breakdown(flow.price),
            available_times=flow.available_times,
            pickup_at=pickup_at,
            result=flow.result,
            payment_page_url=flow.payment_page_url,
            last_error=str(flow.last_error) if flow.last_error else None,
        )


class TrackingRead(CamelModel):
    reservation: TrackedReservation
    starts_at: datetime.datetime
    cancellation_allowed: bool
    hours_until_activity: int
    free_cancellation_hours: int

    @classmethod
    def from_view(cls, view: TrackingView) -> "TrackingRead":
        return cls(
            reservation=view.reservation,
            starts_at=view.starts_at,
            cancellation_allowed=view.eligibility.cancellation_allowed,
            hours_until_activity=view.eligibility.hours_until_activity,
            free_cancellation_hours=view.eligibility.free_cancellation_hours,
        )


class CustomerRequestCreate(CamelModel):
    request_type: RequestType
    preferred_date: Optional[datetime.date] = None
    preferred_time: Optional[str] = None
    request_details: Optional[str] = None
