from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from ..models import Activity, DepositType, PaymentType, ReservationDraft
from ..utils.time import local_start
from .availability import round_half_up
from .pricing import resolve_price


@dataclass(frozen=True)
class PriceBreakdown:
    unit_price: Decimal
    base_price_total: Decimal
    extras_total: Decimal
    grand_total: Decimal
    deposit_required: Decimal
    remaining_payment: Decimal
    payment_type: PaymentType


@dataclass(frozen=True)
class CancellationEligibility:
    cancellation_allowed: bool
    hours_until_activity: int
    free_cancellation_hours: int


def compute_total(activity: Activity, draft: ReservationDraft) -> PriceBreakdown:
    """
    Price breakdown for a draft. Pure derivation over validated input.

    Full payment takes precedence over any deposit settings; a deposit is
    either a percentage of the grand total (rounded half-up to whole units)
    or a fixed amount.
    """
    # Before a date is chosen only the base price is known.
    unit_price = activity.base_price if draft.date is None else resolve_price(activity, draft.date)
    base_total = unit_price * draft.participant_count
    extras_total = sum((extra.unit_price * extra.quantity for extra in draft.selected_extras), Decimal(0))
    grand_total = base_total + extras_total

    if activity.full_payment_required:
        payment_type = PaymentType.FULL
        deposit = grand_total
        remaining = Decimal(0)
    elif activity.requires_deposit:
        payment_type = PaymentType.PARTIAL
        if activity.deposit_type == DepositType.PERCENTAGE:
            deposit = Decimal(round_half_up(grand_total * activity.deposit_amount / 100))
        else:
            deposit = activity.deposit_amount
        remaining = max(grand_total - deposit, Decimal(0))
    else:
        payment_type = PaymentType.NONE
        deposit = Decimal(0)
        remaining = grand_total

    return PriceBreakdown(
        unit_price=unit_price,
        base_price_total=base_total,
        extras_total=extras_total,
        grand_total=grand_total,
        deposit_required=deposit,
        remaining_payment=remaining,
        payment_type=payment_type,
    )


def cancellation_eligibility(
    starts_at: datetime,
    *,
    free_cancellation_hours: int,
    now: datetime,
) -> CancellationEligibility:
    """Both datetimes must be timezone-aware."""
    remaining = starts_at - now
    hours_until = max(0, int(remaining // timedelta(hours=1)))
    return CancellationEligibility(
        cancellation_allowed=remaining >= timedelta(hours=free_cancellation_hours),
        hours_until_activity=hours_until,
        free_cancellation_hours=free_cancellation_hours,
    )


def pickup_time(day: date, slot_time: str, *, minutes_before: int, tz: ZoneInfo) -> datetime:
    """Hotel pickup moment for a transfer zone; may fall on the previous day."""
    return local_start(day, slot_time, tz) - timedelta(minutes=minutes_before)
