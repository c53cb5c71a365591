from datetime import date, datetime
from decimal import Decimal

from ..models import Activity
from ..utils.time import parse_calendar_date


def resolve_price(activity: Activity, on: date | datetime | str) -> Decimal:
    """
    Effective per-person price of `activity` on the given calendar date.

    A seasonal entry only applies when seasonal pricing is enabled and the
    entry for the date's month is positive; otherwise the base price is used.
    Raises InvalidArgumentError for an unparseable date.
    """
    if not activity.seasonal_pricing_enabled:
        return activity.base_price

    month = parse_calendar_date(on).month
    seasonal = activity.seasonal_prices.get(month)
    if seasonal is not None and seasonal > 0:
        return seasonal
    return activity.base_price
