from datetime import date, datetime
from decimal import Decimal

import pytest
from tourbook.domain.errors import InvalidArgumentError
from tourbook.domain.pricing import resolve_price
from tourbook.models import Activity


def _activity(**overrides: object) -> Activity:
    data: dict[str, object] = {"id": 1, "name": "Boat tour", "base_price": Decimal("1000")}
    data.update(overrides)
    return Activity(**data)


@pytest.mark.parametrize("on", [date(2025, 1, 1), date(2025, 6, 15), date(2025, 12, 31)])
def test_base_price_when_seasonal_pricing_disabled(on: date) -> None:
    activity = _activity(seasonal_prices={6: Decimal("1500")})
    assert resolve_price(activity, on) == Decimal("1000")


def test_seasonal_price_applies_only_to_its_month() -> None:
    activity = _activity(seasonal_pricing_enabled=True, seasonal_prices={6: Decimal("1500")})
    assert resolve_price(activity, date(2025, 6, 15)) == Decimal("1500")
    assert resolve_price(activity, date(2025, 7, 1)) == Decimal("1000")


def test_zero_seasonal_price_falls_back_to_base() -> None:
    activity = _activity(seasonal_pricing_enabled=True, seasonal_prices={6: Decimal("0")})
    assert resolve_price(activity, date(2025, 6, 15)) == Decimal("1000")


def test_accepts_iso_strings_and_datetimes() -> None:
    activity = _activity(seasonal_pricing_enabled=True, seasonal_prices={6: Decimal("1500")})
    assert resolve_price(activity, "2025-06-30") == Decimal("1500")
    assert resolve_price(activity, "2025-06-30T23:30:00+03:00") == Decimal("1500")
    assert resolve_price(activity, datetime(2025, 7, 1, 0, 5)) == Decimal("1000")


def test_seasonal_keys_from_json_are_months() -> None:
    activity = Activity.model_validate(
        {"id": 1, "basePrice": 1000, "seasonalPricingEnabled": True, "seasonalPrices": {"8": 1800}}
    )
    assert resolve_price(activity, date(2025, 8, 2)) == Decimal("1800")


def test_invalid_date_raises() -> None:
    activity = _activity(seasonal_pricing_enabled=True)
    with pytest.raises(InvalidArgumentError):
        resolve_price(activity, "not-a-date")
