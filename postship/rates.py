# postship/rates.py
"""
Shipping price list.

Prices are a flat base rate per service tier plus a per-pound surcharge for
everything over the first pound. Results are rounded to whole cents so that
the figures shown to a customer add up exactly.
"""
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import List

from .models import RateQuery, ShippingRate

BASE_RATES = {
    "standard": Decimal("8.50"),
    "express": Decimal("15.99"),
    "overnight": Decimal("24.99"),
}
DEFAULT_SERVICE_TYPE = "standard"

SURCHARGE_PER_POUND = Decimal("2.00")
FREE_WEIGHT_LBS = Decimal("1")

INSURANCE_COST = 2.50

DELIVERY_DAYS = {
    "standard": 5,
    "express": 2,
    "overnight": 1,
}

SERVICE_DESCRIPTIONS = {
    "standard": "Standard delivery in 3-5 business days",
    "express": "Express delivery in 1-2 business days",
    "overnight": "Overnight delivery by next business day",
}

_CENT = Decimal("0.01")
# enough digits for any float-sized amount down to the cent
_MONEY_PRECISION = 400


def to_cents(amount) -> float:
    """Round a money amount half-up to two decimals. Infinities and NaN pass through."""
    value = Decimal(str(amount))
    if not value.is_finite():
        return float(value)
    with localcontext() as ctx:
        ctx.prec = _MONEY_PRECISION
        return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def calculate_shipping_cost(service_type: str, weight: float) -> float:
    # unknown tiers are priced as standard; validation normally rules them out
    base = BASE_RATES.get(service_type, BASE_RATES[DEFAULT_SERVICE_TYPE])
    pounds = Decimal(str(weight))
    if pounds.is_nan():
        return float("nan")
    with localcontext() as ctx:
        ctx.prec = _MONEY_PRECISION
        overweight = max(Decimal(0), pounds - FREE_WEIGHT_LBS)
        return to_cents(base + overweight * SURCHARGE_PER_POUND)


def quote_rates(query: RateQuery) -> List[ShippingRate]:
    """One quote per service tier. Origin and destination do not affect price."""
    return [
        ShippingRate(
            service_type=service_type,
            cost=calculate_shipping_cost(service_type, query.weight),
            estimated_days=DELIVERY_DAYS[service_type],
            description=SERVICE_DESCRIPTIONS[service_type],
        )
        for service_type in BASE_RATES
    ]
