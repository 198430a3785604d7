from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

TWO_PLACES = Decimal("0.01")
SIX_PLACES = Decimal("0.000001")

PERCENT = "percent"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENT, FIXED)


def to_decimal(value) -> Decimal:
    """Coerce ints, floats, strings and SQL aggregate results into Decimal (None -> 0)."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> Decimal:
    """Round to cents, halves away from zero."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round6(value) -> Decimal:
    return to_decimal(value).quantize(SIX_PLACES, rounding=ROUND_HALF_UP)


def compute_discount(subtotal, kind: Optional[str], value) -> Decimal:
    """
    Discount amount for a subtotal.

    percent: value is clamped to [0, 100] and applied to the subtotal.
    fixed:   value is capped at the subtotal.
    Anything else, or a non-positive subtotal, gives no discount.
    """
    subtotal = to_decimal(subtotal)
    if subtotal <= 0:
        return Decimal("0.00")

    value = to_decimal(value)
    if kind == PERCENT:
        pct = min(max(value, Decimal(0)), Decimal(100))
        return round2(subtotal * pct / Decimal(100))
    if kind == FIXED:
        return round2(min(subtotal, max(value, Decimal(0))))
    return Decimal("0.00")


def line_total(price, quantity, discount_type: Optional[str] = None, discount_value=0) -> Decimal:
    """round2(price * qty - discount(price * qty))"""
    gross = to_decimal(price) * to_decimal(quantity)
    return round2(gross - compute_discount(gross, discount_type, discount_value))
