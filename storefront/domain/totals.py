# storefront/domain/totals.py
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol

from storefront.utils.errors import ValidationError

#the cart shows an estimate, the order charges the real rate
CART_TAX_RATE = Decimal("0.10")
ORDER_TAX_RATE = Decimal("0.09")

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class PricedLine(Protocol):
    price: Decimal
    quantity: int


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    """Round half-up to cents. Floats go through str so 0.1 stays 0.1."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(
    items: Iterable[PricedLine],
    tax_rate: Decimal = CART_TAX_RATE,
    shipping_cost: Decimal | int | float | str = ZERO,
) -> Totals:
    """
    Pure totals calculation for a list of lines with ``price`` and ``quantity``.

    subtotal = sum(price * quantity)
    tax      = subtotal * tax_rate
    total    = subtotal + tax + shipping_cost

    Every figure is rounded half-up to 2 decimals. Negative input is rejected,
    so the result always satisfies total >= subtotal >= 0.
    """
    shipping = Decimal(str(shipping_cost)) if not isinstance(shipping_cost, Decimal) else shipping_cost
    if shipping < 0:
        raise ValidationError("Shipping cost cannot be negative")

    raw_subtotal = ZERO
    for item in items:
        price = item.price if isinstance(item.price, Decimal) else Decimal(str(item.price))
        if price < 0 or item.quantity < 0:
            raise ValidationError("Item price and quantity cannot be negative")
        raw_subtotal += price * item.quantity

    subtotal = to_money(raw_subtotal)
    tax = to_money(raw_subtotal * tax_rate)
    total = to_money(subtotal + tax + shipping)
    return Totals(subtotal=subtotal, tax=tax, total=total)
