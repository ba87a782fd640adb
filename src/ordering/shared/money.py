"""Decimal money helpers.

Order totals are compared exactly, so every amount crossing into the domain is
converted to a two-place ``Decimal`` first and only stored as a float once
rounded.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a price-like value (str, int, float, Decimal) to a 2-place Decimal."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {value!r}") from None
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price) -> Decimal:
    return to_money(to_money(unit_price) * quantity)


def sum_lines(lines) -> Decimal:
    """Sum ``(quantity, unit_price)`` pairs exactly."""
    return sum((line_total(quantity, price) for quantity, price in lines), Decimal("0.00"))
