"""Basket pricing."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from fruitpay.services.checkout.schemas import BasketItem

WHOLE_UNIT = Decimal("1")


def basket_total(basket: Iterable[BasketItem]) -> int:
    """Return the basket amount in minor currency units.

    Sum of `quantity * unit_cost` over all lines, computed in decimal and
    rounded half up to an integer. Negative values are priced as given.
    """

    amount = Decimal(0)
    for item in basket:
        amount += Decimal(str(item.quantity)) * Decimal(str(item.unit_cost))
    return int(amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP))
