"""
Settlement maths
================

    final_price       = proposed_price
    fee_amount        = round_half_up(final_price x fee_rate, 2)
    driver_net_amount = final_price - fee_amount

Pure functions only; the wallet writes live in
``ridehail.services.settlement``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")

Number = Union[Decimal, float, int, str]


def to_money(value: Number) -> Decimal:
    """Quantize to 2 decimals, rounding half up (never banker's rounding)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Settlement:
    final_price: Decimal
    fee_amount: Decimal
    driver_net_amount: Decimal


def settle(proposed_price: Number, fee_rate: Number = "0.08") -> Settlement:
    final_price = Decimal(str(proposed_price))
    fee_amount = to_money(final_price * Decimal(str(fee_rate)))
    return Settlement(
        final_price=final_price,
        fee_amount=fee_amount,
        driver_net_amount=final_price - fee_amount,
    )
