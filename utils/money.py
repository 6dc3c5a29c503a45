"""Money rounding helpers"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from config.pricing import MONEY_PLACES

Number = Union[int, float, Decimal]

_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def round_money(value: Number) -> float:
    """
    Round a monetary amount to 2 decimal places, half away from zero.

    Floats go through their shortest repr so 0.125 rounds to 0.13 instead of
    being pulled down by binary representation error.
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(repr(float(value)))
    rounded = amount.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    # Avoid emitting -0.0
    return float(rounded) + 0.0


def percent_of(amount: Number, rate: Number) -> float:
    """Unrounded `rate` percent of `amount`"""
    return float(amount) * float(rate) / 100.0
