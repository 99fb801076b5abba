from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, float, int, str]

QUANTITY_STEP = Decimal("0.001")
MONEY_STEP = Decimal("0.01")
COST_STEP = Decimal("0.0001")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def quantity(value: Number) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def money(value: Number) -> Decimal:
    return to_decimal(value).quantize(MONEY_STEP, rounding=ROUND_HALF_UP)


def cost(value: Number) -> Decimal:
    """Unit cost / average price precision"""
    return to_decimal(value).quantize(COST_STEP, rounding=ROUND_HALF_UP)
