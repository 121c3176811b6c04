"""
Amount Helpers

Balances and rates are held as Decimal. Values are never quantized on the
way in; rounding to two places happens only for display.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Union

# High precision for financial calculations
getcontext().prec = 28

Number = Union[Decimal, int, float, str]

ZERO = Decimal('0')
CENT = Decimal('0.01')


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, going through str for floats"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_amount(value: Number) -> str:
    """Format for display with two decimal places"""
    amount = to_decimal(value)
    if not amount.is_finite():
        return str(amount)
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))
