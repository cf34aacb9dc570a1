"""Holding Valuation Core Module.

Pure decimal arithmetic for a single position:
- total value at the current price
- absolute gain/loss against the cost basis
- gain/loss percent of the current price over the average cost

Results are rounded to the precision of the holdings table
(cents for money, four places for the percent).
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
PERCENT_PLACES = Decimal("0.0001")
SHARE_PLACES = Decimal("0.0001")

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class HoldingValuation:
    current_price: Decimal
    total_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal going through str so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_holding_valuation(shares: Number, avg_price: Number, current_price: Number) -> HoldingValuation:
    """Value a position at the current price.

    Args:
        shares: Share count (fractional, 4 decimal places)
        avg_price: Average cost basis per share
        current_price: Latest quote price

    Returns:
        HoldingValuation with total value, gain/loss and gain/loss percent.
        The percent is 0 when the average price is zero or negative.
    """
    shares = to_decimal(shares).quantize(SHARE_PLACES, rounding=ROUND_HALF_UP)
    avg_price = round_money(avg_price)
    current_price = round_money(current_price)

    total_value = round_money(current_price * shares)
    gain_loss = round_money(total_value - avg_price * shares)

    if avg_price > 0:
        gain_loss_percent = ((current_price - avg_price) / avg_price * 100).quantize(
            PERCENT_PLACES, rounding=ROUND_HALF_UP
        )
    else:
        gain_loss_percent = Decimal("0").quantize(PERCENT_PLACES)

    return HoldingValuation(
        current_price=current_price,
        total_value=total_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
    )


def sum_money(values) -> Decimal:
    """Exact sum of money amounts, rounded to cents."""
    return round_money(sum((to_decimal(v) for v in values), Decimal("0")))
