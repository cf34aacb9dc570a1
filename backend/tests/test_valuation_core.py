"""Property-Based Tests for the holding valuation calculator.

- total_value is current price times shares, rounded to cents
- gain_loss is total_value minus cost basis, rounded to cents
- a non-positive average price gives a 0 percent instead of a division error
"""

from decimal import Decimal, ROUND_HALF_UP

import pytest
from hypothesis import given, strategies as st, settings

from app.engines.valuation.core import (
    calculate_holding_valuation,
    round_money,
    sum_money,
    to_decimal,
)

shares_strategy = st.decimals(min_value=Decimal("0.0001"), max_value=Decimal("1000000"), places=4)
price_strategy = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("100000"), places=2)


class TestHoldingValuation:
    """Unit tests for calculate_holding_valuation."""

    def test_reference_example(self):
        valuation = calculate_holding_valuation(Decimal("50"), Decimal("155.20"), 160)

        assert valuation.current_price == Decimal("160.00")
        assert valuation.total_value == Decimal("8000.00")
        assert valuation.gain_loss == Decimal("240.00")
        assert valuation.gain_loss_percent == Decimal("3.0928")

    def test_loss_is_negative(self):
        valuation = calculate_holding_valuation("10", "200.00", "150.00")

        assert valuation.total_value == Decimal("1500.00")
        assert valuation.gain_loss == Decimal("-500.00")
        assert valuation.gain_loss_percent == Decimal("-25.0000")

    def test_zero_avg_price_gives_zero_percent(self):
        valuation = calculate_holding_valuation("5", "0", "100")

        assert valuation.gain_loss == Decimal("500.00")
        assert valuation.gain_loss_percent == Decimal("0")

    def test_negative_avg_price_gives_zero_percent(self):
        valuation = calculate_holding_valuation("5", "-1", "100")
        assert valuation.gain_loss_percent == Decimal("0")

    def test_float_quote_price_keeps_printed_value(self):
        """0.1 + 0.2 style float noise must not leak into cents."""
        valuation = calculate_holding_valuation("3", "10", 178.91)
        assert valuation.current_price == Decimal("178.91")
        assert valuation.total_value == Decimal("536.73")

    def test_fractional_shares(self):
        valuation = calculate_holding_valuation("0.5", "100.00", "101.00")

        assert valuation.total_value == Decimal("50.50")
        assert valuation.gain_loss == Decimal("0.50")
        assert valuation.gain_loss_percent == Decimal("1.0000")


class TestValuationInvariants:
    """Property tests for the stored-value invariants."""

    @given(shares_strategy, price_strategy, price_strategy)
    @settings(max_examples=200)
    def test_total_value_is_price_times_shares(self, shares, avg_price, current_price):
        valuation = calculate_holding_valuation(shares, avg_price, current_price)
        expected = (current_price * shares).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        assert valuation.total_value == expected

    @given(shares_strategy, price_strategy, price_strategy)
    @settings(max_examples=200)
    def test_gain_loss_is_value_minus_cost(self, shares, avg_price, current_price):
        valuation = calculate_holding_valuation(shares, avg_price, current_price)
        expected = (valuation.total_value - avg_price * shares).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        assert valuation.gain_loss == expected

    @given(shares_strategy, price_strategy, price_strategy)
    @settings(max_examples=100)
    def test_percent_sign_matches_price_move(self, shares, avg_price, current_price):
        valuation = calculate_holding_valuation(shares, avg_price, current_price)
        if current_price > avg_price:
            assert valuation.gain_loss_percent >= 0
        elif current_price < avg_price:
            assert valuation.gain_loss_percent <= 0
        else:
            assert valuation.gain_loss_percent == 0

    @given(shares_strategy, price_strategy, price_strategy)
    @settings(max_examples=100)
    def test_valuation_is_deterministic(self, shares, avg_price, current_price):
        assert calculate_holding_valuation(shares, avg_price, current_price) == \
            calculate_holding_valuation(shares, avg_price, current_price)


class TestMoneyHelpers:

    @pytest.mark.parametrize("value, expected", [
        ("1.005", "1.01"),
        ("1.004", "1.00"),
        ("-1.005", "-1.01"),
        (2, "2.00"),
    ])
    def test_round_money_half_up(self, value, expected):
        assert round_money(value) == Decimal(expected)

    def test_to_decimal_from_float(self):
        assert to_decimal(0.1) == Decimal("0.1")

    @given(st.lists(price_strategy, max_size=20))
    @settings(max_examples=50)
    def test_sum_money_is_exact(self, values):
        assert sum_money(values) == sum(values, Decimal("0")).quantize(Decimal("0.01"))

    def test_sum_money_empty(self):
        assert sum_money([]) == Decimal("0.00")
