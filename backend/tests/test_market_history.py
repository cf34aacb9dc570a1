"""Tests for the synthetic price history and performance series."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import ValidationError
from app.domain import schemas
from app.engines.market.history import (
    PERFORMANCE_STEPS,
    PRICE_HISTORY_STEPS,
    generate_performance_series,
    generate_price_history,
)

NOW = datetime(2024, 3, 1, 16, 0, tzinfo=timezone.utc)


def make_holding(symbol, shares, avg_price, current_price):
    return schemas.Holding(
        id=1,
        portfolio_id=1,
        symbol=symbol,
        name=symbol,
        shares=Decimal(shares),
        avg_price=Decimal(avg_price),
        current_price=Decimal(current_price),
    )


class TestPriceHistory:

    @pytest.mark.parametrize("period, count, interval", [
        ("1d", 78, timedelta(minutes=5)),
        ("1w", 7, timedelta(days=1)),
        ("1m", 30, timedelta(days=1)),
        ("3m", 90, timedelta(days=1)),
        ("1y", 365, timedelta(days=1)),
    ])
    def test_point_count_and_spacing(self, period, count, interval):
        points = generate_price_history("AAPL", period, 100.0, now=NOW)

        assert len(points) == count
        assert points[-1].timestamp == NOW - interval
        assert points[1].timestamp - points[0].timestamp == interval

    def test_walk_starts_below_current_price(self):
        points = generate_price_history("AAPL", "1d", 100.0, now=NOW)
        assert points[0].open == 95.0

    def test_bars_are_consistent(self):
        points = generate_price_history("NVDA", "1m", 891.23, now=NOW)

        for prev, bar in zip(points, points[1:]):
            assert bar.open == prev.close
        for bar in points:
            assert bar.low <= min(bar.open, bar.close)
            assert bar.high >= max(bar.open, bar.close)
            assert 1_000_000 <= bar.volume < 11_000_000

    def test_deterministic_per_symbol_and_period(self):
        first = generate_price_history("TSLA", "1w", 243.84, now=NOW)
        second = generate_price_history("tsla", "1w", 243.84, now=NOW)
        other = generate_price_history("MSFT", "1w", 243.84, now=NOW)

        assert first == second
        assert [p.close for p in first] != [p.close for p in other]

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            generate_price_history("AAPL", "5y", 100.0)

    def test_tables_cover_same_periods(self):
        assert set(PRICE_HISTORY_STEPS) == set(PERFORMANCE_STEPS)


class TestPerformanceSeries:

    def test_ends_at_current_valuation(self):
        holdings = [
            make_holding("AAPL", "10", "100", "150"),
            make_holding("MSFT", "2", "420", "400"),
        ]

        points = generate_performance_series(holdings, "1d", now=NOW)

        assert len(points) == 25
        assert points[-1].timestamp == NOW
        assert points[0].timestamp == NOW - timedelta(hours=24)
        assert points[-1].total_value == pytest.approx(2300.0)
        assert points[-1].total_gain_loss == pytest.approx(460.0)

    @pytest.mark.parametrize("period", ["1w", "1m", "3m", "1y"])
    def test_daily_periods(self, period):
        steps, interval = PERFORMANCE_STEPS[period]

        points = generate_performance_series([make_holding("AAPL", "1", "10", "10")], period, now=NOW)

        assert len(points) == steps + 1
        assert points[-1].timestamp - points[-2].timestamp == interval

    def test_values_stay_within_five_percent(self):
        points = generate_performance_series([make_holding("AAPL", "10", "100", "100")], "1y", now=NOW)

        for point in points:
            assert 950.0 - 0.01 <= point.total_value <= 1050.0 + 0.01

    def test_gain_tracks_value(self):
        points = generate_performance_series([make_holding("AAPL", "4", "25", "30")], "1m", now=NOW)

        for point in points:
            assert point.total_gain_loss == pytest.approx(point.total_value - 100.0, abs=0.011)

    def test_no_holdings(self):
        assert generate_performance_series([], "1d", now=NOW) == []

    def test_invalid_period_checked_before_empty(self):
        with pytest.raises(ValidationError):
            generate_performance_series([], "10y")
