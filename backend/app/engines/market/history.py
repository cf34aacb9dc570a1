"""Synthetic Market Series Module.

Procedurally generated chart data:
- OHLCV price history for a symbol, as a seeded random walk
- Portfolio performance series, as a sine-modulated revaluation of the holdings

Both are reproducible for the same inputs and the same end time.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from app.core.exceptions import ValidationError
from app.data.providers.mock_provider import symbol_seed
from app.domain import schemas

# period -> (number of points, spacing)
PRICE_HISTORY_STEPS: Dict[str, Tuple[int, timedelta]] = {
    "1d": (78, timedelta(minutes=5)),
    "1w": (7, timedelta(days=1)),
    "1m": (30, timedelta(days=1)),
    "3m": (90, timedelta(days=1)),
    "1y": (365, timedelta(days=1)),
}

PERFORMANCE_STEPS: Dict[str, Tuple[int, timedelta]] = {
    "1d": (24, timedelta(hours=1)),
    "1w": (7, timedelta(days=1)),
    "1m": (30, timedelta(days=1)),
    "3m": (90, timedelta(days=1)),
    "1y": (365, timedelta(days=1)),
}

START_DISCOUNT = 0.95
MAX_STEP_MOVE = 0.015
MAX_WICK = 0.02
PERFORMANCE_AMPLITUDE = 0.05
PERFORMANCE_FREQUENCY = 0.1


def _steps_for(table: Dict[str, Tuple[int, timedelta]], period: str) -> Tuple[int, timedelta]:
    if period not in table:
        raise ValidationError(f"Invalid period '{period}'. Expected one of: {', '.join(table)}")
    return table[period]


def _timeline(end: datetime, periods: int, interval: timedelta) -> List[datetime]:
    return list(pd.date_range(end=end, periods=periods, freq=interval).to_pydatetime())


def generate_price_history(
    symbol: str,
    period: str,
    base_price: float,
    now: Optional[datetime] = None,
) -> List[schemas.HistoricalPoint]:
    """Random-walk OHLCV bars ending one interval before now.

    Args:
        symbol: Ticker, part of the generator seed
        period: One of 1d, 1w, 1m, 3m, 1y
        base_price: Current quote price; the walk starts at 95% of it
        now: End of the timeline (defaults to the current UTC time)

    Returns:
        Points in chronological order; each bar opens at the previous close.
    """
    points, interval = _steps_for(PRICE_HISTORY_STEPS, period)
    now = now or datetime.now(timezone.utc)
    rng = np.random.default_rng(symbol_seed(f"{symbol.upper()}:{period}"))

    start = base_price * START_DISCOUNT
    moves = rng.uniform(-MAX_STEP_MOVE, MAX_STEP_MOVE, points)
    closes = start * np.cumprod(1 + moves)
    opens = np.concatenate(([start], closes[:-1]))
    highs = np.maximum(opens, closes) * (1 + rng.uniform(0, MAX_WICK, points))
    lows = np.minimum(opens, closes) * (1 - rng.uniform(0, MAX_WICK, points))
    volumes = rng.integers(1_000_000, 11_000_000, points)

    timestamps = _timeline(now - interval, points, interval)

    return [
        schemas.HistoricalPoint(
            timestamp=ts,
            open=round(float(o), 2),
            high=round(float(h), 2),
            low=round(float(l), 2),
            close=round(float(c), 2),
            volume=int(v),
        )
        for ts, o, h, l, c, v in zip(timestamps, opens, highs, lows, closes, volumes)
    ]


def generate_performance_series(
    holdings: Sequence[schemas.Holding],
    period: str,
    now: Optional[datetime] = None,
) -> List[schemas.PerformancePoint]:
    """Simulated portfolio value over the period, ending at now.

    Step i (counting down to 0 at now) prices every holding at
    current_price * (1 + 0.05 * sin(0.1 * i)).
    """
    steps, interval = _steps_for(PERFORMANCE_STEPS, period)
    if not holdings:
        return []
    now = now or datetime.now(timezone.utc)

    shares = np.array([float(h.shares) for h in holdings])
    current = np.array([float(h.current_price) for h in holdings])
    avg = np.array([float(h.avg_price) for h in holdings])

    i = np.arange(steps, -1, -1)
    variation = 1 + np.sin(i * PERFORMANCE_FREQUENCY) * PERFORMANCE_AMPLITUDE
    prices = np.outer(variation, current)
    values = prices @ shares
    gains = (prices - avg) @ shares

    timestamps = _timeline(now, steps + 1, interval)

    return [
        schemas.PerformancePoint(
            timestamp=ts,
            total_value=round(float(value), 2),
            total_gain_loss=round(float(gain), 2),
        )
        for ts, value, gain in zip(timestamps, values, gains)
    ]
