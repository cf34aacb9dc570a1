"""Mock Quote Provider.

Serves quotes for the static symbol universe without any network access:
- Hand-written snapshots for the most common symbols
- Deterministic seeded quotes for the rest of the universe
- None for anything outside the universe
"""

import zlib
from datetime import datetime, timezone
from typing import Dict, Optional

import numpy as np

from app.data.providers.base import QuoteProvider
from app.data.symbols import get_company_name, is_known_symbol
from app.domain import schemas

MOCK_QUOTES: Dict[str, Dict[str, float]] = {
    "AAPL": {
        "price": 178.91, "change": 2.34, "change_percent": 1.32, "volume": 45628000,
        "market_cap": 2800000000000, "previous_close": 176.57, "day_high": 179.45, "day_low": 176.23,
    },
    "NVDA": {
        "price": 891.23, "change": 15.67, "change_percent": 1.79, "volume": 32451000,
        "market_cap": 2200000000000, "previous_close": 875.56, "day_high": 895.78, "day_low": 887.12,
    },
    "TSLA": {
        "price": 243.84, "change": -5.22, "change_percent": -2.10, "volume": 67892000,
        "market_cap": 775000000000, "previous_close": 249.06, "day_high": 248.91, "day_low": 242.15,
    },
    "GOOGL": {
        "price": 139.47, "change": 1.82, "change_percent": 1.32, "volume": 28934000,
        "market_cap": 1750000000000, "previous_close": 137.65, "day_high": 140.12, "day_low": 138.23,
    },
    "MSFT": {
        "price": 415.23, "change": 3.45, "change_percent": 0.84, "volume": 19876000,
        "market_cap": 3100000000000, "previous_close": 411.78, "day_high": 416.89, "day_low": 413.12,
    },
}


def symbol_seed(symbol: str) -> int:
    """Stable seed for a symbol (the builtin hash() is salted per process)."""
    return zlib.crc32(symbol.upper().encode("utf-8"))


def seeded_quote_values(symbol: str) -> Dict[str, float]:
    """Generate a reproducible quote for a symbol.

    The price level comes from the symbol's first character; jitter, change and
    volume come from a generator seeded by the whole symbol.
    """
    symbol = symbol.upper()
    rng = np.random.default_rng(symbol_seed(symbol))

    base = 50.0 + ((ord(symbol[0]) - ord("A")) % 26) * 7.5
    price = round(base * (1 + rng.uniform(-0.05, 0.05)), 2)
    change = round(rng.uniform(-5.0, 5.0), 2)
    previous_close = round(price - change, 2)

    return {
        "price": price,
        "change": change,
        "change_percent": round(change / previous_close * 100, 2) if previous_close else 0.0,
        "volume": int(rng.integers(1_000_000, 51_000_000)),
        "previous_close": previous_close,
        "day_high": round(max(price, previous_close) * 1.01, 2),
        "day_low": round(min(price, previous_close) * 0.99, 2),
    }


class MockQuoteProvider(QuoteProvider):
    """Quote provider backed by canned and seeded data."""

    name = "mock"

    def get_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        symbol = symbol.strip().upper()
        if not symbol or not is_known_symbol(symbol):
            return None

        values = MOCK_QUOTES.get(symbol) or seeded_quote_values(symbol)
        return schemas.StockQuote(
            symbol=symbol,
            name=get_company_name(symbol),
            timestamp=datetime.now(timezone.utc),
            **values,
        )
