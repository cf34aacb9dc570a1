"""YFinance Data Provider Module.

Fetches live quotes from Yahoo Finance through yfinance's fast_info:
last price, previous close, day range, volume and market cap.
"""

from datetime import datetime, timezone
from typing import Optional

import yfinance as yf

from app.data.providers.base import QuoteProvider
from app.data.symbols import get_company_name
from app.domain import schemas
from core.error_handler import handle_gracefully
from core.structured_logger import get_structured_logger

logger = get_structured_logger("YFinanceProvider")


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if value == value else None  # NaN check


class YFinanceQuoteProvider(QuoteProvider):
    """Quote provider backed by Yahoo Finance."""

    name = "yfinance"

    @handle_gracefully(default=None, component="YFinanceProvider")
    def get_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        symbol = symbol.strip().upper()
        t = yf.Ticker(symbol)
        fast_info = t.fast_info

        price = _optional_float(fast_info.last_price)
        if not price or price <= 0:
            logger.info(f"No Yahoo Finance quote for {symbol}")
            return None

        prev_close = _optional_float(fast_info.previous_close)
        change = price - prev_close if prev_close else 0.0
        change_percent = (change / prev_close) * 100 if prev_close else 0.0
        volume = _optional_float(fast_info.last_volume) or 0

        return schemas.StockQuote(
            symbol=symbol,
            name=get_company_name(symbol),
            price=round(price, 2),
            change=round(change, 2),
            change_percent=round(change_percent, 4),
            volume=int(volume),
            previous_close=prev_close,
            day_high=_optional_float(fast_info.day_high),
            day_low=_optional_float(fast_info.day_low),
            market_cap=_optional_float(fast_info.market_cap),
            timestamp=datetime.now(timezone.utc),
        )
