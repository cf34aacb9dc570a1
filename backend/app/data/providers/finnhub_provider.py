"""Finnhub Data Provider Module.

Provides functions for fetching data from the Finnhub REST API:
- Real-time quotes
- General market news

All calls are rate limited through the shared token bucket and never raise:
failures are logged and reported as missing data.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from app.data.providers.base import QuoteProvider
from app.data.symbols import get_company_name
from app.domain import schemas
from config.settings import Settings, get_settings
from core.error_handler import handle_gracefully
from core.rate_limiter import get_finnhub_rate_limiter
from core.structured_logger import get_structured_logger

logger = get_structured_logger("FinnhubProvider")


class FinnhubClient:
    """Thin wrapper around the Finnhub endpoints used by the dashboard."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        settings = settings or get_settings()
        self.base_url = settings.finnhub_base_url.rstrip("/")
        self.api_key = settings.finnhub_api_key
        self.timeout = settings.finnhub_timeout_seconds
        self.session = session or requests.Session()
        self._rate_limiter = get_finnhub_rate_limiter()

    def _get(self, path: str, **params) -> Any:
        self._rate_limiter.acquire_sync()
        params["token"] = self.api_key
        response = self.session.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def quote(self, symbol: str) -> Dict[str, Any]:
        return self._get("quote", symbol=symbol)

    def general_news(self) -> List[Dict[str, Any]]:
        return self._get("news", category="general")


class FinnhubQuoteProvider(QuoteProvider):
    """Quote provider backed by Finnhub's /quote endpoint."""

    name = "finnhub"

    def __init__(self, client: Optional[FinnhubClient] = None):
        self.client = client or FinnhubClient()

    @handle_gracefully(default=None, component="FinnhubProvider")
    def get_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        symbol = symbol.strip().upper()
        data = self.client.quote(symbol)

        # 'c' is the current price; Finnhub answers unknown symbols with zeros
        current = data.get("c") or 0
        if current <= 0:
            logger.info(f"No Finnhub quote for {symbol}")
            return None

        previous_close = data.get("pc") or 0
        change = current - previous_close
        change_percent = (change / previous_close) * 100 if previous_close else 0.0

        return schemas.StockQuote(
            symbol=symbol,
            name=get_company_name(symbol),
            price=round(current, 2),
            change=round(change, 2),
            change_percent=round(change_percent, 4),
            volume=0,  # Finnhub quote doesn't include volume
            previous_close=previous_close or None,
            day_high=data.get("h"),
            day_low=data.get("l"),
            timestamp=datetime.now(timezone.utc),
        )
