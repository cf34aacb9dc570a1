"""Quote providers and the factory that wires them from settings."""

from typing import Optional

from app.data.providers.base import FallbackQuoteProvider, QuoteProvider
from app.data.providers.mock_provider import MockQuoteProvider
from config.settings import Settings, get_settings


def get_quote_provider(settings: Optional[Settings] = None) -> QuoteProvider:
    """Build the quote provider chain configured by QUOTE_PROVIDER.

    A live provider is followed by the mock provider when
    QUOTE_FALLBACK_TO_MOCK is set.
    """
    settings = settings or get_settings()

    if settings.quote_provider == "mock":
        return MockQuoteProvider()

    if settings.quote_provider == "finnhub":
        from app.data.providers.finnhub_provider import FinnhubQuoteProvider
        primary: QuoteProvider = FinnhubQuoteProvider()
    else:
        from app.data.providers.yfinance_provider import YFinanceQuoteProvider
        primary = YFinanceQuoteProvider()

    if settings.quote_fallback_to_mock:
        return FallbackQuoteProvider([primary, MockQuoteProvider()])
    return primary


__all__ = [
    "QuoteProvider",
    "FallbackQuoteProvider",
    "MockQuoteProvider",
    "get_quote_provider",
]
