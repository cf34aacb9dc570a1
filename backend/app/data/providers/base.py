from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain import schemas


class QuoteProvider(ABC):
    """
    Abstract base class for quote providers.

    get_quote returns None when the symbol is unknown or the lookup failed;
    callers treat both the same way and skip the symbol.
    """

    name: str = "base"

    @abstractmethod
    def get_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        """
        Fetch a current quote for a symbol.
        """
        pass


class FallbackQuoteProvider(QuoteProvider):
    """
    Tries each provider in order and returns the first quote found.
    """

    name = "fallback"

    def __init__(self, providers: List[QuoteProvider]):
        if not providers:
            raise ValueError("FallbackQuoteProvider needs at least one provider")
        self.providers = providers

    def get_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        for provider in self.providers:
            quote = provider.get_quote(symbol)
            if quote is not None:
                return quote
        return None
