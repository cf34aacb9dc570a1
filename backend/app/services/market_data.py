"""Market Data Service.

Async facade over the configured quote provider:
- Blocking provider calls run in a shared thread pool
- Multi-symbol fetches fan out with asyncio.gather, one task per symbol
- Every quote seen is written through to the stock_prices cache
- Symbol search and synthetic price history
"""

import asyncio
import concurrent.futures
import functools
import time
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from app.core.exceptions import NotFoundError
from app.data.providers import QuoteProvider
from app.data.repository import PortfolioRepository
from app.data.symbols import search_symbols
from app.domain import schemas
from app.engines.market.history import generate_price_history
from config.settings import get_settings
from core.error_handler import ErrorHandler
from core.structured_logger import get_structured_logger

logger = get_structured_logger("MarketDataService")

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking store call on the loop's default executor.

    Callers await each call before issuing the next, so a request's session is
    never used from two threads at once.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


class MarketDataService:
    """
    Quote lookups for the API and the valuation pipeline.

    Usage:
        service = MarketDataService(repo, provider)
        quotes = await service.fetch_quotes(["AAPL", "MSFT"])
    """

    _executor: Optional[concurrent.futures.ThreadPoolExecutor] = None

    def __init__(self, repo: PortfolioRepository, provider: QuoteProvider):
        self.repo = repo
        self.provider = provider

    @classmethod
    def _get_executor(cls) -> concurrent.futures.ThreadPoolExecutor:
        if cls._executor is None:
            cls._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=get_settings().quote_fetch_workers,
                thread_name_prefix="quote-fetch",
            )
        return cls._executor

    @classmethod
    def shutdown_executor(cls) -> None:
        if cls._executor is not None:
            cls._executor.shutdown(wait=False)
            cls._executor = None

    async def _fetch_one(self, symbol: str) -> Optional[schemas.StockQuote]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), self.provider.get_quote, symbol)

    def _write_through(self, quotes: Sequence[schemas.StockQuote]) -> None:
        # The cache is never authoritative: a failed write costs the cache entry, not the quote
        for quote in quotes:
            try:
                self.repo.upsert_stock_price(quote)
            except Exception as e:
                ErrorHandler.log_error(e, f"quote cache write for {quote.symbol}", "MarketDataService")

    async def fetch_quotes(self, symbols: Sequence[str]) -> Dict[str, Optional[schemas.StockQuote]]:
        """
        Fetch quotes for several symbols concurrently.

        Args:
            symbols: Ticker symbols; duplicates are fetched once

        Returns:
            Mapping of symbol to quote. A symbol maps to None when the provider
            has no quote or the fetch raised; failures never propagate.
        """
        unique = list(dict.fromkeys(s.upper() for s in symbols))
        if not unique:
            return {}

        start = time.perf_counter()
        results = await asyncio.gather(
            *(self._fetch_one(symbol) for symbol in unique),
            return_exceptions=True,
        )

        quotes: Dict[str, Optional[schemas.StockQuote]] = {}
        for symbol, result in zip(unique, results):
            if isinstance(result, Exception):
                ErrorHandler.log_error(result, f"quote fetch for {symbol}", "MarketDataService")
                quotes[symbol] = None
            else:
                quotes[symbol] = result

        found = [q for q in quotes.values() if q is not None]
        if found:
            await run_blocking(self._write_through, found)

        logger.performance(
            "fetch_quotes",
            (time.perf_counter() - start) * 1000,
            success=all(q is not None for q in quotes.values()),
            symbols=len(unique),
        )
        return quotes

    async def fetch_quote(self, symbol: str) -> Optional[schemas.StockQuote]:
        quotes = await self.fetch_quotes([symbol])
        return quotes.get(symbol.upper())

    async def get_quote(self, symbol: str) -> schemas.StockQuote:
        """Quote for a symbol, or NotFoundError."""
        quote = await self.fetch_quote(symbol)
        if quote is None:
            raise NotFoundError("Stock not found")
        return quote

    async def get_history(self, symbol: str, period: str) -> List[schemas.HistoricalPoint]:
        quote = await self.get_quote(symbol)
        return generate_price_history(quote.symbol, period, quote.price)

    def search(self, query: str) -> List[schemas.SearchResult]:
        return [schemas.SearchResult(**match) for match in search_symbols(query)]
