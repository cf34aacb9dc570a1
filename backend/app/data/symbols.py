"""Static symbol universe.

The mock quote provider, symbol search, news symbol tagging and the insight
rules all work off this list.
"""

from typing import Dict, List

STOCK_UNIVERSE: List[Dict[str, str]] = [
    {"symbol": "AAPL", "name": "Apple Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "GOOGL", "name": "Alphabet Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "MSFT", "name": "Microsoft Corporation", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "AMZN", "name": "Amazon.com Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "TSLA", "name": "Tesla, Inc.", "exchange": "NASDAQ", "sector": "Consumer Cyclical"},
    {"symbol": "META", "name": "Meta Platforms Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "NVDA", "name": "NVIDIA Corporation", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "NFLX", "name": "Netflix Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "AMD", "name": "Advanced Micro Devices Inc.", "exchange": "NASDAQ", "sector": "Technology"},
    {"symbol": "INTC", "name": "Intel Corporation", "exchange": "NASDAQ", "sector": "Technology"},
]

COMPANY_NAMES: Dict[str, str] = {s["symbol"]: s["name"] for s in STOCK_UNIVERSE}

TECH_SYMBOLS = frozenset(s["symbol"] for s in STOCK_UNIVERSE if s["sector"] == "Technology")

# Symbols looked for in news headlines regardless of what the caller holds
COMMON_NEWS_SYMBOLS = ["AAPL", "NVDA", "TSLA", "GOOGL", "MSFT", "AMZN", "META", "NFLX"]

MAX_SEARCH_RESULTS = 10


def is_known_symbol(symbol: str) -> bool:
    return symbol.upper() in COMPANY_NAMES


def get_company_name(symbol: str) -> str:
    symbol = symbol.upper()
    return COMPANY_NAMES.get(symbol, f"{symbol} Corporation")


def search_symbols(query: str) -> List[Dict[str, str]]:
    """Case-insensitive substring match on symbol or company name.

    Args:
        query: Search text; blank queries match nothing

    Returns:
        Up to MAX_SEARCH_RESULTS entries with symbol, name and exchange
    """
    query = (query or "").strip().lower()
    if not query:
        return []

    results = [
        {"symbol": s["symbol"], "name": s["name"], "exchange": s["exchange"]}
        for s in STOCK_UNIVERSE
        if query in s["symbol"].lower() or query in s["name"].lower()
    ]
    return results[:MAX_SEARCH_RESULTS]
