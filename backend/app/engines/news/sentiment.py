"""Keyword rules for tagging news articles."""

from typing import Iterable, List

from app.data.symbols import COMMON_NEWS_SYMBOLS

BULLISH_WORDS = ["growth", "gains", "profits", "beats", "exceeds", "strong", "positive", "rally", "surge", "up", "rises"]
BEARISH_WORDS = ["losses", "decline", "falls", "drops", "weak", "negative", "crash", "plunge", "down", "concerns"]


def analyze_sentiment(text: str) -> str:
    """Classify text as bullish, bearish or neutral.

    Each keyword counts once if it appears anywhere in the lower-cased text,
    including inside longer words ("up" matches "support").
    """
    lower = (text or "").lower()
    bullish = sum(1 for word in BULLISH_WORDS if word in lower)
    bearish = sum(1 for word in BEARISH_WORDS if word in lower)

    if bullish > bearish:
        return "bullish"
    if bearish > bullish:
        return "bearish"
    return "neutral"


def extract_relevant_symbols(text: str, known_symbols: Iterable[str] = ()) -> List[str]:
    """Symbols mentioned in the text, caller's symbols first, no duplicates."""
    upper = (text or "").upper()
    found: List[str] = []
    for symbol in [s.upper() for s in known_symbols] + COMMON_NEWS_SYMBOLS:
        if symbol and symbol in upper and symbol not in found:
            found.append(symbol)
    return found
