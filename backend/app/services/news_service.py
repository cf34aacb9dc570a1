"""Market News Service.

Articles come from a news source (canned mock articles, or Finnhub general news
tagged with the keyword rules) and are stored append-only. Reads always go
through the store; an empty store is seeded from the source first.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from app.core.exceptions import ValidationError
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.engines.news.sentiment import analyze_sentiment, extract_relevant_symbols
from config.settings import Settings, get_settings
from core.error_handler import ErrorHandler
from core.structured_logger import get_structured_logger

logger = get_structured_logger("NewsService")

FINNHUB_ARTICLE_LIMIT = 5

# (title, summary, sentiment, symbols, source, url, hours ago)
MOCK_ARTICLES = [
    (
        "NVIDIA Reports Record Q4 Earnings, Beats Expectations",
        "Strong AI chip demand drives revenue growth of 45% year-over-year, with data center revenue reaching new highs.",
        "bullish", ["NVDA", "AMD"], "MarketWatch",
        "https://www.marketwatch.com/story/nvidia-earnings-q4-2024", 2,
    ),
    (
        "Fed Signals Potential Rate Hike Amid Inflation Concerns",
        "Federal Reserve officials hint at more aggressive monetary policy to combat persistent inflation pressures.",
        "bearish", [], "Reuters",
        "https://www.reuters.com/business/finance/fed-rate-policy-inflation-2024", 4,
    ),
    (
        "Tesla Faces Production Challenges in Q4",
        "Electric vehicle manufacturer reports lower than expected delivery numbers amid supply chain constraints.",
        "bearish", ["TSLA"], "Reuters",
        "https://www.reuters.com/business/autos-transportation/tesla-q4-deliveries-2024", 6,
    ),
    (
        "Apple Announces New Features for iPhone",
        "Tech giant reveals comprehensive integration across iOS ecosystem, potentially boosting hardware sales.",
        "bullish", ["AAPL"], "TechCrunch",
        "https://techcrunch.com/2024/apple-iphone-features-announcement", 8,
    ),
    (
        "Microsoft Cloud Revenue Surges 25% in Latest Quarter",
        "Azure and productivity software drive strong quarterly performance, exceeding analyst expectations.",
        "bullish", ["MSFT"], "CNBC",
        "https://www.cnbc.com/2024/microsoft-cloud-earnings-q4", 12,
    ),
]


class NewsSource(ABC):
    """Where new articles come from."""

    name: str = "base"

    @abstractmethod
    def fetch(self, symbols: Sequence[str] = ()) -> List[schemas.NewsArticle]:
        pass


class MockNewsSource(NewsSource):
    """Five fixed articles dated relative to now."""

    name = "mock"

    def fetch(self, symbols=(), now: Optional[datetime] = None) -> List[schemas.NewsArticle]:
        now = now or datetime.now(timezone.utc)
        articles = [
            schemas.NewsArticle(
                title=title,
                summary=summary,
                sentiment=sentiment,
                relevant_symbols=list(related),
                source=source,
                url=url,
                published_at=now - timedelta(hours=hours_ago),
            )
            for title, summary, sentiment, related, source, url, hours_ago in MOCK_ARTICLES
        ]
        if symbols:
            wanted = {s.upper() for s in symbols}
            articles = [a for a in articles if wanted.intersection(a.relevant_symbols)]
        return articles


class FinnhubNewsSource(NewsSource):
    """Finnhub general news; falls back to the mock articles on any failure."""

    name = "finnhub"

    def __init__(self, client=None, fallback: Optional[NewsSource] = None):
        if client is None:
            from app.data.providers.finnhub_provider import FinnhubClient
            client = FinnhubClient()
        self.client = client
        self.fallback = fallback or MockNewsSource()

    def fetch(self, symbols=()) -> List[schemas.NewsArticle]:
        try:
            articles = self._fetch_from_finnhub(symbols)
        except Exception as e:
            ErrorHandler.log_error(e, "general news fetch", "NewsService")
            articles = []

        if not articles:
            logger.warning("No usable Finnhub articles, serving mock news")
            return self.fallback.fetch(symbols)
        return articles

    def _fetch_from_finnhub(self, symbols: Sequence[str]) -> List[schemas.NewsArticle]:
        data = self.client.general_news()
        if not isinstance(data, list):
            return []

        usable = [item for item in data if item.get("url") and item.get("headline")]
        logger.info(f"Finnhub returned {len(data)} articles, {len(usable)} usable")

        articles = []
        for item in usable[:FINNHUB_ARTICLE_LIMIT]:
            text = f"{item['headline']} {item.get('summary') or ''}"
            published = item.get("datetime")
            articles.append(schemas.NewsArticle(
                title=item["headline"],
                summary=item.get("summary") or item["headline"],
                sentiment=analyze_sentiment(text),
                relevant_symbols=extract_relevant_symbols(text, symbols),
                source=item.get("source") or "Finnhub",
                url=item["url"],
                published_at=(
                    datetime.fromtimestamp(published, timezone.utc)
                    if published else datetime.now(timezone.utc)
                ),
            ))
        return articles


def get_news_source(settings: Optional[Settings] = None) -> NewsSource:
    settings = settings or get_settings()
    if settings.news_provider == "finnhub":
        return FinnhubNewsSource()
    return MockNewsSource()


class NewsService:
    def __init__(self, repo: PortfolioRepository, source: Optional[NewsSource] = None):
        self.repo = repo
        self.source = source or get_news_source()

    def resolve_limit(self, limit: Optional[int]) -> int:
        settings = get_settings()
        if limit is None:
            return settings.news_default_limit
        if limit < 1:
            raise ValidationError("limit must be a positive integer")
        return min(limit, settings.news_max_limit)

    def seed_if_empty(self) -> int:
        if self.repo.count_news() > 0:
            return 0
        stored = self.repo.add_news(self.source.fetch())
        logger.info(f"Seeded {len(stored)} articles from {self.source.name} news", source=self.source.name)
        return len(stored)

    def get_news(self, symbols: Optional[Sequence[str]] = None, limit: Optional[int] = None) -> List[schemas.NewsArticle]:
        """
        Newest stored articles.

        Args:
            symbols: Only articles related to at least one of these symbols
            limit: Maximum number of articles (default and cap from settings)
        """
        limit = self.resolve_limit(limit)
        self.seed_if_empty()

        symbols = [s.strip().upper() for s in symbols or [] if s and s.strip()]
        if symbols:
            return self.repo.news_by_symbols(symbols, limit)
        return self.repo.latest_news(limit)
