import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before config.settings is first imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("QUOTE_PROVIDER", "mock")
os.environ.setdefault("NEWS_PROVIDER", "mock")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.core.database import init_db
from app.data.providers import MockQuoteProvider, QuoteProvider
from app.data.repository import InMemoryRepository, SqlAlchemyRepository
from app.domain import schemas
from app.services.news_service import MockNewsSource
from core.rate_limiter import TokenBucketRateLimiter


class StaticQuoteProvider(QuoteProvider):
    """Fixed prices per symbol; symbols mapped to an exception raise it."""

    name = "static"

    def __init__(self, prices):
        self.prices = dict(prices)
        self.calls = []

    def get_quote(self, symbol):
        self.calls.append(symbol)
        price = self.prices.get(symbol)
        if price is None:
            return None
        if isinstance(price, Exception):
            raise price
        return schemas.StockQuote(
            symbol=symbol,
            name=f"{symbol} Corporation",
            price=price,
            change=0.0,
            change_percent=0.0,
            volume=1000,
        )


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    TokenBucketRateLimiter.reset_instances()
    yield
    TokenBucketRateLimiter.reset_instances()


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


@pytest.fixture
def sql_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def sql_repo(sql_session):
    return SqlAlchemyRepository(sql_session)


@pytest.fixture(params=["memory", "sql"])
def repo(request):
    """Run the test against both storage backends."""
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture
def portfolio(repo):
    repo.upsert_user("demo-user")
    return repo.create_portfolio("demo-user", "My Portfolio")


@pytest.fixture
def add_holding(repo, portfolio):
    """Store a holding directly, bypassing quote lookup."""
    def _add(symbol="AAPL", shares="10", avg_price="100.00", portfolio_id=None, **values):
        return repo.create_holding(
            portfolio_id=portfolio_id or portfolio.id,
            symbol=symbol,
            name=f"{symbol} Corporation",
            shares=Decimal(shares),
            avg_price=Decimal(avg_price),
            **values,
        )
    return _add


@pytest.fixture
def broken_quote_cache(repo, monkeypatch):
    """Every write to the stock_prices cache fails; returns the list of attempted symbols."""
    attempted = []

    def _fail(quote):
        attempted.append(quote.symbol)
        raise OperationalError("INSERT INTO stock_prices", {}, Exception("database is locked"))

    monkeypatch.setattr(repo, "upsert_stock_price", _fail)
    return attempted


@pytest.fixture
def make_client():
    from main import app

    def _make(repo, provider=None, news_source=None):
        app.dependency_overrides[deps.get_repository] = lambda: repo
        app.dependency_overrides[deps.get_provider] = lambda: provider or MockQuoteProvider()
        app.dependency_overrides[deps.get_news_provider] = lambda: news_source or MockNewsSource()
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(repo, make_client):
    return make_client(repo)


@pytest.fixture
def static_provider():
    return StaticQuoteProvider
