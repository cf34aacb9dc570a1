"""Portfolio Repository.

One interface over the dashboard's persistent state, with two backends:
- SqlAlchemyRepository: relational storage through a SQLAlchemy session
- InMemoryRepository: process-local dictionaries, for tests and demos

Both return the pydantic records from app.domain.schemas, never ORM rows, so
services do not care which backend they run against.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.domain import models, schemas

HOLDING_UPDATABLE_FIELDS = frozenset({
    "name",
    "shares",
    "avg_price",
    "current_price",
    "total_value",
    "gain_loss",
    "gain_loss_percent",
})

# Dialects with INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _check_holding_updates(updates: Dict) -> None:
    unknown = set(updates) - HOLDING_UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PortfolioRepository(ABC):
    """Storage interface used by the services and the API layer."""

    # Users

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[schemas.User]:
        pass

    @abstractmethod
    def upsert_user(self, user_id: str, **fields) -> schemas.User:
        pass

    # Portfolios

    @abstractmethod
    def list_portfolios(self, user_id: str) -> List[schemas.Portfolio]:
        pass

    @abstractmethod
    def get_portfolio(self, portfolio_id: int) -> Optional[schemas.Portfolio]:
        pass

    @abstractmethod
    def create_portfolio(self, user_id: str, name: str) -> schemas.Portfolio:
        pass

    @abstractmethod
    def update_portfolio_totals(
        self,
        portfolio_id: int,
        total_value: Decimal,
        total_gain_loss: Decimal,
        expected_version: int,
    ) -> bool:
        """Compare-and-swap the portfolio totals.

        Returns:
            True if the portfolio was still at expected_version and got written
            (its version is then expected_version + 1), False otherwise.
        """
        pass

    def get_or_create_user_portfolio(self, user_id: str, name: str) -> schemas.Portfolio:
        existing = self.list_portfolios(user_id)
        if existing:
            return existing[0]
        return self.create_portfolio(user_id, name)

    # Holdings

    @abstractmethod
    def list_holdings(self, portfolio_id: int) -> List[schemas.Holding]:
        pass

    @abstractmethod
    def get_holding(self, holding_id: int) -> Optional[schemas.Holding]:
        pass

    @abstractmethod
    def create_holding(
        self,
        portfolio_id: int,
        symbol: str,
        name: str,
        shares: Decimal,
        avg_price: Decimal,
        current_price: Decimal = Decimal("0"),
        total_value: Decimal = Decimal("0"),
        gain_loss: Decimal = Decimal("0"),
        gain_loss_percent: Decimal = Decimal("0"),
    ) -> schemas.Holding:
        pass

    @abstractmethod
    def update_holding(self, holding_id: int, **updates) -> Optional[schemas.Holding]:
        pass

    @abstractmethod
    def delete_holding(self, holding_id: int) -> bool:
        pass

    # Quote cache

    @abstractmethod
    def get_stock_price(self, symbol: str) -> Optional[schemas.StockPrice]:
        pass

    @abstractmethod
    def upsert_stock_price(self, quote: schemas.StockQuote) -> schemas.StockPrice:
        pass

    # Insights

    @abstractmethod
    def list_insights(self, portfolio_id: int) -> List[schemas.Insight]:
        pass

    @abstractmethod
    def replace_insights(self, portfolio_id: int, insights: Sequence[schemas.Insight]) -> List[schemas.Insight]:
        """Delete every insight of the portfolio and store the new batch."""
        pass

    # News

    @abstractmethod
    def count_news(self) -> int:
        pass

    @abstractmethod
    def latest_news(self, limit: int) -> List[schemas.NewsArticle]:
        pass

    @abstractmethod
    def add_news(self, articles: Iterable[schemas.NewsArticle]) -> List[schemas.NewsArticle]:
        pass

    def news_by_symbols(self, symbols: Sequence[str], limit: int) -> List[schemas.NewsArticle]:
        """Newest articles related to any of the symbols."""
        wanted = {s.upper() for s in symbols}
        matches = [
            article for article in self.latest_news(self.count_news())
            if wanted.intersection(article.relevant_symbols)
        ]
        return matches[:limit]

    # History

    @abstractmethod
    def add_snapshot(self, portfolio_id: int, total_value: Decimal, total_gain_loss: Decimal) -> schemas.PortfolioSnapshot:
        pass

    @abstractmethod
    def list_snapshots(self, portfolio_id: int, limit: int = 100) -> List[schemas.PortfolioSnapshot]:
        """Most recent snapshots, oldest first."""
        pass

    # Health

    @abstractmethod
    def ping(self) -> bool:
        pass


def _to_record(schema_cls, row):
    if row is None:
        return None
    return schema_cls.model_validate({c.key: getattr(row, c.key) for c in row.__table__.columns})


class SqlAlchemyRepository(PortfolioRepository):
    """Relational backend. Every write commits immediately.

    A failed write is rolled back before the error propagates, so the session
    stays usable for the rest of the request.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _write(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_user(self, user_id):
        return _to_record(schemas.User, self.db.get(models.User, user_id))

    def upsert_user(self, user_id, **fields):
        with self._write():
            user = self.db.get(models.User, user_id)
            if user is None:
                user = models.User(id=user_id, **fields)
                self.db.add(user)
            else:
                for key, value in fields.items():
                    setattr(user, key, value)
        self.db.refresh(user)
        return _to_record(schemas.User, user)

    def list_portfolios(self, user_id):
        rows = self.db.scalars(
            select(models.Portfolio)
            .where(models.Portfolio.user_id == user_id)
            .order_by(models.Portfolio.id)
        ).all()
        return [_to_record(schemas.Portfolio, row) for row in rows]

    def get_portfolio(self, portfolio_id):
        return _to_record(schemas.Portfolio, self.db.get(models.Portfolio, portfolio_id))

    def create_portfolio(self, user_id, name):
        portfolio = models.Portfolio(user_id=user_id, name=name)
        with self._write():
            self.db.add(portfolio)
        self.db.refresh(portfolio)
        return _to_record(schemas.Portfolio, portfolio)

    def update_portfolio_totals(self, portfolio_id, total_value, total_gain_loss, expected_version):
        with self._write():
            result = self.db.execute(
                update(models.Portfolio)
                .where(
                    models.Portfolio.id == portfolio_id,
                    models.Portfolio.version == expected_version,
                )
                .values(
                    total_value=total_value,
                    total_gain_loss=total_gain_loss,
                    version=expected_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def list_holdings(self, portfolio_id):
        rows = self.db.scalars(
            select(models.Holding)
            .where(models.Holding.portfolio_id == portfolio_id)
            .order_by(models.Holding.id)
        ).all()
        return [_to_record(schemas.Holding, row) for row in rows]

    def get_holding(self, holding_id):
        return _to_record(schemas.Holding, self.db.get(models.Holding, holding_id))

    def create_holding(self, portfolio_id, symbol, name, shares, avg_price,
                       current_price=Decimal("0"), total_value=Decimal("0"),
                       gain_loss=Decimal("0"), gain_loss_percent=Decimal("0")):
        holding = models.Holding(
            portfolio_id=portfolio_id,
            symbol=symbol,
            name=name,
            shares=shares,
            avg_price=avg_price,
            current_price=current_price,
            total_value=total_value,
            gain_loss=gain_loss,
            gain_loss_percent=gain_loss_percent,
        )
        with self._write():
            self.db.add(holding)
        self.db.refresh(holding)
        return _to_record(schemas.Holding, holding)

    def update_holding(self, holding_id, **updates):
        _check_holding_updates(updates)
        with self._write():
            holding = self.db.get(models.Holding, holding_id)
            if holding is None:
                return None
            for key, value in updates.items():
                setattr(holding, key, value)
        self.db.refresh(holding)
        return _to_record(schemas.Holding, holding)

    def delete_holding(self, holding_id):
        with self._write():
            result = self.db.execute(delete(models.Holding).where(models.Holding.id == holding_id))
        return result.rowcount > 0

    def get_stock_price(self, symbol):
        row = self.db.scalars(
            select(models.StockPrice).where(models.StockPrice.symbol == symbol.upper())
        ).first()
        return _to_record(schemas.StockPrice, row)

    def upsert_stock_price(self, quote):
        dialect = self.db.get_bind().dialect.name
        insert = UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"stock_prices upsert is not supported on {dialect}")

        stmt = insert(models.StockPrice).values(
            symbol=quote.symbol,
            price=Decimal(str(quote.price)),
            change=Decimal(str(quote.change)),
            change_percent=Decimal(str(quote.change_percent)),
            volume=quote.volume,
            timestamp=quote.timestamp or _utc_now(),
        )
        # Concurrent first sightings of a symbol resolve to one row, last write wins
        stmt = stmt.on_conflict_do_update(
            index_elements=[models.StockPrice.symbol],
            set_={
                column: stmt.excluded[column]
                for column in ("price", "change", "change_percent", "volume", "timestamp")
            },
        )
        with self._write():
            self.db.execute(stmt)
        return self.get_stock_price(quote.symbol)

    def list_insights(self, portfolio_id):
        rows = self.db.scalars(
            select(models.AIInsight)
            .where(models.AIInsight.portfolio_id == portfolio_id)
            .order_by(models.AIInsight.id)
        ).all()
        return [_to_record(schemas.Insight, row) for row in rows]

    def replace_insights(self, portfolio_id, insights):
        with self._write():
            self.db.execute(delete(models.AIInsight).where(models.AIInsight.portfolio_id == portfolio_id))
            self.db.add_all(
                models.AIInsight(
                    portfolio_id=portfolio_id,
                    type=insight.type,
                    title=insight.title,
                    description=insight.description,
                    confidence=Decimal(str(insight.confidence)),
                )
                for insight in insights
            )
        return self.list_insights(portfolio_id)

    def count_news(self):
        return self.db.scalar(select(func.count(models.MarketNews.id))) or 0

    def latest_news(self, limit):
        rows = self.db.scalars(
            select(models.MarketNews)
            .order_by(models.MarketNews.published_at.desc(), models.MarketNews.id.desc())
            .limit(limit)
        ).all()
        return [self._news_record(row) for row in rows]

    def add_news(self, articles):
        rows = [
            models.MarketNews(
                title=article.title,
                summary=article.summary,
                sentiment=article.sentiment,
                relevant_symbols=list(article.relevant_symbols),
                source=article.source,
                url=article.url,
                published_at=article.published_at,
            )
            for article in articles
        ]
        with self._write():
            self.db.add_all(rows)
        for row in rows:
            self.db.refresh(row)
        return [self._news_record(row) for row in rows]

    @staticmethod
    def _news_record(row):
        record = _to_record(schemas.NewsArticle, row)
        if record.relevant_symbols is None:
            record.relevant_symbols = []
        return record

    def add_snapshot(self, portfolio_id, total_value, total_gain_loss):
        snapshot = models.PortfolioHistory(
            portfolio_id=portfolio_id,
            total_value=total_value,
            total_gain_loss=total_gain_loss,
        )
        with self._write():
            self.db.add(snapshot)
        self.db.refresh(snapshot)
        return _to_record(schemas.PortfolioSnapshot, snapshot)

    def list_snapshots(self, portfolio_id, limit=100):
        rows = self.db.scalars(
            select(models.PortfolioHistory)
            .where(models.PortfolioHistory.portfolio_id == portfolio_id)
            .order_by(models.PortfolioHistory.id.desc())
            .limit(limit)
        ).all()
        return [_to_record(schemas.PortfolioSnapshot, row) for row in reversed(rows)]

    def ping(self):
        self.db.execute(text("SELECT 1"))
        return True


class InMemoryRepository(PortfolioRepository):
    """Dictionary backend. Records are copied on the way in and out."""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, schemas.User] = {}
        self._portfolios: Dict[int, schemas.Portfolio] = {}
        self._holdings: Dict[int, schemas.Holding] = {}
        self._prices: Dict[str, schemas.StockPrice] = {}
        self._insights: Dict[int, schemas.Insight] = {}
        self._news: Dict[int, schemas.NewsArticle] = {}
        self._snapshots: Dict[int, schemas.PortfolioSnapshot] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("portfolio", "holding", "insight", "news", "snapshot")
        }

    def _next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    def get_user(self, user_id):
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def upsert_user(self, user_id, **fields):
        with self._lock:
            now = _utc_now()
            user = self._users.get(user_id)
            if user is None:
                user = schemas.User(id=user_id, created_at=now, updated_at=now, **fields)
            else:
                user = user.model_copy(update={**fields, "updated_at": now})
            self._users[user_id] = user
            return user.model_copy()

    def list_portfolios(self, user_id):
        with self._lock:
            return [
                p.model_copy() for pid, p in sorted(self._portfolios.items())
                if p.user_id == user_id
            ]

    def get_portfolio(self, portfolio_id):
        with self._lock:
            portfolio = self._portfolios.get(portfolio_id)
            return portfolio.model_copy() if portfolio else None

    def create_portfolio(self, user_id, name):
        with self._lock:
            portfolio = schemas.Portfolio(
                id=self._next_id("portfolio"),
                user_id=user_id,
                name=name,
                created_at=_utc_now(),
            )
            self._portfolios[portfolio.id] = portfolio
            return portfolio.model_copy()

    def update_portfolio_totals(self, portfolio_id, total_value, total_gain_loss, expected_version):
        with self._lock:
            portfolio = self._portfolios.get(portfolio_id)
            if portfolio is None or portfolio.version != expected_version:
                return False
            self._portfolios[portfolio_id] = portfolio.model_copy(update={
                "total_value": total_value,
                "total_gain_loss": total_gain_loss,
                "version": expected_version + 1,
            })
            return True

    def list_holdings(self, portfolio_id):
        with self._lock:
            return [
                h.model_copy() for hid, h in sorted(self._holdings.items())
                if h.portfolio_id == portfolio_id
            ]

    def get_holding(self, holding_id):
        with self._lock:
            holding = self._holdings.get(holding_id)
            return holding.model_copy() if holding else None

    def create_holding(self, portfolio_id, symbol, name, shares, avg_price,
                       current_price=Decimal("0"), total_value=Decimal("0"),
                       gain_loss=Decimal("0"), gain_loss_percent=Decimal("0")):
        with self._lock:
            now = _utc_now()
            holding = schemas.Holding(
                id=self._next_id("holding"),
                portfolio_id=portfolio_id,
                symbol=symbol,
                name=name,
                shares=shares,
                avg_price=avg_price,
                current_price=current_price,
                total_value=total_value,
                gain_loss=gain_loss,
                gain_loss_percent=gain_loss_percent,
                created_at=now,
                updated_at=now,
            )
            self._holdings[holding.id] = holding
            return holding.model_copy()

    def update_holding(self, holding_id, **updates):
        _check_holding_updates(updates)
        with self._lock:
            holding = self._holdings.get(holding_id)
            if holding is None:
                return None
            holding = holding.model_copy(update={**updates, "updated_at": _utc_now()})
            self._holdings[holding_id] = holding
            return holding.model_copy()

    def delete_holding(self, holding_id):
        with self._lock:
            return self._holdings.pop(holding_id, None) is not None

    def get_stock_price(self, symbol):
        with self._lock:
            price = self._prices.get(symbol.upper())
            return price.model_copy() if price else None

    def upsert_stock_price(self, quote):
        with self._lock:
            price = schemas.StockPrice(
                symbol=quote.symbol,
                price=Decimal(str(quote.price)),
                change=Decimal(str(quote.change)),
                change_percent=Decimal(str(quote.change_percent)),
                volume=quote.volume,
                timestamp=quote.timestamp or _utc_now(),
            )
            self._prices[quote.symbol] = price
            return price.model_copy()

    def list_insights(self, portfolio_id):
        with self._lock:
            return [
                i.model_copy() for iid, i in sorted(self._insights.items())
                if i.portfolio_id == portfolio_id
            ]

    def replace_insights(self, portfolio_id, insights):
        with self._lock:
            for insight_id in [iid for iid, i in self._insights.items() if i.portfolio_id == portfolio_id]:
                del self._insights[insight_id]
            now = _utc_now()
            for insight in insights:
                stored = insight.model_copy(update={
                    "id": self._next_id("insight"),
                    "portfolio_id": portfolio_id,
                    "created_at": now,
                })
                self._insights[stored.id] = stored
            return self.list_insights(portfolio_id)

    def count_news(self):
        with self._lock:
            return len(self._news)

    def latest_news(self, limit):
        with self._lock:
            ordered = sorted(
                self._news.values(),
                key=lambda a: (a.published_at, a.id),
                reverse=True,
            )
            return [a.model_copy(deep=True) for a in ordered[:limit]]

    def add_news(self, articles):
        with self._lock:
            stored = []
            for article in articles:
                record = article.model_copy(update={"id": self._next_id("news")}, deep=True)
                self._news[record.id] = record
                stored.append(record.model_copy(deep=True))
            return stored

    def add_snapshot(self, portfolio_id, total_value, total_gain_loss):
        with self._lock:
            snapshot = schemas.PortfolioSnapshot(
                id=self._next_id("snapshot"),
                portfolio_id=portfolio_id,
                total_value=total_value,
                total_gain_loss=total_gain_loss,
                timestamp=_utc_now(),
            )
            self._snapshots[snapshot.id] = snapshot
            return snapshot.model_copy()

    def list_snapshots(self, portfolio_id, limit=100):
        with self._lock:
            rows = [s for sid, s in sorted(self._snapshots.items()) if s.portfolio_id == portfolio_id]
            return [s.model_copy() for s in rows[-limit:]] if limit > 0 else []

    def ping(self):
        return True
