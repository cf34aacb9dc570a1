"""Request-scoped dependencies shared by the endpoints."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core import database
from app.core.exceptions import ValidationError
from app.data.providers import QuoteProvider, get_quote_provider
from app.data.repository import InMemoryRepository, PortfolioRepository, SqlAlchemyRepository
from app.services import portfolio_service
from app.services.market_data import MarketDataService
from app.services.news_service import NewsSource, get_news_source
from config.settings import get_settings

MAX_USER_ID_LENGTH = 128


@dataclass(frozen=True)
class UserContext:
    user_id: str


@lru_cache()
def get_memory_repository() -> InMemoryRepository:
    return InMemoryRepository()


def get_repository(db: Session = Depends(database.get_db)) -> PortfolioRepository:
    if get_settings().storage_backend == "memory":
        return get_memory_repository()
    return SqlAlchemyRepository(db)


@lru_cache()
def get_provider() -> QuoteProvider:
    return get_quote_provider()


@lru_cache()
def get_news_provider() -> NewsSource:
    return get_news_source()


def get_market_data(
    repo: PortfolioRepository = Depends(get_repository),
    provider: QuoteProvider = Depends(get_provider),
) -> MarketDataService:
    return MarketDataService(repo, provider)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    repo: PortfolioRepository = Depends(get_repository),
) -> UserContext:
    """Identity from the X-User-ID header, or the configured default user.

    The user and its default portfolio are created on first sight.
    """
    user_id = (x_user_id or "").strip() or get_settings().default_user_id
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise ValidationError("X-User-ID header is too long")
    portfolio_service.ensure_user(repo, user_id)
    return UserContext(user_id=user_id)
