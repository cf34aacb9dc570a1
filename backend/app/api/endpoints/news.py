from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_news_provider, get_repository
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.services.news_service import NewsService, NewsSource

router = APIRouter()


@router.get("/news", response_model=List[schemas.NewsArticle])
def read_news(
    symbols: Optional[str] = None,
    limit: Optional[int] = None,
    repo: PortfolioRepository = Depends(get_repository),
    source: NewsSource = Depends(get_news_provider),
):
    """
    Newest market news.

    - **symbols**: comma-separated tickers; only related articles are returned
    - **limit**: number of articles (default 10, capped at 50)
    """
    symbol_list = symbols.split(",") if symbols else None
    return NewsService(repo, source).get_news(symbol_list, limit)
