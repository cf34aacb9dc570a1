from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_market_data
from app.domain import schemas
from app.services.market_data import MarketDataService

router = APIRouter()


@router.get("/stocks/{symbol}", response_model=schemas.StockQuote)
async def read_stock(symbol: str, market_data: MarketDataService = Depends(get_market_data)):
    return await market_data.get_quote(symbol.strip().upper())


@router.get("/stocks/{symbol}/history", response_model=List[schemas.HistoricalPoint])
async def read_stock_history(
    symbol: str,
    period: schemas.Period = "1d",
    market_data: MarketDataService = Depends(get_market_data),
):
    """
    Synthetic OHLCV bars for the symbol.
    """
    return await market_data.get_history(symbol.strip().upper(), period)


@router.get("/search", response_model=List[schemas.SearchResult])
@router.get("/search/stocks", response_model=List[schemas.SearchResult])
def search_stocks(q: str = "", market_data: MarketDataService = Depends(get_market_data)):
    return market_data.search(q)
