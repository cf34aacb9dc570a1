from typing import List

from fastapi import APIRouter, Depends, Query

from app.api.deps import UserContext, get_current_user, get_market_data, get_repository
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.services import portfolio_service
from app.services.market_data import MarketDataService, run_blocking
from app.services.valuation_service import HoldingsValuationPipeline

router = APIRouter()


@router.get("/portfolios", response_model=List[schemas.Portfolio])
def read_portfolios(
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    return portfolio_service.get_portfolios(repo, user.user_id)


@router.get("/portfolios/{portfolio_id}", response_model=schemas.Portfolio)
def read_portfolio(
    portfolio_id: int,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    return portfolio_service.get_owned_portfolio(repo, portfolio_id, user.user_id)


@router.get("/portfolios/{portfolio_id}/holdings", response_model=List[schemas.Holding])
async def read_holdings(
    portfolio_id: int,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
    market_data: MarketDataService = Depends(get_market_data),
):
    """Revalue the holdings at current quotes and return them."""
    await run_blocking(portfolio_service.get_owned_portfolio, repo, portfolio_id, user.user_id)
    result = await HoldingsValuationPipeline(repo, market_data).refresh(portfolio_id)
    return result.holdings


@router.post("/portfolios/{portfolio_id}/holdings", response_model=schemas.Holding)
async def create_holding(
    portfolio_id: int,
    data: schemas.HoldingCreate,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
    market_data: MarketDataService = Depends(get_market_data),
):
    return await portfolio_service.add_holding(repo, market_data, portfolio_id, user.user_id, data)


@router.get("/portfolios/{portfolio_id}/performance", response_model=List[schemas.PerformancePoint])
def read_performance(
    portfolio_id: int,
    period: schemas.Period = "1d",
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    return portfolio_service.get_performance(repo, portfolio_id, user.user_id, period)


@router.get("/portfolios/{portfolio_id}/history", response_model=List[schemas.PortfolioSnapshot])
def read_history(
    portfolio_id: int,
    limit: int = Query(100, ge=1, le=1000),
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    return portfolio_service.get_history(repo, portfolio_id, user.user_id, limit)
