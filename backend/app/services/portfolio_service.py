from typing import List, Optional

from app.core.exceptions import InvalidSymbolError, NotFoundError
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.engines.market.history import generate_performance_series
from app.engines.valuation.core import calculate_holding_valuation
from app.services.market_data import MarketDataService, run_blocking
from app.services.valuation_service import PortfolioAggregator
from config.settings import get_settings
from core.structured_logger import get_structured_logger

logger = get_structured_logger("PortfolioService")


def ensure_user(repo: PortfolioRepository, user_id: str) -> schemas.User:
    """Create the user and its default portfolio the first time the id is seen."""
    user = repo.get_user(user_id)
    if user is None:
        user = repo.upsert_user(user_id)
        logger.info(f"Created user {user_id}", user_id=user_id)
    repo.get_or_create_user_portfolio(user_id, get_settings().default_portfolio_name)
    return user


def get_portfolios(repo: PortfolioRepository, user_id: str) -> List[schemas.Portfolio]:
    return repo.list_portfolios(user_id)


def get_owned_portfolio(repo: PortfolioRepository, portfolio_id: int, user_id: str) -> schemas.Portfolio:
    # Someone else's portfolio is indistinguishable from a missing one
    portfolio = repo.get_portfolio(portfolio_id)
    if portfolio is None or portfolio.user_id != user_id:
        raise NotFoundError("Portfolio not found")
    return portfolio


def get_owned_holding(repo: PortfolioRepository, holding_id: int, user_id: str) -> schemas.Holding:
    holding = repo.get_holding(holding_id)
    if holding is None:
        raise NotFoundError("Holding not found")
    portfolio = repo.get_portfolio(holding.portfolio_id)
    if portfolio is None or portfolio.user_id != user_id:
        raise NotFoundError("Holding not found")
    return holding


async def add_holding(
    repo: PortfolioRepository,
    market_data: MarketDataService,
    portfolio_id: int,
    user_id: str,
    data: schemas.HoldingCreate,
) -> schemas.Holding:
    """
    Value and store a new position, then refresh the portfolio totals.

    Store calls run off the event loop; only the quote lookup is awaited on it.

    Raises:
        NotFoundError: If the portfolio does not exist or is not owned by user_id
        InvalidSymbolError: If no provider knows the symbol; nothing is stored
    """
    await run_blocking(get_owned_portfolio, repo, portfolio_id, user_id)

    quote = await market_data.fetch_quote(data.symbol)
    if quote is None:
        raise InvalidSymbolError(data.symbol)

    valuation = calculate_holding_valuation(data.shares, data.avg_price, quote.price)
    holding = await run_blocking(
        repo.create_holding,
        portfolio_id=portfolio_id,
        symbol=data.symbol,
        name=data.name or quote.name,
        shares=data.shares,
        avg_price=data.avg_price,
        current_price=valuation.current_price,
        total_value=valuation.total_value,
        gain_loss=valuation.gain_loss,
        gain_loss_percent=valuation.gain_loss_percent,
    )
    logger.info(
        f"Added {data.shares} {data.symbol} to portfolio {portfolio_id}",
        portfolio_id=portfolio_id,
        holding_id=holding.id,
    )

    await run_blocking(PortfolioAggregator(repo).aggregate, portfolio_id)
    return holding


def delete_holding(repo: PortfolioRepository, holding_id: int, user_id: str) -> None:
    holding = get_owned_holding(repo, holding_id, user_id)
    if not repo.delete_holding(holding_id):
        raise NotFoundError("Holding not found")
    logger.info(f"Deleted holding {holding_id}", portfolio_id=holding.portfolio_id, holding_id=holding_id)
    PortfolioAggregator(repo).aggregate(holding.portfolio_id)


def get_performance(
    repo: PortfolioRepository,
    portfolio_id: int,
    user_id: str,
    period: str = "1d",
) -> List[schemas.PerformancePoint]:
    get_owned_portfolio(repo, portfolio_id, user_id)
    return generate_performance_series(repo.list_holdings(portfolio_id), period)


def get_history(
    repo: PortfolioRepository,
    portfolio_id: int,
    user_id: str,
    limit: Optional[int] = None,
) -> List[schemas.PortfolioSnapshot]:
    get_owned_portfolio(repo, portfolio_id, user_id)
    return repo.list_snapshots(portfolio_id, limit=limit or 100)
