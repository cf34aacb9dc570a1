"""Holdings valuation pipeline and portfolio aggregation.

HoldingsValuationPipeline.refresh walks one portfolio through:
fetching holdings, fetching quotes, recomputing valuations, persisting changed
holdings, recomputing portfolio totals. PortfolioAggregator owns the last step
and is also run after holdings are added or deleted.
"""

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from app.core.exceptions import ConcurrencyConflictError, NotFoundError
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.engines.valuation.core import calculate_holding_valuation, sum_money
from app.services.market_data import MarketDataService, run_blocking
from config.settings import get_settings
from core.error_handler import ErrorHandler
from core.structured_logger import get_structured_logger

logger = get_structured_logger("ValuationPipeline")


class PipelineStage(str, Enum):
    FETCHING_HOLDINGS = "fetching_holdings"
    FETCHING_QUOTES = "fetching_quotes"
    RECOMPUTING_VALUATIONS = "recomputing_valuations"
    PERSISTING_HOLDINGS = "persisting_holdings"
    RECOMPUTING_TOTALS = "recomputing_totals"
    RESPONDING = "responding"


def _enter(stage: PipelineStage, portfolio_id: int, **fields) -> None:
    logger.debug(f"Portfolio {portfolio_id}: {stage.value}", portfolio_id=portfolio_id, stage=stage.value, **fields)


@dataclass
class RefreshResult:
    portfolio: schemas.Portfolio
    holdings: List[schemas.Holding]
    updated_symbols: List[str] = field(default_factory=list)
    skipped_symbols: List[str] = field(default_factory=list)


class PortfolioAggregator:
    """Re-sums holdings into the portfolio totals with a version compare-and-swap."""

    def __init__(self, repo: PortfolioRepository, max_attempts: Optional[int] = None):
        self.repo = repo
        self.max_attempts = max_attempts or get_settings().aggregate_max_attempts

    def aggregate(self, portfolio_id: int) -> schemas.Portfolio:
        """
        Write the sums of the holdings' total_value and gain_loss to the portfolio.

        A conflicting concurrent write makes the CAS fail; holdings are then
        re-read and re-summed, up to max_attempts times.

        Raises:
            NotFoundError: If the portfolio does not exist
            ConcurrencyConflictError: If every attempt lost the race
        """
        for attempt in range(1, self.max_attempts + 1):
            portfolio = self.repo.get_portfolio(portfolio_id)
            if portfolio is None:
                raise NotFoundError("Portfolio not found")

            holdings = self.repo.list_holdings(portfolio_id)
            total_value = sum_money(h.total_value for h in holdings)
            total_gain_loss = sum_money(h.gain_loss for h in holdings)

            if self.repo.update_portfolio_totals(portfolio_id, total_value, total_gain_loss, portfolio.version):
                self._record_snapshot(portfolio_id, total_value, total_gain_loss)
                return self.repo.get_portfolio(portfolio_id)

            logger.warning(
                f"Version conflict on portfolio {portfolio_id} (attempt {attempt}/{self.max_attempts})",
                portfolio_id=portfolio_id,
                attempt=attempt,
            )

        raise ConcurrencyConflictError(
            f"Portfolio {portfolio_id} was modified concurrently; totals not updated"
        )

    def _record_snapshot(self, portfolio_id, total_value, total_gain_loss) -> None:
        latest = self.repo.list_snapshots(portfolio_id, limit=1)
        if latest and latest[0].total_value == total_value and latest[0].total_gain_loss == total_gain_loss:
            return
        self.repo.add_snapshot(portfolio_id, total_value, total_gain_loss)


class HoldingsValuationPipeline:
    """
    Revalue every holding of a portfolio at current quotes.

    Symbols without a quote are skipped and keep their stored values; one bad
    symbol never fails the whole refresh. Re-running is safe: values are always
    recomputed from the stored shares and average price. Only the quote fan-out
    runs on the event loop; store reads and writes go to a worker thread.
    """

    def __init__(
        self,
        repo: PortfolioRepository,
        market_data: MarketDataService,
        aggregator: Optional[PortfolioAggregator] = None,
    ):
        self.repo = repo
        self.market_data = market_data
        self.aggregator = aggregator or PortfolioAggregator(repo)

    async def refresh(self, portfolio_id: int) -> RefreshResult:
        start = time.perf_counter()

        _enter(PipelineStage.FETCHING_HOLDINGS, portfolio_id)
        holdings = await run_blocking(self.repo.list_holdings, portfolio_id)

        _enter(PipelineStage.FETCHING_QUOTES, portfolio_id, holdings=len(holdings))
        quotes = await self.market_data.fetch_quotes([h.symbol for h in holdings])

        result = await run_blocking(self._apply_quotes, portfolio_id, holdings, quotes)

        logger.performance(
            "valuation_refresh",
            (time.perf_counter() - start) * 1000,
            success=not result.skipped_symbols,
            portfolio_id=portfolio_id,
            updated=len(result.updated_symbols),
            skipped=len(result.skipped_symbols),
        )
        return result

    def _apply_quotes(
        self,
        portfolio_id: int,
        holdings: List[schemas.Holding],
        quotes: Dict[str, Optional[schemas.StockQuote]],
    ) -> RefreshResult:
        updated: List[str] = []
        skipped: List[str] = []

        _enter(PipelineStage.RECOMPUTING_VALUATIONS, portfolio_id)
        changed = []
        for holding in holdings:
            quote = quotes.get(holding.symbol.upper())
            if quote is None:
                if holding.symbol not in skipped:
                    logger.warning(f"No quote for {holding.symbol}, keeping stored values", symbol=holding.symbol)
                    skipped.append(holding.symbol)
                continue

            valuation = calculate_holding_valuation(holding.shares, holding.avg_price, quote.price)
            if (
                holding.current_price != valuation.current_price
                or holding.total_value != valuation.total_value
                or holding.gain_loss != valuation.gain_loss
                or holding.gain_loss_percent != valuation.gain_loss_percent
            ):
                changed.append((holding, valuation))

        _enter(PipelineStage.PERSISTING_HOLDINGS, portfolio_id, changed=len(changed))
        for holding, valuation in changed:
            try:
                if self.repo.update_holding(holding.id, **asdict(valuation)) is None:
                    # Deleted while quotes were in flight
                    continue
            except Exception as e:
                ErrorHandler.log_error(e, f"holding update for {holding.symbol}", "ValuationPipeline")
                if holding.symbol not in skipped:
                    skipped.append(holding.symbol)
                continue
            if holding.symbol not in updated:
                updated.append(holding.symbol)

        _enter(PipelineStage.RECOMPUTING_TOTALS, portfolio_id)
        portfolio = self.aggregator.aggregate(portfolio_id)

        _enter(PipelineStage.RESPONDING, portfolio_id)
        return RefreshResult(
            portfolio=portfolio,
            holdings=self.repo.list_holdings(portfolio_id),
            updated_symbols=updated,
            skipped_symbols=skipped,
        )
