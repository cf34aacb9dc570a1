from typing import List

from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.engines.insights.rules import generate_insights
from core.structured_logger import get_structured_logger

logger = get_structured_logger("InsightService")


class InsightService:
    """Stored insights per portfolio, generated on first read."""

    def __init__(self, repo: PortfolioRepository):
        self.repo = repo

    def get_insights(self, portfolio: schemas.Portfolio) -> List[schemas.Insight]:
        stored = self.repo.list_insights(portfolio.id)
        if stored:
            return stored
        if not self.repo.list_holdings(portfolio.id):
            return []
        return self.regenerate(portfolio)

    def regenerate(self, portfolio: schemas.Portfolio) -> List[schemas.Insight]:
        """Replace every stored insight of the portfolio with a fresh batch."""
        batch = generate_insights(portfolio, self.repo.list_holdings(portfolio.id))
        stored = self.repo.replace_insights(portfolio.id, batch)
        logger.info(f"Generated {len(stored)} insights for portfolio {portfolio.id}", portfolio_id=portfolio.id)
        return stored
