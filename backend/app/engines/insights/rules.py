"""Rule-based portfolio insights.

Three observations per portfolio, always in the same order:
concentration risk, sector diversification, overall performance.
"""

from typing import List, Sequence, Tuple

from app.data.symbols import TECH_SYMBOLS
from app.domain import schemas

MAX_TITLE_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 150

CONCENTRATION_CONFIDENCE = 0.85
DIVERSIFICATION_CONFIDENCE = 0.80
PERFORMANCE_CONFIDENCE = 0.75


def make_insight(insight_type: str, title: str, description: str, confidence: float) -> schemas.Insight:
    return schemas.Insight(
        type=insight_type,
        title=title[:MAX_TITLE_LENGTH],
        description=description[:MAX_DESCRIPTION_LENGTH],
        confidence=min(1.0, max(0.0, confidence)),
    )


def portfolio_weights(holdings: Sequence[schemas.Holding], total_value: float) -> List[Tuple[schemas.Holding, float]]:
    """Each holding's share of the portfolio value, in percent."""
    return [
        (h, float(h.total_value) / total_value * 100 if total_value > 0 else 0.0)
        for h in holdings
    ]


def portfolio_return(total_value: float, total_gain_loss: float) -> float:
    cost_basis = total_value - total_gain_loss
    if cost_basis <= 0:
        return 0.0
    return total_gain_loss / cost_basis * 100


def generate_insights(portfolio: schemas.Portfolio, holdings: Sequence[schemas.Holding]) -> List[schemas.Insight]:
    """
    Build the insight batch for a portfolio.

    Args:
        portfolio: Portfolio with aggregated totals
        holdings: Its current holdings

    Returns:
        Exactly three insights, or an empty list when there are no holdings
    """
    if not holdings:
        return []

    total_value = float(portfolio.total_value)
    weights = portfolio_weights(holdings, total_value)

    largest, largest_weight = max(weights, key=lambda pair: pair[1])
    tech_weight = sum(weight for h, weight in weights if h.symbol.upper() in TECH_SYMBOLS)
    best = max(holdings, key=lambda h: h.gain_loss_percent)
    worst = min(holdings, key=lambda h: h.gain_loss_percent)
    ret = portfolio_return(total_value, float(portfolio.total_gain_loss))

    return [
        make_insight(
            "risk",
            "Portfolio Concentration Risk",
            f"Your largest position ({largest.symbol}) represents {largest_weight:.1f}% of your portfolio. "
            f"Consider reducing concentration risk.",
            CONCENTRATION_CONFIDENCE,
        ),
        make_insight(
            "opportunity",
            "Diversification Opportunity",
            f"Technology stocks make up {tech_weight:.1f}% of your portfolio. "
            f"Consider diversifying into other sectors for better risk distribution.",
            DIVERSIFICATION_CONFIDENCE,
        ),
        make_insight(
            "trend",
            "Performance Analysis",
            f"Your portfolio has generated a {ret:.2f}% return. "
            f"Best: {best.symbol} ({float(best.gain_loss_percent):+.2f}%), "
            f"worst: {worst.symbol} ({float(worst.gain_loss_percent):+.2f}%).",
            PERFORMANCE_CONFIDENCE,
        ),
    ]
