from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import UserContext, get_current_user, get_repository
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.services import portfolio_service
from app.services.insight_service import InsightService

router = APIRouter()


@router.get("/insights/{portfolio_id}", response_model=List[schemas.Insight])
def read_insights(
    portfolio_id: int,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    portfolio = portfolio_service.get_owned_portfolio(repo, portfolio_id, user.user_id)
    return InsightService(repo).get_insights(portfolio)


@router.post("/insights/{portfolio_id}/regenerate", response_model=List[schemas.Insight])
def regenerate_insights(
    portfolio_id: int,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    portfolio = portfolio_service.get_owned_portfolio(repo, portfolio_id, user.user_id)
    return InsightService(repo).regenerate(portfolio)
