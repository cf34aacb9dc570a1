from fastapi import APIRouter, Depends

from app.api.deps import UserContext, get_current_user, get_repository
from app.data.repository import PortfolioRepository
from app.domain import schemas
from app.services import portfolio_service

router = APIRouter()


@router.delete("/holdings/{holding_id}", response_model=schemas.DeleteResponse)
def delete_holding(
    holding_id: int,
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    portfolio_service.delete_holding(repo, holding_id, user.user_id)
    return schemas.DeleteResponse(success=True)
