from fastapi import APIRouter, Depends

from app.api.deps import UserContext, get_current_user, get_repository
from app.core.exceptions import NotFoundError
from app.data.repository import PortfolioRepository
from app.domain import schemas

router = APIRouter()


@router.get("/users/me", response_model=schemas.User)
def read_current_user(
    user: UserContext = Depends(get_current_user),
    repo: PortfolioRepository = Depends(get_repository),
):
    record = repo.get_user(user.user_id)
    if record is None:
        raise NotFoundError("User not found")
    return record
