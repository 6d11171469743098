from fastapi import APIRouter
from fastapi import Depends

from heatmap_tracker.api.schemas.user import CurrentUserResponse
from heatmap_tracker.api.schemas.user import UserResponse
from heatmap_tracker.core.security import CurrentUser
from heatmap_tracker.core.security import get_current_user


router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/me")
def read_current_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUserResponse:
    """Return the signed-in user's profile."""

    return CurrentUserResponse(
        user=UserResponse(
            id=user.id, name=user.name, email=user.email, avatar_url=user.avatar_url
        )
    )
