from dataclasses import dataclass

from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from sqlalchemy.orm import Session

from heatmap_tracker.db import get_db
from heatmap_tracker.models import User
from heatmap_tracker.repository import find_user_by_id


SESSION_USER_KEY = "user_id"
SESSION_STATE_KEY = "oauth_state"


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated identity passed explicitly to route handlers."""

    id: str
    name: str
    email: str
    avatar_url: str | None = None

    @classmethod
    def from_model(cls, user: User) -> "CurrentUser":
        return cls(
            id=user.id, name=user.name, email=user.email, avatar_url=user.avatar_url
        )


def login_session(request: Request, user_id: str) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user_id


def logout_session(request: Request) -> None:
    request.session.clear()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> CurrentUser:
    """Resolve the signed-in user from the session cookie.

    Raises:
        HTTPException: If no session exists or its user no longer exists.
    """

    user_id = request.session.get(SESSION_USER_KEY)
    if not isinstance(user_id, str) or not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    user = find_user_by_id(db, user_id)
    if user is None:
        logout_session(request)
        raise HTTPException(status_code=401, detail="Authentication required")

    return CurrentUser.from_model(user)
