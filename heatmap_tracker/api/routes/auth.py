import secrets

import structlog
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi import Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from heatmap_tracker.api.dependencies import get_settings
from heatmap_tracker.clients.google_oauth import GoogleOAuthError
from heatmap_tracker.clients.google_oauth import build_authorization_url
from heatmap_tracker.clients.google_oauth import exchange_code_for_token
from heatmap_tracker.clients.google_oauth import fetch_google_profile
from heatmap_tracker.core.security import SESSION_STATE_KEY
from heatmap_tracker.core.security import login_session
from heatmap_tracker.core.security import logout_session
from heatmap_tracker.db import get_db
from heatmap_tracker.repository import upsert_google_user
from heatmap_tracker.settings import Settings


router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger(__name__)


@router.get("/google")
def google_login(
    request: Request, settings: Settings = Depends(get_settings)
) -> RedirectResponse:
    """Redirect the browser to the Google consent screen."""

    if not settings.google_client_id:
        raise HTTPException(status_code=503, detail="Google login is not configured")

    state = secrets.token_urlsafe(24)
    request.session[SESSION_STATE_KEY] = state
    url = build_authorization_url(
        client_id=settings.google_client_id,
        redirect_uri=settings.google_callback_url,
        state=state,
    )
    return RedirectResponse(url, status_code=302)


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    """Finish the OAuth flow, sign the user in and return to the client."""

    failure_url = f"{settings.client_url}/login?error=oauth"
    expected_state = request.session.pop(SESSION_STATE_KEY, None)

    if not code or not state or state != expected_state:
        log.warning("oauth_callback_rejected", reason="state_mismatch")
        return RedirectResponse(failure_url, status_code=302)

    try:
        access_token = exchange_code_for_token(
            code=code,
            client_id=settings.google_client_id or "",
            client_secret=settings.google_client_secret or "",
            redirect_uri=settings.google_callback_url,
        )
        profile = fetch_google_profile(access_token)
    except GoogleOAuthError as exc:
        log.warning("oauth_callback_failed", error=str(exc))
        return RedirectResponse(failure_url, status_code=302)

    user = upsert_google_user(
        db,
        google_id=profile["google_id"] or "",
        name=profile["name"] or "",
        email=profile["email"] or "",
        avatar_url=profile["avatar_url"],
    )
    login_session(request, user.id)
    log.info("user_signed_in", user_id=user.id)
    return RedirectResponse(settings.client_url, status_code=302)


@router.post("/logout", status_code=204)
def logout(request: Request) -> Response:
    """Drop the session cookie contents."""

    logout_session(request)
    return Response(status_code=204)
