from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

import httpx


GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthError(Exception):
    """Raised when the Google OAuth exchange or profile lookup fails."""


def build_authorization_url(client_id: str, redirect_uri: str, state: str) -> str:
    """Return the Google consent URL requesting profile and email scopes."""

    query = urlencode(
        {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": "openid profile email",
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
    )
    return f"{GOOGLE_AUTHORIZE_URL}?{query}"


def exchange_code_for_token(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
) -> str:
    """Exchange an authorization code for an access token."""

    try:
        response = httpx.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
            timeout=15.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise GoogleOAuthError("Google token request failed") from exc

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise GoogleOAuthError("Google token response is invalid")

    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise GoogleOAuthError("Google token response is missing access_token")

    return access_token


def fetch_google_profile(access_token: str) -> dict[str, str | None]:
    """Fetch the signed-in Google account's identity fields."""

    try:
        response = httpx.get(
            GOOGLE_USERINFO_URL,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=15.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise GoogleOAuthError("Google profile request failed") from exc

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise GoogleOAuthError("Google profile response is invalid")

    raw_sub = payload.get("sub")
    if not isinstance(raw_sub, str) or not raw_sub:
        raise GoogleOAuthError("Google profile response is missing required fields")

    raw_name = payload.get("name")
    raw_email = payload.get("email")
    raw_picture = payload.get("picture")

    return {
        "google_id": raw_sub,
        "name": raw_name if isinstance(raw_name, str) and raw_name else raw_sub,
        "email": raw_email if isinstance(raw_email, str) else "",
        "avatar_url": raw_picture if isinstance(raw_picture, str) else None,
    }
