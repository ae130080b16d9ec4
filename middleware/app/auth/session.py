"""
Session Token Plumbing
======================

Moves provider-issued tokens between HTTP requests and the auth actions.

Tokens are never created or verified here; the identity provider owns them.
This module only:
- Reads the caller's access token from the Authorization header or cookie
- Writes the provider session tokens to cookies after sign in
- Clears those cookies after sign out
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Header, Request, Response

from app.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_SESSION_MAX_AGE = 3600


def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """
    Extract Bearer token from Authorization header.

    Args:
        authorization: Authorization header value

    Returns:
        Extracted token string, or None if the header is absent or malformed
    """
    if not authorization:
        return None

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.debug("Ignoring malformed Authorization header")
        return None

    return parts[1]


def extract_access_token(
    authorization: Optional[str],
    cookie_token: Optional[str],
) -> Optional[str]:
    """
    Pick the caller's access token.

    A well-formed Bearer header wins over the session cookie.
    """
    return extract_token_from_header(authorization) or cookie_token or None


async def get_access_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """FastAPI dependency resolving the caller's access token (or None)."""
    settings = get_settings()
    cookie_token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    return extract_access_token(authorization, cookie_token)


def set_session_cookies(response: Response, session: Dict[str, Any]) -> None:
    """
    Forward the provider session tokens to the browser as cookies.

    Args:
        response: Outgoing response
        session: Provider session (``access_token``, ``refresh_token``, ``expires_in``)
    """
    settings = get_settings()
    try:
        max_age = int(session.get("expires_in") or DEFAULT_SESSION_MAX_AGE)
    except (TypeError, ValueError):
        logger.warning(
            "[Auth] Unusable expires_in from provider, using default cookie lifetime",
            extra={"expires_in": repr(session.get("expires_in"))}
        )
        max_age = DEFAULT_SESSION_MAX_AGE

    cookies = (
        (settings.ACCESS_TOKEN_COOKIE, session.get("access_token")),
        (settings.REFRESH_TOKEN_COOKIE, session.get("refresh_token")),
    )
    for name, value in cookies:
        if not value:
            continue
        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
            path="/",
        )


def clear_session_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (settings.ACCESS_TOKEN_COOKIE, settings.REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key=name,
            path="/",
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )
