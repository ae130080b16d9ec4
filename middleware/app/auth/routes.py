"""
Authentication routes exposing the auth actions over HTTP.

Every route answers 200 with the action's envelope; ``success`` in the body
is the outcome. Provider tokens travel as cookies (set on sign in, cleared
on sign out) or in a Bearer Authorization header.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response
from fastapi.responses import RedirectResponse

from app.auth import actions
from app.auth.session import (
    clear_session_cookies,
    get_access_token,
    set_session_cookies,
)
from app.models import AuthResponse, AuthSessionResponse, OAuthResponse


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)


# =============================================================================
# Sign Up / Sign In
# =============================================================================

@auth_router.post("/signup", response_model=AuthResponse, response_model_exclude_none=True)
async def signup(payload: Any = Body(None)):
    """
    Create an account with email and password.

    Body:
        email, password, optional confirmPassword
    """
    return await actions.signup(payload)


@auth_router.post("/signin", response_model=AuthResponse, response_model_exclude_none=True)
async def signin(response: Response, payload: Any = Body(None)):
    """
    Sign in with email and password.

    On success the provider session tokens are set as httponly cookies.
    """
    result = await actions.signin(payload)

    if result.success and result.session:
        set_session_cookies(response, result.session)

    return result


@auth_router.get("/oauth/{provider}", response_model=OAuthResponse, response_model_exclude_none=True)
async def oauth(
    provider: str,
    redirect: bool = Query(False, description="Redirect straight to the provider on success"),
):
    """
    Start an OAuth sign in.

    Returns the envelope with the provider authorize URL, or a 302 to that
    URL when ``redirect=true`` and initiation succeeded.
    """
    result = await actions.sign_oauth(provider)

    if redirect and result.success and result.url:
        return RedirectResponse(url=result.url, status_code=302)

    return result


# =============================================================================
# Password Reset
# =============================================================================

@auth_router.post("/forgot-password", response_model=AuthResponse, response_model_exclude_none=True)
async def forgot_password(payload: Any = Body(None)):
    """Send a password-reset link. Body: email."""
    return await actions.forgot_password(payload)


@auth_router.post("/reset-password", response_model=AuthResponse, response_model_exclude_none=True)
async def reset_password(
    payload: Any = Body(None),
    access_token: Optional[str] = Depends(get_access_token),
):
    """Set a new password for the signed-in user. Body: password, confirmPassword."""
    return await actions.reset_password(payload, access_token=access_token)


# =============================================================================
# Session
# =============================================================================

@auth_router.post("/signout", response_model=AuthResponse, response_model_exclude_none=True)
async def signout(
    response: Response,
    access_token: Optional[str] = Depends(get_access_token),
):
    """Sign out and clear session cookies."""
    result = await actions.signout(access_token)

    if result.success:
        clear_session_cookies(response)

    return result


@auth_router.get("/session", response_model=AuthSessionResponse)
async def session(access_token: Optional[str] = Depends(get_access_token)):
    """Return the current user, or ``user: null`` when signed out."""
    return await actions.get_session(access_token)
