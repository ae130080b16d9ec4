"""
Auth Actions
============

One handler per use case: sign up, sign in, OAuth sign in, forgot password,
reset password, sign out and session lookup.

Every handler makes a single linear pass:

1. Validate the input against its form schema. On failure, return the field
   errors without contacting the provider.
2. Call the identity provider once with the validated data.
3. Return a success envelope, or a failure envelope carrying the provider's
   message (``IdentityProviderError``) or a fixed fallback (anything else).

Handlers never raise. Each failure path is logged under the ``[Auth]`` tag
with the handler name.
"""

import logging
from typing import Any, Optional

from app.auth.provider import IdentityProviderError, create_client
from app.auth.schemas import (
    ForgotPasswordForm,
    FormResult,
    OAuthForm,
    ResetPasswordForm,
    SignInForm,
    SignUpConfirmForm,
    SignUpForm,
    validate_form,
)
from app.config import get_settings
from app.models import AuthResponse, AuthSessionResponse, OAuthResponse


logger = logging.getLogger(__name__)

VALIDATION_ERROR_MESSAGE = "Form validation error"


# =============================================================================
# Helpers
# =============================================================================

def _validation_failure(handler: str, result: FormResult) -> AuthResponse:
    logger.warning(
        "[Auth] %s form validation failed for fields: %s",
        handler,
        ", ".join(sorted(result.field_errors)),
        extra={"handler": handler},
    )
    return AuthResponse(
        success=False,
        message=VALIDATION_ERROR_MESSAGE,
        field_errors=result.field_errors,
    )


def _failure_message(exc: Exception, fallback: str) -> str:
    """Provider messages pass through; anything else becomes the fallback."""
    if isinstance(exc, IdentityProviderError):
        return exc.message
    return fallback


# =============================================================================
# Sign Up / Sign In
# =============================================================================

async def signup(values: Any) -> AuthResponse:
    """
    Create an account with email and password.

    When the payload carries ``confirmPassword`` the confirmation form is
    used, so mismatches are reported before the provider is contacted.

    Args:
        values: Raw form input (``email``, ``password``, optional ``confirmPassword``)

    Returns:
        AuthResponse envelope
    """
    schema = SignUpForm
    if isinstance(values, dict) and "confirmPassword" in values:
        schema = SignUpConfirmForm

    result = validate_form(schema, values)
    if not result.ok:
        return _validation_failure("signup", result)

    try:
        client = create_client()
        await client.sign_up(email=result.data.email, password=result.data.password)

        return AuthResponse(
            success=True,
            message="Account creation successful. Check email to verify.",
        )
    except Exception as exc:
        logger.error("[Auth] Error while sign up: %s", exc, extra={"handler": "signup"})
        return AuthResponse(
            success=False,
            message=_failure_message(exc, "Error while sign up"),
        )


async def signin(values: Any) -> AuthResponse:
    """
    Sign in with email and password.

    The provider session is attached to the envelope (excluded from
    serialization) so the route can forward its tokens as cookies.
    """
    result = validate_form(SignInForm, values)
    if not result.ok:
        return _validation_failure("signin", result)

    try:
        client = create_client()
        session = await client.sign_in_with_password(
            email=result.data.email,
            password=result.data.password,
        )

        return AuthResponse(
            success=True,
            message="Sign in successful",
            session=session or None,
        )
    except Exception as exc:
        logger.error("[Auth] Sign in failed: %s", exc, extra={"handler": "signin"})
        return AuthResponse(
            success=False,
            message=_failure_message(exc, "Sign in failed"),
        )


async def sign_oauth(provider: Any) -> OAuthResponse:
    """
    Start an OAuth sign in (or sign up) with an external provider.

    Args:
        provider: Provider name such as ``github`` or ``google``

    Returns:
        OAuthResponse carrying the authorize URL on success
    """
    result = validate_form(OAuthForm, {"provider": provider})
    if not result.ok:
        failure = _validation_failure("sign_oauth", result)
        return OAuthResponse(**failure.model_dump())

    try:
        client = create_client()
        data = await client.sign_in_with_oauth(
            provider=result.data.provider,
            redirect_to=get_settings().OAUTH_REDIRECT_URL,
        )

        if not data or not data.get("url"):
            logger.error(
                "[Auth] OAuth signin returned no authorize URL for %s",
                result.data.provider,
                extra={"handler": "sign_oauth"},
            )
            return OAuthResponse(
                success=False,
                message="Failed to initiate OAuth signin",
            )

        return OAuthResponse(
            success=True,
            message="OAuth signin successful",
            url=data["url"],
        )
    except Exception as exc:
        logger.error("[Auth] OAuth signin error: %s", exc, extra={"handler": "sign_oauth"})
        return OAuthResponse(
            success=False,
            message=_failure_message(exc, "OAuth signin error"),
        )


# =============================================================================
# Password Reset
# =============================================================================

async def forgot_password(values: Any) -> AuthResponse:
    """
    Send a password-reset link to the given email.

    The link redirects to ``{APP_URL}/reset-password``; APP_URL is read from
    settings at call time.
    """
    result = validate_form(ForgotPasswordForm, values)
    if not result.ok:
        return _validation_failure("forgot_password", result)

    try:
        client = create_client()
        await client.reset_password_for_email(
            result.data.email,
            redirect_to=get_settings().password_reset_redirect,
        )

        return AuthResponse(
            success=True,
            message="Reset link sent. Please check.",
        )
    except Exception as exc:
        logger.error(
            "[Auth] Error occured while sending reset password link: %s",
            exc,
            extra={"handler": "forgot_password"},
        )
        return AuthResponse(
            success=False,
            message=_failure_message(exc, "Error occured while sending reset password link"),
        )


async def reset_password(values: Any, access_token: Optional[str] = None) -> AuthResponse:
    """
    Set a new password for the signed-in user (after following a reset link).

    Args:
        values: Raw form input (``password``, ``confirmPassword``)
        access_token: Caller's access token from the reset link session
    """
    result = validate_form(ResetPasswordForm, values)
    if not result.ok:
        return _validation_failure("reset_password", result)

    try:
        client = create_client(access_token)
        await client.update_user(password=result.data.password)

        return AuthResponse(
            success=True,
            message="Password reset successful. Please Sign in.",
        )
    except Exception as exc:
        logger.error(
            "[Auth] Error while updating password: %s",
            exc,
            extra={"handler": "reset_password"},
        )
        return AuthResponse(
            success=False,
            message=_failure_message(exc, "Error while updating password"),
        )


# =============================================================================
# Session
# =============================================================================

async def signout(access_token: Optional[str] = None) -> AuthResponse:
    """Sign out the current session. Safe to call repeatedly."""
    try:
        client = create_client(access_token)
        await client.sign_out()

        return AuthResponse(
            success=True,
            message="Sign out successful",
        )
    except Exception as exc:
        logger.error("[Auth] Error occured while sign out: %s", exc, extra={"handler": "signout"})
        return AuthResponse(
            success=False,
            message=_failure_message(exc, "Error occured while sign out"),
        )


async def get_session(access_token: Optional[str] = None) -> AuthSessionResponse:
    """
    Look up the user behind the current session.

    Returns:
        AuthSessionResponse with ``user`` set to the provider record, or None
        when nobody is signed in
    """
    try:
        client = create_client(access_token)
        user = await client.get_user()

        return AuthSessionResponse(
            success=True,
            message="Fetching user sesssion successful",
            user=user,
        )
    except Exception as exc:
        logger.error("[Auth] Error fetching session: %s", exc, extra={"handler": "get_session"})
        return AuthSessionResponse(
            success=False,
            message=_failure_message(exc, "Error fetching session"),
            user=None,
        )
