"""
Identity provider client for Supabase Auth (GoTrue REST API).

This module handles:
- Account creation and password sign in
- OAuth authorize URL construction
- Password-reset email dispatch and password updates
- Sign out and current-user retrieval

No credential is verified here; every decision is made by the provider.
Provider-reported failures surface as ``IdentityProviderError`` carrying the
provider's own message. Transport failures propagate as ``httpx.HTTPError``.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)

SESSION_MISSING_MESSAGE = "Auth session missing!"

# Logout responses meaning the session is already gone
_SIGNED_OUT_STATUSES = (401, 403, 404)


# =============================================================================
# Exceptions
# =============================================================================

class IdentityProviderError(Exception):
    """
    Raised when the identity provider rejects a request.

    Attributes:
        message: Provider-supplied, human readable message
        status: HTTP status code returned by the provider (if any)
        code: Provider error code such as ``invalid_credentials`` (if any)
    """

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


def _error_from_response(response: httpx.Response) -> IdentityProviderError:
    """
    Build an IdentityProviderError from a non-2xx provider response.

    GoTrue reports errors under different keys depending on the endpoint
    and version (``msg``, ``message``, ``error_description``, ``error``).
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        message = response.reason_phrase or f"Request failed with status {response.status_code}"
        return IdentityProviderError(message, status=response.status_code)

    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or f"Request failed with status {response.status_code}"
    )
    code = body.get("error_code") or body.get("code")

    return IdentityProviderError(
        str(message),
        status=response.status_code,
        code=str(code) if code is not None else None,
    )


# =============================================================================
# Client
# =============================================================================

class IdentityClient:
    """
    Thin async client over the GoTrue endpoints used by the auth actions.

    One instance serves one request: it may carry the caller's access token
    (read from the Authorization header or session cookie) for the calls that
    act on the current user.

    Args:
        base_url: GoTrue base URL, e.g. ``https://xyz.supabase.co/auth/v1``
        api_key: Supabase anon key sent with every request
        access_token: Caller's access token, if signed in
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _build_headers(self, bearer_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer_token or self.api_key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        bearer_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._build_headers(bearer_token),
            )

        if not response.is_success:
            error = _error_from_response(response)
            logger.warning(
                "Identity provider responded with status %s for %s %s: %s",
                response.status_code,
                method,
                path,
                error.message,
            )
            raise error

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as exc:
            raise IdentityProviderError(
                "Invalid JSON response from identity provider",
                status=response.status_code,
            ) from exc

    def _require_session(self) -> str:
        if not self.access_token:
            raise IdentityProviderError(SESSION_MISSING_MESSAGE, status=400)
        return self.access_token

    # -------------------------------------------------------------------------
    # Auth operations
    # -------------------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        """
        Create an account. The provider sends the verification email.

        Returns:
            The created user, or a session when email confirmation is off
        """
        return await self._request(
            "POST",
            "/signup",
            json_body={"email": email, "password": password},
        )

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """
        Exchange email and password for a session.

        Returns:
            Session dictionary (access_token, refresh_token, expires_in, user, ...)
        """
        session = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        self.access_token = session.get("access_token") or self.access_token
        return session

    async def sign_in_with_oauth(
        self,
        provider: str,
        redirect_to: Optional[str] = None,
        scopes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build the provider authorize URL the browser must be sent to.

        No request is made; the provider handles the rest of the flow.

        Returns:
            ``{"provider": ..., "url": ...}``
        """
        params = {"provider": provider}
        if redirect_to:
            params["redirect_to"] = redirect_to
        if scopes:
            params["scopes"] = scopes

        return {
            "provider": provider,
            "url": f"{self.base_url}/authorize?{urlencode(params)}",
        }

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> Dict[str, Any]:
        params = {"redirect_to": redirect_to} if redirect_to else None
        return await self._request(
            "POST",
            "/recover",
            params=params,
            json_body={"email": email},
        )

    async def update_user(self, **attributes: Any) -> Dict[str, Any]:
        """
        Update the signed-in user (e.g. ``password=...``).

        Raises:
            IdentityProviderError: If there is no session or the provider refuses
        """
        token = self._require_session()
        return await self._request(
            "PUT",
            "/user",
            json_body=attributes,
            bearer_token=token,
        )

    async def sign_out(self, scope: str = "global") -> None:
        """
        Revoke the current session.

        Signing out without a session, or with one the provider already
        revoked, succeeds without error.
        """
        if not self.access_token:
            return

        try:
            await self._request(
                "POST",
                "/logout",
                params={"scope": scope},
                bearer_token=self.access_token,
            )
        except IdentityProviderError as exc:
            if exc.status not in _SIGNED_OUT_STATUSES:
                raise
            logger.debug("Session already revoked (status %s)", exc.status)

        self.access_token = None

    async def get_user(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the user behind the current access token.

        Returns:
            User dictionary, or None when nobody is signed in
        """
        if not self.access_token:
            return None

        return await self._request("GET", "/user", bearer_token=self.access_token)


def create_client(
    access_token: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> IdentityClient:
    """
    Create an IdentityClient for the current request.

    Args:
        access_token: Caller's access token, if any
        settings: Settings override (defaults to ``get_settings()``)
    """
    settings = settings or get_settings()
    return IdentityClient(
        base_url=settings.auth_base_url,
        api_key=settings.SUPABASE_ANON_KEY,
        access_token=access_token,
        timeout=settings.IDENTITY_TIMEOUT_SECONDS,
    )
