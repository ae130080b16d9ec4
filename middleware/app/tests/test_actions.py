"""
Auth Action Tests

Tests the validate -> delegate -> normalize contract of every handler:
short-circuit on validation failure, exactly-once delegation, provider
message pass-through, fallback messages and failure logging.
"""

import logging
from unittest.mock import patch

import httpx
import pytest

from app.auth import actions
from app.auth.provider import IdentityProviderError


class TestSignUp:
    """Test suite for the sign up action"""

    @pytest.mark.asyncio
    async def test_weak_password_never_reaches_provider(self, create_client_mock, mock_identity_client):
        result = await actions.signup({"email": "a@b.com", "password": "abc"})

        assert result.success is False
        assert result.message == "Form validation error"
        assert result.field_errors["password"] == [
            "Password must be at least 8 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character (@$!%*?&)",
        ]
        create_client_mock.assert_not_called()
        mock_identity_client.sign_up.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_calls_provider_once(self, create_client_mock, mock_identity_client):
        result = await actions.signup({"email": "new.user@mail.com", "password": "Abcdef1!"})

        assert result.success is True
        assert result.message == "Account creation successful. Check email to verify."
        assert result.field_errors is None
        mock_identity_client.sign_up.assert_awaited_once_with(
            email="new.user@mail.com",
            password="Abcdef1!",
        )

    @pytest.mark.asyncio
    async def test_confirmation_mismatch_is_checked_when_sent(self, create_client_mock, mock_identity_client):
        result = await actions.signup({
            "email": "a@b.com",
            "password": "Abcdef1!",
            "confirmPassword": "Abcdef2!",
        })

        assert result.success is False
        assert result.field_errors == {"confirmPassword": ["Password don't match"]}
        mock_identity_client.sign_up.assert_not_called()

    @pytest.mark.asyncio
    async def test_confirmation_not_forwarded(self, create_client_mock, mock_identity_client):
        result = await actions.signup({
            "email": "a@b.com",
            "password": "Abcdef1!",
            "confirmPassword": "Abcdef1!",
        })

        assert result.success is True
        mock_identity_client.sign_up.assert_awaited_once_with(email="a@b.com", password="Abcdef1!")

    @pytest.mark.asyncio
    async def test_provider_error_message_passes_through(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_up.side_effect = IdentityProviderError("User already registered", status=422)

        result = await actions.signup({"email": "a@b.com", "password": "Abcdef1!"})

        assert result.success is False
        assert result.message == "User already registered"

    @pytest.mark.asyncio
    async def test_unexpected_error_uses_fallback(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_up.side_effect = RuntimeError("boom")

        result = await actions.signup({"email": "a@b.com", "password": "Abcdef1!"})

        assert result.success is False
        assert result.message == "Error while sign up"


class TestSignIn:
    """Test suite for the sign in action"""

    @pytest.mark.asyncio
    async def test_success(self, create_client_mock, mock_identity_client):
        result = await actions.signin({"email": "a@b.com", "password": "longpassword1"})

        assert result.success is True
        assert result.message == "Sign in successful"
        assert result.session["access_token"] == "access-token-abc"
        assert "session" not in result.model_dump()
        mock_identity_client.sign_in_with_password.assert_awaited_once_with(
            email="a@b.com",
            password="longpassword1",
        )

    @pytest.mark.asyncio
    async def test_extra_fields_not_forwarded(self, create_client_mock, mock_identity_client):
        await actions.signin({"email": "a@b.com", "password": "longpassword1", "role": "admin"})

        mock_identity_client.sign_in_with_password.assert_awaited_once_with(
            email="a@b.com",
            password="longpassword1",
        )

    @pytest.mark.asyncio
    async def test_invalid_credentials(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_in_with_password.side_effect = IdentityProviderError(
            "Invalid login credentials",
            status=400,
            code="invalid_credentials",
        )

        result = await actions.signin({"email": "a@b.com", "password": "longpassword1"})

        assert result.model_dump(exclude_none=True) == {
            "success": False,
            "message": "Invalid login credentials",
        }

    @pytest.mark.asyncio
    async def test_network_failure_uses_fallback(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_in_with_password.side_effect = httpx.ConnectError("unreachable")

        result = await actions.signin({"email": "a@b.com", "password": "longpassword1"})

        assert result.success is False
        assert result.message == "Sign in failed"

    @pytest.mark.asyncio
    async def test_short_password(self, create_client_mock, mock_identity_client):
        result = await actions.signin({"email": "a@b.com", "password": "short"})

        assert result.field_errors == {"password": ["Be at least 8 characters long"]}
        mock_identity_client.sign_in_with_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_logged_with_handler(self, create_client_mock, mock_identity_client, caplog):
        mock_identity_client.sign_in_with_password.side_effect = IdentityProviderError("Invalid login credentials")

        with caplog.at_level(logging.ERROR, logger="app.auth.actions"):
            await actions.signin({"email": "a@b.com", "password": "longpassword1"})

        records = [r for r in caplog.records if getattr(r, "handler", None) == "signin"]
        assert records
        assert "[Auth]" in records[0].getMessage()


class TestOAuth:
    """Test suite for OAuth initiation"""

    @pytest.mark.asyncio
    async def test_success_returns_url(self, create_client_mock, mock_identity_client):
        result = await actions.sign_oauth("github")

        assert result.success is True
        assert result.message == "OAuth signin successful"
        assert result.url.startswith("https://test-project.supabase.co/auth/v1/authorize")
        mock_identity_client.sign_in_with_oauth.assert_awaited_once_with(
            provider="github",
            redirect_to=None,
        )

    @pytest.mark.asyncio
    async def test_redirect_url_from_settings(self, create_client_mock, mock_identity_client, monkeypatch):
        monkeypatch.setenv("OAUTH_REDIRECT_URL", "https://app.example.org/auth/callback")

        await actions.sign_oauth("google")

        mock_identity_client.sign_in_with_oauth.assert_awaited_once_with(
            provider="google",
            redirect_to="https://app.example.org/auth/callback",
        )

    @pytest.mark.asyncio
    async def test_missing_url(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_in_with_oauth.return_value = None

        result = await actions.sign_oauth("github")

        assert result.success is False
        assert result.message == "Failed to initiate OAuth signin"

    @pytest.mark.asyncio
    async def test_unknown_provider(self, create_client_mock, mock_identity_client):
        result = await actions.sign_oauth("myspace")

        assert result.success is False
        assert result.message == "Form validation error"
        assert result.field_errors == {"provider": ["Unsupported OAuth provider"]}
        mock_identity_client.sign_in_with_oauth.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_in_with_oauth.side_effect = ValueError("bad")

        result = await actions.sign_oauth("github")

        assert result.message == "OAuth signin error"


class TestPasswordReset:
    """Test suite for forgot/reset password"""

    @pytest.mark.asyncio
    async def test_forgot_password_redirects_to_app(self, create_client_mock, mock_identity_client):
        result = await actions.forgot_password({"email": "a@b.com"})

        assert result.success is True
        assert result.message == "Reset link sent. Please check."
        mock_identity_client.reset_password_for_email.assert_awaited_once_with(
            "a@b.com",
            redirect_to="https://app.example.org/reset-password",
        )

    @pytest.mark.asyncio
    async def test_forgot_password_reads_app_url_at_call_time(
        self, create_client_mock, mock_identity_client, monkeypatch
    ):
        monkeypatch.setenv("APP_URL", "https://other.example.org/")

        await actions.forgot_password({"email": "a@b.com"})

        _, kwargs = mock_identity_client.reset_password_for_email.call_args
        assert kwargs["redirect_to"] == "https://other.example.org/reset-password"

    @pytest.mark.asyncio
    async def test_forgot_password_invalid_email(self, create_client_mock, mock_identity_client):
        result = await actions.forgot_password({"email": "nope"})

        assert result.field_errors == {"email": ["Please enter valid email"]}
        mock_identity_client.reset_password_for_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_forgot_password_fallback(self, create_client_mock, mock_identity_client):
        mock_identity_client.reset_password_for_email.side_effect = KeyError("x")

        result = await actions.forgot_password({"email": "a@b.com"})

        assert result.message == "Error occured while sending reset password link"

    @pytest.mark.asyncio
    async def test_reset_password_mismatch(self, create_client_mock, mock_identity_client):
        result = await actions.reset_password({"password": "Abcdef1!", "confirmPassword": "Abcdef2!"})

        assert result.success is False
        assert result.field_errors == {"confirmPassword": ["Password don't match"]}
        mock_identity_client.update_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_password_uses_caller_token(self, create_client_mock, mock_identity_client):
        result = await actions.reset_password(
            {"password": "Abcdef1!", "confirmPassword": "Abcdef1!"},
            access_token="recovery-token",
        )

        assert result.success is True
        assert result.message == "Password reset successful. Please Sign in."
        create_client_mock.assert_called_once_with("recovery-token")
        mock_identity_client.update_user.assert_awaited_once_with(password="Abcdef1!")

    @pytest.mark.asyncio
    async def test_reset_password_without_session(self, create_client_mock, mock_identity_client):
        mock_identity_client.update_user.side_effect = IdentityProviderError("Auth session missing!", status=400)

        result = await actions.reset_password({"password": "Abcdef1!", "confirmPassword": "Abcdef1!"})

        assert result.success is False
        assert result.message == "Auth session missing!"

    @pytest.mark.asyncio
    async def test_reset_password_fallback(self, create_client_mock, mock_identity_client):
        mock_identity_client.update_user.side_effect = RuntimeError("boom")

        result = await actions.reset_password({"password": "Abcdef1!", "confirmPassword": "Abcdef1!"})

        assert result.message == "Error while updating password"


class TestSession:
    """Test suite for sign out and session lookup"""

    @pytest.mark.asyncio
    async def test_signout_twice(self, create_client_mock, mock_identity_client):
        first = await actions.signout("access-token-abc")
        second = await actions.signout("access-token-abc")

        assert first.model_dump(exclude_none=True) == {"success": True, "message": "Sign out successful"}
        assert second.success is True
        assert mock_identity_client.sign_out.await_count == 2

    @pytest.mark.asyncio
    async def test_signout_provider_error(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_out.side_effect = IdentityProviderError("Service unavailable", status=503)

        result = await actions.signout("access-token-abc")

        assert result.success is False
        assert result.message == "Service unavailable"

    @pytest.mark.asyncio
    async def test_signout_fallback(self, create_client_mock, mock_identity_client):
        mock_identity_client.sign_out.side_effect = httpx.ReadTimeout("slow")

        result = await actions.signout()

        assert result.message == "Error occured while sign out"

    @pytest.mark.asyncio
    async def test_get_session_signed_out(self, create_client_mock, mock_identity_client):
        result = await actions.get_session()

        assert result.success is True
        assert result.user is None
        assert result.model_dump()["user"] is None

    @pytest.mark.asyncio
    async def test_get_session_returns_user(self, create_client_mock, mock_identity_client):
        mock_identity_client.get_user.return_value = {"id": "user-123", "email": "a@b.com"}

        result = await actions.get_session("access-token-abc")

        assert result.success is True
        assert result.message == "Fetching user sesssion successful"
        assert result.user == {"id": "user-123", "email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_get_session_error(self, create_client_mock, mock_identity_client):
        mock_identity_client.get_user.side_effect = IdentityProviderError("invalid JWT", status=401)

        result = await actions.get_session("expired-token")

        assert result.success is False
        assert result.message == "invalid JWT"
        assert result.user is None

    @pytest.mark.asyncio
    async def test_client_factory_failure_is_contained(self):
        with patch("app.auth.actions.create_client", side_effect=RuntimeError("no settings")):
            result = await actions.get_session()

        assert result.success is False
        assert result.message == "Error fetching session"
