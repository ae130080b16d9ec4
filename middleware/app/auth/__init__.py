"""
Authentication Package

This package is a thin facade over Supabase Auth. It validates credential
forms and forwards them to the identity provider, which owns every
authentication decision.

Key responsibilities:
- Form validation with field-level error reporting
- Sign up, sign in and OAuth initiation
- Password-reset email dispatch and password updates
- Sign out and current-session lookup
- Forwarding provider tokens between cookies/headers and the provider

Modules:
- schemas: Form schemas and the non-raising validate_form()
- provider: Async GoTrue REST client and IdentityProviderError
- actions: One handler per use case (validate -> delegate -> normalize)
- session: Access-token extraction and session cookies
- routes: Public authentication endpoints (/auth/signup, /auth/signin, etc.)

The request flow:
1. Route receives the form (and the caller's token, if any)
2. Action validates the form; failures return field errors immediately
3. Action calls the provider once with the validated data
4. Provider errors become a failure envelope; success returns a confirmation
"""

from .routes import auth_router

__all__ = [
    "auth_router",
]
