"""
Data Models Module

This module defines Pydantic models for the responses returned by the
auth facade.

Models are organized by functional area:
- Auth envelopes (the uniform success/message/field_errors shape)
- Session models (current user lookups)
- Health check and error models
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Auth Envelopes
# ============================================================================

class AuthResponse(BaseModel):
    """
    Uniform response envelope returned by every auth action.

    ``session`` carries the provider session after a successful sign in so
    the HTTP layer can forward its tokens as cookies; it is never serialized.
    """
    success: bool = Field(..., description="Whether the action succeeded")
    message: str = Field(..., description="Human-readable outcome")
    field_errors: Optional[Dict[str, List[str]]] = Field(
        None,
        description="Validation messages keyed by field name (validation failures only)",
    )
    session: Optional[Dict[str, Any]] = Field(None, exclude=True)


class OAuthResponse(AuthResponse):
    """Envelope for OAuth initiation, carrying the provider authorize URL."""
    url: Optional[str] = Field(None, description="Provider authorize URL to redirect the browser to")


# ============================================================================
# Session Models
# ============================================================================

class AuthSessionResponse(BaseModel):
    """Envelope for current-session lookups; ``user`` is null when signed out."""
    success: bool = Field(..., description="Whether the lookup succeeded")
    message: str = Field(..., description="Human-readable outcome")
    user: Optional[Dict[str, Any]] = Field(None, description="Provider user record, or null")


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response model for faults outside the auth actions."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
