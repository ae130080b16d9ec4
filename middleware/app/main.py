"""
FastAPI Auth Facade Application Factory
=======================================

Entry point for the auth facade that sits between web/mobile clients and
Supabase Auth.

Architecture:
    Clients → Auth Facade (this service) → Supabase Auth (GoTrue)

Routers:
    - /auth/*       : Sign up, sign in, OAuth, password reset, sign out, session
    - /health       : Health check endpoint

Environment Variables Required:
    - SUPABASE_URL: Supabase project URL (e.g., "https://xyz.supabase.co")
    - SUPABASE_ANON_KEY: Supabase anon (public) key

Optional:
    - APP_URL: Base URL used for password-reset links (default: http://localhost:3000)
    - OAUTH_REDIRECT_URL: Post-OAuth redirect target
    - ALLOWED_ORIGINS: Comma-separated CORS origins
    - SESSION_COOKIE_SECURE: Secure flag on session cookies (default: true)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn app.main:app --app-dir middleware --reload --port 8080

    Production:
        uvicorn app.main:app --app-dir middleware --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import auth_router
from app.config import Settings, get_settings, validate_configuration
from app.models import AuthResponse, ErrorResponse, HealthResponse


SERVICE_NAME = "auth-facade"
SERVICE_VERSION = "1.0.0"

# Request parts whose errors are keyed by parameter name; the rest go under "form"
_PARAMETER_LOCATIONS = {"query", "path"}


def request_error_fields(errors: Sequence[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Map FastAPI request validation errors onto a field-error map.

    Undecodable bodies are reported as ``{"form": ["Invalid JSON"]}``.
    """
    field_errors: Dict[str, List[str]] = {}
    for error in errors:
        loc = error.get("loc") or ()
        if len(loc) > 1 and loc[0] in _PARAMETER_LOCATIONS:
            key = str(loc[1])
        else:
            key = "form"
        message = "Invalid JSON" if error.get("type") == "json_invalid" else error.get("msg", "Invalid input")
        field_errors.setdefault(key, []).append(message)
    return field_errors


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Configure logging
        - Validate configuration and log errors/warnings

    Shutdown tasks:
        - Log shutdown information
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("app.main")

    status = validate_configuration(settings)
    for error in status["errors"]:
        logger.error("Configuration error: %s", error)
    for warning in status["warnings"]:
        logger.warning("Configuration warning: %s", warning)

    logger.info(
        "Auth facade started",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "auth_base_url": status["auth_base_url"],
        }
    )

    yield

    logger.info("Auth facade shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - CORS middleware (when ALLOWED_ORIGINS is set)
        - Auth routes
        - Health and root endpoints
        - Global exception handler

    Args:
        settings: Settings override (defaults to ``get_settings()``)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Auth Facade",
        description="Form validation and response shaping in front of Supabase Auth",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings

    # Configure CORS
    if settings.allowed_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins_list,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    app.include_router(auth_router)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service=SERVICE_NAME)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, object]:
        """
        Root endpoint with service information.

        Returns:
            dict: Service metadata and available endpoints
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "auth": "/auth",
            }
        }

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report requests FastAPI could not parse with the auth envelope (HTTP 200)."""
        field_errors = request_error_fields(exc.errors())
        logging.getLogger("app.main").warning(
            "[Auth] Request validation failed",
            extra={"path": request.url.path, "fields": sorted(field_errors)}
        )

        body = AuthResponse(
            success=False,
            message="Form validation error",
            field_errors=field_errors,
        )
        return JSONResponse(status_code=200, content=body.model_dump(mode="json", exclude_none=True))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for faults outside the auth actions.

        Logs the error and returns a standardized error response.
        """
        logger = logging.getLogger("app.main")
        logger.error(
            "Unhandled exception: %s",
            exc,
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        body = ErrorResponse(
            error="internal_server_error",
            message="An unexpected error occurred",
            details={"exception": str(exc)} if settings.LOG_LEVEL == "DEBUG" else None,
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
