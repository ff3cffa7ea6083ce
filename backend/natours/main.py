"""
Natours Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting
       and error handling in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn natours.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware:  Request ID → Logging (dev) → GZip      │
    │               → CORS → Guard chain                   │
    │                                                      │
    │  Guard chain: headers → origin → rate limit → body   │
    │               → cookies → sanitizers → pollution     │
    │               → request time                         │
    │                                                      │
    │  Routes:      views │ tours │ users │ reviews │      │
    │               bookings │ fallback 404                │
    │                                                      │
    │  Errors:      every stage → ErrorResponder(mode)     │
    └──────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from natours import __version__
from natours.config import Settings, settings as default_settings
from natours.error_handler import ErrorResponder
from natours.exceptions import AppError
from natours.middleware.logging import RequestLoggingMiddleware
from natours.middleware.pipeline import GuardChainMiddleware
from natours.middleware.request_id import RequestIDMiddleware
from natours.routes import RouteGroup, default_route_groups, mount_route_groups
from natours.routes.fallback import register_fallback
from natours.security import InMemoryRateLimitStore, build_guard_pipeline
from natours.security.cors import cors_middleware_options

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # natours.access replaces uvicorn's access log in development
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

def build_lifespan(app_settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(app_settings.log_level)
        logger.info(
            "%s backend starting in %s mode",
            app_settings.app_name,
            app_settings.environment.value,
        )

        try:
            app_settings.validate_required_for_production()
        except ValueError as e:
            # Reported, not fixed: the server still starts with what it was given
            logger.error("Configuration error: %s", str(e))

        logger.info(
            "Server ready at http://%s:%d",
            app_settings.backend_host,
            app_settings.backend_port,
        )
        yield
        logger.info("Shutdown complete.")

    return lifespan


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI, responder: ErrorResponder) -> None:
    """
    Route every error type to the single ErrorResponder.

    Handler coverage:
        AppError               → operational errors from guards/handlers
        RequestValidationError → 400 "Invalid input data. ..."
        HTTPException          → framework errors with their own status
        Exception              → programming errors (generic 500 in production)
    """
    app.add_exception_handler(AppError, responder)
    app.add_exception_handler(RequestValidationError, responder)
    app.add_exception_handler(StarletteHTTPException, responder)
    app.add_exception_handler(Exception, responder)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    route_groups: Optional[Sequence[RouteGroup]] = None,
    rate_limit_store: Optional[InMemoryRateLimitStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings:     Settings to use (defaults to the env-loaded singleton)
        route_groups:     Domain route groups (defaults to the placeholders)
        rate_limit_store: Shared hit counters (a fresh in-memory store if None)

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app_settings = app_settings or default_settings
    store = rate_limit_store
    if store is None:
        store = InMemoryRateLimitStore(app_settings.rate_limit_window)
    responder = ErrorResponder(mode=app_settings.environment)

    app = FastAPI(
        title="Natours API",
        description="Tour booking site and REST API behind a hardened request pipeline.",
        version=__version__,
        # Swagger UI pulls scripts from a CDN the CSP does not allow
        docs_url=None,
        redoc_url=None,
        openapi_url="/openapi.json" if app_settings.is_development else None,
        lifespan=build_lifespan(app_settings),
    )
    app.state.settings = app_settings
    app.state.rate_limit_store = store

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute. Execution order:
    # RequestID → Logging (dev) → GZip → CORS → Guard chain → routes
    app.add_middleware(
        GuardChainMiddleware,
        pipeline=build_guard_pipeline(app_settings, store),
        on_error=responder,
    )
    app.add_middleware(CORSMiddleware, **cors_middleware_options(app_settings))
    app.add_middleware(GZipMiddleware, minimum_size=500)
    if app_settings.is_development:
        app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app, responder)

    # ── Register Routes ───────────────────────────────────────────────────
    mount_route_groups(app, route_groups if route_groups is not None else default_route_groups())
    register_fallback(app)

    return app


# uvicorn expects `natours.main:app` to be importable
app = create_app()
