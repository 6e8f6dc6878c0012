"""
Conduit Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app(settings)` builds the Database, TokenService and
       PasswordHasher from an explicit Settings object, stores them on
       `app.state`, and wires middleware, exception handlers and routers.
Who:   uvicorn imports `conduit.main:app`; tests call `create_app()` with
       their own Settings.
When:  Once per process (or per test); the app then serves every request.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  app.state: settings · database · token_service ·        │
    │             password_hasher                              │
    │                                                          │
    │  Middleware:  Request ID → Logging → CORS                │
    │                                                          │
    │  Routes:  /api/users  /api/user  /api/profiles           │
    │           /api/articles (+feed, favorite, comments)      │
    │           /api/tags   /health                            │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ConduitError → its status · RequestValidation → 422   │
    │    anything else → 500                                   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, warn about a default JWT secret, create
              tables when `db_auto_create` is set
    Shutdown: dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from conduit import __version__
from conduit.config import Settings, get_settings
from conduit.database import Database
from conduit.exceptions import ConduitError
from conduit.middleware.logging import RequestLoggingMiddleware
from conduit.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from conduit.routes import articles, comments, health, profiles, tags, users
from conduit.services.security import PasswordHasher, TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] conduit.services.article_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-statement and per-connection chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("Conduit backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Still start: local development runs on the default secret
        logger.warning("Configuration warning: %s", e)

    if settings.db_auto_create:
        await database.create_all()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Conduit backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(errors: Dict[str, List[str]]) -> Dict[str, Dict[str, List[str]]]:
    return {"errors": errors}


def _request_id_headers() -> Dict[str, str]:
    rid = request_id_var.get("")
    return {REQUEST_ID_HEADER: rid} if rid else {}


def validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """
    Field → messages map for a schema-level validation failure.

    The field is the last location segment that names a field (e.g.
    ("body", "user", "email") → "email"); a body that is not valid JSON
    at all is reported under "body".
    """
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
        field = loc[-1] if len(loc) > 1 else "body"
        errors.setdefault(field, []).append(error.get("msg", "is invalid"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to Conduit error bodies.

    Handler hierarchy:
        ConduitError (any subclass) → exc.status_code, exc.errors
            5xx subclasses answer with a generic message
        RequestValidationError      → 422, per-field messages
        Exception (fallback)        → 500, generic message

    Security: stack traces, SQL and driver errors are logged, never returned.
    """

    @app.exception_handler(ConduitError)
    async def handle_conduit_error(request: Request, exc: ConduitError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
            errors = {"server": ["An internal error occurred. Please try again later."]}
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            errors = exc.errors

        headers = _request_id_headers()
        if exc.status_code == 401:
            headers["WWW-Authenticate"] = "Token"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(errors),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.info("[%s] Request validation failed: %s", rid, exc.errors())
        return JSONResponse(
            status_code=422,
            content=_error_body(validation_errors(exc)),
            headers=_request_id_headers(),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body({"server": ["An unexpected error occurred."]}),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration for this instance; defaults to the cached
                  environment-derived Settings.

    Returns:
        Configured FastAPI instance. Its engine is created now; tables are
        created at startup when `settings.db_auto_create` is set.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Conduit API",
        description="RealWorld-compatible blogging platform API.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.token_service = TokenService(settings)
    app.state.password_hasher = PasswordHasher()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS → routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(profiles.router)
    app.include_router(articles.router)
    app.include_router(comments.router)
    app.include_router(tags.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `conduit.main:app` to be importable
app = create_app()
