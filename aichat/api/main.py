"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance.
It handles:
1. Application initialization
2. Router registration
3. Middleware configuration (audit & security headers)
4. Exception handlers (AppError hierarchy)
5. Startup/shutdown events

Run with: uvicorn aichat.api.main:app --reload
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aichat import __version__
from aichat.api.routes import (
    catalog_router,
    chats_router,
    content_router,
    health_router,
    vector_router,
    votes_router,
)
from aichat.core.audit import AuditMiddleware, SecurityHeadersMiddleware
from aichat.core.config import get_settings
from aichat.core.exceptions import AppError, RateLimitError
from aichat.core.logging_config import get_logger, setup_logging

# Initialize logging before anything else
settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger(__name__)


def _initialize_schemas() -> None:
    from aichat.database.init_db import init_business_tables, init_vector_tables

    init_business_tables()
    init_vector_tables()
    if settings.chat_store == "mongo":
        from aichat.database.chat_store import get_chat_store
        get_chat_store().ensure_indexes()


def _close_connections() -> None:
    from aichat.cache.redis_cache import reset_cache
    from aichat.database.connection import reset_database
    from aichat.database.mongodb import reset_mongo_store
    from aichat.database.vector import reset_vector_store

    for close in (reset_database, reset_vector_store, reset_mongo_store, reset_cache):
        try:
            close()
        except Exception as e:
            logger.error(f"Error closing connections ({close.__name__}): {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: create tables and indexes when AUTO_INIT_DB is set
    - Shutdown: close every connection pool
    """
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
    logger.info(f"Chat store: {settings.chat_store}")
    logger.info(f"Rate Limit: {settings.rate_limit_per_minute} req/min")
    logger.info(f"Audit Logging: {settings.enable_audit_logging}")

    if settings.auto_init_db:
        try:
            _initialize_schemas()
            logger.info("Checked/Initialized database schemas")
        except Exception as e:
            logger.error(f"Failed to auto-init database schemas: {e}")

    yield  # Application runs here

    logger.info(f"Shutting down {settings.app_name}")
    _close_connections()


# Create FastAPI application
app = FastAPI(
    title="AI Chat SaaS API",
    description="""
    Backend for an AI chat product.

    ## Features

    - **Chats**: Create, rename, share and delete conversations
    - **Messages**: Talk to Claude models with per-plan limits
    - **Votes**: Rate assistant replies
    - **Content**: Upload and search user content
    - **Vector search**: Retrieval over stored embeddings
    - **Health**: Aggregate status of every backing service
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# Middleware Configuration (Order matters!)
# ============================================================

app.add_middleware(SecurityHeadersMiddleware)

if settings.enable_audit_logging:
    app.add_middleware(AuditMiddleware)
    logger.info("Audit logging middleware enabled")

if settings.is_development():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.warning("CORS configured for development (all origins allowed)")


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    """Handle rate limit and quota errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"Retry-After": str(exc.retry_after)}
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Handle all application errors."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions globally.

    Detailed error information is only included in development mode.
    """
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.is_development() else None,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


# ============================================================
# Routers
# ============================================================

app.include_router(health_router)
app.include_router(catalog_router)
app.include_router(chats_router)
app.include_router(votes_router)
app.include_router(content_router)
app.include_router(vector_router)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "AI Chat SaaS API",
        "version": __version__,
        "documentation": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "aichat.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development()
    )
