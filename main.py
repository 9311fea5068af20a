"""
PLU List Service - Main Application

FastAPI entry point. Every list kind (produce, bakery) is served by the
same routers under /api/{list_kind}/...
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, check_connection, LIST_CONFIGS
from exceptions import AppError

# stdlib logging decides the level, structlog formats
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: report database reachability per list.
    Shutdown: stop the layout settings write pool.
    """
    logger.info("application_starting", environment=settings.environment, debug=settings.debug)

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "database_connected",
            produce_versions=db_status["produce_versions"],
            bakery_versions=db_status["bakery_versions"]
        )
    else:
        logger.error("database_connection_failed", error=db_status.get("error"))

    yield

    from services.layout_settings_service import shutdown_executor
    shutdown_executor()
    logger.info("application_shutting_down")


app = FastAPI(
    title="PLU List Service",
    description="Weekly product list versions: upload comparison, publishing and display composition",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """Service and database status."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": _utc_now(),
        "environment": settings.environment,
        "database": db_status
    }


@app.get("/")
async def root():
    """Available lists and where their endpoints live."""
    return {
        "name": "PLU List Service API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
        "lists": {
            kind.value: {
                "item_types": list(config.item_types),
                "base_path": f"/api/{kind.value}",
            }
            for kind, config in LIST_CONFIGS.items()
        },
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Errors raised outside a route's own handle_error keep their status and code."""
    logger.warning("app_error", path=request.url.path, code=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 in the standard error format."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": _utc_now()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes import (
    versions_router,
    uploads_router,
    display_router,
    rules_router,
    catalog_router,
    layout_settings_router,
)

_ROUTERS = [
    (versions_router, "/versions", "Versions"),
    (uploads_router, "/uploads", "Uploads"),
    (display_router, "/display", "Display"),
    (rules_router, "/rules", "Naming Rules"),
    (catalog_router, "", "Catalog"),
    (layout_settings_router, "/layout-settings", "Layout Settings"),
]

for router, path, tag in _ROUTERS:
    app.include_router(router, prefix=f"/api/{{list_kind}}{path}", tags=[tag])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
