"""
Proposal Desk - FastAPI Application Entry Point.

Backend for the proposal builder and the client contract portal:
- Proposal templates and draft previews
- Proposal persistence, revision and PDF export
- Token-gated signed contract submission

Run with:
    uvicorn proposal_desk.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposal_desk.core.config import get_settings
from proposal_desk.core.exceptions import AppError, ValidationError
from proposal_desk.api import (
    contracts_router,
    proposals_router,
    templates_router,
    users_router,
)


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    for name in ("httpx", "httpcore", "hpack", "weasyprint", "fontTools"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Proposal Desk Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Storage bucket: {settings.SUPABASE_STORAGE_BUCKET}")

    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    logger.info("Startup complete - ready to accept requests")

    yield

    logger.info("Proposal Desk shutting down...")


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Proposal Desk",
        description="""
        Proposal builder and contract signing backend.

        ## Proposals

        - `POST /api/proposals/preview` - Render a draft
        - `POST /api/proposals` - Store a reviewed proposal
        - `PUT /api/proposals/{id}` - Update or revise a proposal
        - `GET /api/proposals/{id}/pdf` - Download as PDF

        ## Public contract portal

        - `GET /api/contracts/public/{id}/status?token=`
        - `POST /api/contracts/public/{id}/submit?token=`
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (proposals_router, templates_router, contracts_router, users_router):
        app.include_router(router, prefix="/api")

    return app


# Create app instance
app = create_app()


# ===========================================
# Root Endpoint
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Proposal Desk",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "proposals": {
                "preview": "POST /api/proposals/preview",
                "create": "POST /api/proposals",
                "get": "GET /api/proposals/{id}",
                "update": "PUT /api/proposals/{id}",
                "pdf": "GET /api/proposals/{id}/pdf"
            },
            "templates": {
                "by_category": "GET /api/proposal-templates/by-category",
                "by_type": "GET /api/proposal-templates/type/{template_type}",
                "default": "GET /api/proposal-templates/default"
            },
            "contracts": {
                "status": "GET /api/contracts/public/{id}/status?token=",
                "submit": "POST /api/contracts/public/{id}/submit?token="
            },
            "users": "GET /api/users/assignable",
            "health": "GET /api/health",
            "docs": "GET /docs"
        }
    })


# ===========================================
# Error Handlers
# ===========================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Known application errors carry their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    content = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        content["errors"] = [error.model_dump() for error in exc.errors]
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report body/query validation problems as field errors."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"detail": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "proposal_desk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
