"""
Colletro Collection Tracker
FastAPI Main Application

Entry point for the collections API: user collections, recommended and
community templates, update checks and sync.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from colletro.config import get_settings
from colletro.database import init_db, close_db

# Configure logging
settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Track personal collections and keep clones in step with their templates",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# API Routes
# =============================================================================

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.app_env,
    }


# =============================================================================
# Import and include API routers
# =============================================================================

from colletro.api import collections, items, recommended, community  # noqa: E402

app.include_router(collections.router, prefix="/api/collections", tags=["collections"])
app.include_router(items.router, prefix="/api/items", tags=["items"])
app.include_router(recommended.router, prefix="/api/recommended-collections", tags=["recommended"])
app.include_router(recommended.items_router, prefix="/api/recommended-items", tags=["recommended"])
app.include_router(community.router, prefix="/api/community-collections", tags=["community"])
app.include_router(community.items_router, prefix="/api/community-items", tags=["community"])


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )


# =============================================================================
# Development server entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "colletro.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
