"""FastAPI application for the prospect list generator.

This module provides the main FastAPI application instance with CORS
middleware configuration and router registration for the prospect list
generation service.
"""

# Load environment variables before any other imports
from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import CORS_ORIGINS, DB_AUTO_CREATE, FIRECRAWL_API_KEY
from app.routers import prospects
from app.services.industry_strategies import load_industry_strategies


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# API version and metadata
API_VERSION = "0.1.0"
API_TITLE = "Prospect List Generator API"
API_DESCRIPTION = """
Prospect List Generator API.

This API provides endpoints for:
- Generating prospect lists for an industry and a location from public sources
- Previewing, validating and deduplicating the generated prospects
- Importing a previewed list with the selected columns
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Loads the industry strategy table once and optionally creates the list
    tables.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup is complete.
    """
    # Startup: load the strategy table shared by every request
    app.state.strategy_table = load_industry_strategies()

    if FIRECRAWL_API_KEY:
        logger.info("Firecrawl API is configured")
    else:
        logger.warning("Firecrawl API key not configured - previews will use generated data")

    if DB_AUTO_CREATE:
        from app.db.session import init_db

        try:
            init_db()
            logger.info("Database tables ready")
        except SQLAlchemyError as e:
            logger.warning(f"Could not create database tables: {e}")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")


# Create FastAPI application instance
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Configure CORS middleware
# Allow requests from local dev servers by default
# Can be overridden via CORS_ORIGINS environment variable (comma-separated list)
_default_origins = [
    "http://localhost:3000",  # Next.js dev server
    "http://127.0.0.1:3000",
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
]

if CORS_ORIGINS:
    ALLOWED_ORIGINS = [
        origin.strip() for origin in CORS_ORIGINS.split(",") if origin.strip()
    ]
else:
    ALLOWED_ORIGINS = _default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-User-Id",
    ],
    expose_headers=["Content-Length", "Content-Type"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """Root endpoint returning API information.

    Returns:
        Dict containing API metadata including name, version,
        description, and available documentation URLs.
    """
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "description": "Prospect list generation from public business sources",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring and load balancers.

    Returns:
        Dict with status indicating the API is healthy.
    """
    return {"status": "healthy"}


# Router registration
app.include_router(prospects.router, prefix="/api", tags=["prospects"])
