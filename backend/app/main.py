"""
Job Service API - Main Application Entry Point

This module initializes the FastAPI application with:
- Database schema initialization
- A shared httpx client for the postcode and image services
- CORS middleware for frontend communication
- Prometheus metrics and error handlers
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware
    ├── Prometheus Middleware (/metrics)
    └── API Router
        └── /api/jobs - Job posting, listing and radius search
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.config import get_settings
from app.database import init_db
from app.errors import register_error_handlers
from app.middleware import setup_metrics

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables
        2. Open the shared HTTP client

    Shutdown:
        1. Close the HTTP client

    Yields:
        Control to the application during its runtime
    """
    await init_db()
    app.state.http_client = httpx.AsyncClient()
    logger.info("Job service started")
    yield
    await app.state.http_client.aclose()


app = FastAPI(
    title="Job Service API",
    description="Post trade jobs and find open jobs near a postcode",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)
register_error_handlers(app)
app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "job-service"}
