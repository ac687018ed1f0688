"""
Request-scoped wiring for the job service.

Collaborators are built per request from the shared HTTP client on
app.state and the request's database session, so tests can swap any of
them through app.dependency_overrides.
"""

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.services import (
    HttpImageStore,
    ImageStore,
    JobLifecycleManager,
    JobMatchingEngine,
    JobStore,
    LocationResolver,
    NullImageStore,
    SqlJobStore,
)


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_location_resolver(client: httpx.AsyncClient = Depends(get_http_client)) -> LocationResolver:
    settings = get_settings()
    return LocationResolver(
        client,
        base_url=settings.postcode_api_url,
        timeout=settings.geocode_timeout_seconds,
    )


def get_image_store(client: httpx.AsyncClient = Depends(get_http_client)) -> ImageStore:
    settings = get_settings()
    if not settings.image_service_url:
        return NullImageStore()
    return HttpImageStore(
        client,
        base_url=settings.image_service_url,
        api_key=settings.image_service_api_key,
        timeout=settings.image_service_timeout_seconds,
    )


def get_job_store(db: AsyncSession = Depends(get_db)) -> JobStore:
    return SqlJobStore(db)


def get_matching_engine(
    store: JobStore = Depends(get_job_store),
    resolver: LocationResolver = Depends(get_location_resolver),
) -> JobMatchingEngine:
    return JobMatchingEngine(store, resolver)


def get_lifecycle_manager(
    store: JobStore = Depends(get_job_store),
    resolver: LocationResolver = Depends(get_location_resolver),
    image_store: ImageStore = Depends(get_image_store),
) -> JobLifecycleManager:
    return JobLifecycleManager(store, resolver, image_store)
