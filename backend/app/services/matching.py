"""
Job Matching Engine - filtered, radius-bounded, paginated job listing

Listing flow:
    1. Filter is always status=open, plus category when given
    2. If a postcode is given, resolve it
         resolved   → spatial path: radius query + separate radius count
         unresolved → fallback path: plain filtered query + plain count
       No postcode  → unfiltered path (same queries as fallback)
    3. Build the page: items newest first, pagination from the count

The fallback deliberately drops the location filter instead of failing the
request. It is logged at WARNING and counted under
job_listing_queries_total{path="fallback"} so degraded geocoding is visible.

Items carry the postcode as their location; coordinates never leave the
store layer.
"""

import logging
import math
from typing import Any, Dict, List

from app.errors import JobNotFound
from app.middleware.metrics import record_listing_path
from app.models.job import JobStatus
from app.schemas import JobDetail, JobListResponse, JobQuery, JobSummary, Pagination
from app.services.geocoder import LocationResolver
from app.services.job_store import JobStore
from app.services.lifecycle import parse_job_id

logger = logging.getLogger(__name__)

SPATIAL = "spatial"
FALLBACK = "fallback"
UNFILTERED = "unfiltered"


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


class JobMatchingEngine:
    def __init__(self, store: JobStore, resolver: LocationResolver):
        self.store = store
        self.resolver = resolver

    async def list(self, query: JobQuery) -> JobListResponse:
        filters: Dict[str, Any] = {"status": JobStatus.OPEN.value}
        if query.category is not None:
            filters["category"] = query.category.value

        location = None
        if query.postcode and query.postcode.strip():
            location = await self.resolver.resolve(query.postcode)
            if location is None:
                logger.warning(
                    f"Postcode {query.postcode!r} did not resolve, "
                    f"listing without location filter (category={filters.get('category')})"
                )

        if location is not None:
            path = SPATIAL
            jobs = await self.store.find_near(
                location.longitude,
                location.latitude,
                query.radius_m,
                filters,
                skip=query.skip,
                limit=query.page_size,
            )
            total = await self.store.count_near(
                location.longitude, location.latitude, query.radius_m, filters
            )
        else:
            path = FALLBACK if query.postcode and query.postcode.strip() else UNFILTERED
            jobs = await self.store.find(filters, skip=query.skip, limit=query.page_size)
            total = await self.store.count(filters)

        record_listing_path(path)
        logger.debug(f"Listed {len(jobs)}/{total} jobs via {path} path (page {query.page})")

        return JobListResponse(
            items=[JobSummary.from_job(job) for job in jobs],
            pagination=Pagination(
                page=query.page,
                page_size=query.page_size,
                total=total,
                total_pages=total_pages(total, query.page_size),
            ),
        )

    async def get_by_id(self, job_id: str) -> JobDetail:
        job = await self.store.get(parse_job_id(job_id))
        if job is None:
            raise JobNotFound()
        return JobDetail.from_job(job)

    async def _list_for_party(self, field: str, party_id: str, label: str) -> List[JobDetail]:
        jobs = await self.store.find_by_party(field, party_id)
        if not jobs:
            raise JobNotFound(f"No jobs found for this {label}")
        return [JobDetail.from_job(job) for job in jobs]

    async def list_for_customer(self, customer_id: str) -> List[JobDetail]:
        return await self._list_for_party("customer_id", customer_id, "customer")

    async def list_for_tradesman(self, tradesman_id: str) -> List[JobDetail]:
        return await self._list_for_party("tradesman_id", tradesman_id, "tradesman")
