"""
Job Store - persistence for Job records

The store is the only component that talks to the database. Filters are
plain equality mappings ({"status": "open", "category": "plumbing"}) and
every listing is ordered newest first (created_at DESC, id DESC) whether or
not a radius predicate is applied.

Any SQLAlchemy error is rolled back, logged, and re-raised as StoreFailure.
"""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only

from app.errors import StoreFailure
from app.middleware.metrics import record_store_query_latency
from app.models import Job
from app.services.spherical import latitude_band, min_dot_for_radius, unit_vector

logger = logging.getLogger(__name__)

# Columns needed to render a listing item; coordinates are never projected
SUMMARY_COLUMNS = (
    Job.title,
    Job.description,
    Job.status,
    Job.customer_id,
    Job.postcode,
    Job.category,
    Job.image_url,
    Job.created_at,
)

NEWEST_FIRST = (Job.created_at.desc(), Job.id.desc())


class JobStore(ABC):
    """Persistence contract used by the lifecycle manager and matching engine."""

    @abstractmethod
    async def create(self, job: Job) -> Job:
        pass

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        pass

    @abstractmethod
    async def find(self, filters: Mapping[str, Any], skip: int = 0, limit: int = 10) -> List[Job]:
        pass

    @abstractmethod
    async def find_near(
        self,
        longitude: float,
        latitude: float,
        radius_m: float,
        filters: Mapping[str, Any],
        skip: int = 0,
        limit: int = 10,
    ) -> List[Job]:
        pass

    @abstractmethod
    async def count(self, filters: Mapping[str, Any]) -> int:
        pass

    @abstractmethod
    async def count_near(
        self, longitude: float, latitude: float, radius_m: float, filters: Mapping[str, Any]
    ) -> int:
        pass

    @abstractmethod
    async def update(self, job_id: str, values: Dict[str, Any]) -> Optional[Job]:
        pass

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        pass

    @abstractmethod
    async def find_by_party(self, field: str, party_id: str) -> List[Job]:
        pass


def _filter_clauses(filters: Mapping[str, Any]) -> list:
    return [getattr(Job, field) == value for field, value in filters.items()]


def _near_clause(longitude: float, latitude: float, radius_m: float):
    cx, cy, cz = unit_vector(longitude, latitude)
    lat_min, lat_max = latitude_band(latitude, radius_m)
    return and_(
        Job.latitude.between(lat_min, lat_max),
        Job.loc_x * cx + Job.loc_y * cy + Job.loc_z * cz >= min_dot_for_radius(radius_m),
    )


class SqlJobStore(JobStore):
    """JobStore over an async SQLAlchemy session (one session per request)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _operation(self, name: str):
        start = time.perf_counter()
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Job store {name} failed: {e}")
            raise StoreFailure(f"Job store {name} failed") from e
        finally:
            record_store_query_latency(name, time.perf_counter() - start)

    async def create(self, job: Job) -> Job:
        async with self._operation("create"):
            self.session.add(job)
            await self.session.commit()
            await self.session.refresh(job)
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        async with self._operation("get"):
            return await self.session.get(Job, job_id, populate_existing=True)

    async def find(self, filters: Mapping[str, Any], skip: int = 0, limit: int = 10) -> List[Job]:
        query = (
            select(Job)
            .options(load_only(*SUMMARY_COLUMNS))
            .where(*_filter_clauses(filters))
            .order_by(*NEWEST_FIRST)
            .offset(skip)
            .limit(limit)
        )
        async with self._operation("find"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def find_near(
        self,
        longitude: float,
        latitude: float,
        radius_m: float,
        filters: Mapping[str, Any],
        skip: int = 0,
        limit: int = 10,
    ) -> List[Job]:
        query = (
            select(Job)
            .options(load_only(*SUMMARY_COLUMNS))
            .where(_near_clause(longitude, latitude, radius_m), *_filter_clauses(filters))
            .order_by(*NEWEST_FIRST)
            .offset(skip)
            .limit(limit)
        )
        async with self._operation("find_near"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def count(self, filters: Mapping[str, Any]) -> int:
        query = select(func.count(Job.id)).where(*_filter_clauses(filters))
        async with self._operation("count"):
            result = await self.session.execute(query)
            return result.scalar() or 0

    async def count_near(
        self, longitude: float, latitude: float, radius_m: float, filters: Mapping[str, Any]
    ) -> int:
        query = select(func.count(Job.id)).where(
            _near_clause(longitude, latitude, radius_m), *_filter_clauses(filters)
        )
        async with self._operation("count_near"):
            result = await self.session.execute(query)
            return result.scalar() or 0

    async def update(self, job_id: str, values: Dict[str, Any]) -> Optional[Job]:
        async with self._operation("update"):
            job = await self.session.get(Job, job_id, populate_existing=True)
            if job is None:
                return None
            for field, value in values.items():
                setattr(job, field, value)
            await self.session.commit()
            await self.session.refresh(job)
        return job

    async def delete(self, job_id: str) -> bool:
        async with self._operation("delete"):
            result = await self.session.execute(delete(Job).where(Job.id == job_id))
            await self.session.commit()
        return result.rowcount > 0

    async def find_by_party(self, field: str, party_id: str) -> List[Job]:
        if field not in ("customer_id", "tradesman_id"):
            raise ValueError(f"Unknown party field: {field}")
        query = select(Job).where(getattr(Job, field) == party_id).order_by(*NEWEST_FIRST)
        async with self._operation("find_by_party"):
            result = await self.session.execute(query)
            return list(result.scalars().all())
