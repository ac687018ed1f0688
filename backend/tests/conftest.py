"""
Shared fixtures for job service tests.

Store, lifecycle and matching tests run against a real in-memory SQLite
database; the postcode service and image store are replaced by stubs.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import init_db
from app.errors import ImageStoreError
from app.models import Job
from app.services.geocoder import ResolvedLocation
from app.services.images import ImageStore
from app.services.job_store import SqlJobStore
from app.services.lifecycle import location_values
from app.schemas import ImageRef

WESTMINSTER = ResolvedLocation(longitude=-0.1276, latitude=51.5074, postcode="SW1A 1AA")
# ~200 m from Westminster
WHITEHALL = ResolvedLocation(longitude=-0.1263, latitude=51.5058, postcode="SW1A 2AA")
# 0.4497 degrees due north of Westminster, ~50 km
FIFTY_KM_NORTH = ResolvedLocation(longitude=-0.1276, latitude=51.9571, postcode="SG1 1AA")

KNOWN_POSTCODES = {loc.postcode: loc for loc in (WESTMINSTER, WHITEHALL, FIFTY_KM_NORTH)}


class StubResolver:
    """Resolves from a fixed table; anything else is "not found"."""

    def __init__(self, known: Optional[Dict[str, ResolvedLocation]] = None):
        self.known = dict(KNOWN_POSTCODES if known is None else known)
        self.calls: List[str] = []

    async def resolve(self, postcode: Optional[str]) -> Optional[ResolvedLocation]:
        self.calls.append(postcode)
        trimmed = (postcode or "").strip().upper()
        if not trimmed:
            return None
        return self.known.get(trimmed)


class AlternatingResolver(StubResolver):
    """Succeeds on odd calls and fails on even ones."""

    async def resolve(self, postcode: Optional[str]) -> Optional[ResolvedLocation]:
        result = await super().resolve(postcode)
        return result if len(self.calls) % 2 == 1 else None


class StubImageStore(ImageStore):
    def __init__(self, fail_release: bool = False):
        self.fail_release = fail_release
        self.released: List[str] = []
        self.uploaded: List[str] = []

    async def upload(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> ImageRef:
        self.uploaded.append(filename)
        remote_id = f"jobs/{uuid.uuid4().hex}"
        return ImageRef(remote_id=remote_id, url=f"https://img.example.com/{remote_id}.jpg", original_name=filename)

    async def release(self, remote_id: str) -> bool:
        self.released.append(remote_id)
        if self.fail_release:
            raise ImageStoreError(f"Image release failed: {remote_id}")
        return True


def make_job(
    location: ResolvedLocation = WESTMINSTER,
    created_at: Optional[datetime] = None,
    **overrides,
) -> Job:
    """Build an unsaved Job with every location column filled in."""
    fields = {
        "id": str(uuid.uuid4()),
        "title": "Fix leaking kitchen tap",
        "description": "Kitchen mixer tap drips constantly, needs new washer.",
        "category": "plumbing",
        "status": "open",
        "customer_id": "customer-1",
        "tradesman_id": None,
        "created_at": created_at or datetime.now(timezone.utc),
        **location_values(location),
    }
    fields["updated_at"] = fields["created_at"]
    fields.update(overrides)
    return Job(**fields)


def minutes_ago(minutes: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=minutes)


@pytest_asyncio.fixture
async def db_session():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    await init_db(engine)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def store(db_session):
    return SqlJobStore(db_session)


@pytest.fixture
def resolver():
    return StubResolver()


@pytest.fixture
def image_store():
    return StubImageStore()
