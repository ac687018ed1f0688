"""
Job Model - SQLAlchemy ORM model for customer-posted service jobs

A job is a request for trade work (plumbing, electrical, ...) pinned to a
resolved UK postcode. The location is stored as a longitude/latitude pair plus
the canonical postcode it came from, and as a unit vector on the sphere
(loc_x, loc_y, loc_z) so radius queries reduce to a dot-product comparison
that any SQL backend can evaluate.

Status Flow:
    open → accepted → completed
    open → cancelled
"""

from datetime import datetime, timezone
from enum import Enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Index, String, Text
from app.database import Base


class JobCategory(str, Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    CARPENTRY = "carpentry"
    CLEANING = "cleaning"
    GARDENING = "gardening"
    PAINTING = "painting"
    OTHER = "other"


class JobStatus(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


JOB_CATEGORIES = tuple(c.value for c in JobCategory)
JOB_STATUSES = tuple(s.value for s in JobStatus)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in_clause(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Job(Base):
    """
    Service job entity.

    Attributes:
        id: UUID primary key (string form)
        title: Short job title
        description: Full description of the work
        category: One of JOB_CATEGORIES (indexed)
        status: One of JOB_STATUSES, defaults to "open" (indexed)
        customer_id: Owning customer reference (indexed)
        tradesman_id: Accepting tradesman, null until accepted (indexed)
        image_remote_id/image_url/image_original_name: Image reference,
            all null when the job has no image
        postcode: Canonical postcode the coordinate was resolved from
        longitude/latitude: Resolved point (degrees)
        loc_x/loc_y/loc_z: Unit vector of the point, derived from lon/lat
    """

    __tablename__ = "jobs"
    __table_args__ = (
        CheckConstraint(_in_clause("status", JOB_STATUSES), name="ck_jobs_status"),
        CheckConstraint(_in_clause("category", JOB_CATEGORIES), name="ck_jobs_category"),
        Index("ix_jobs_location", "latitude", "longitude"),
        Index("ix_jobs_status_created_at", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=JobStatus.OPEN.value, index=True)
    customer_id = Column(String(64), nullable=False, index=True)
    tradesman_id = Column(String(64), nullable=True, index=True)

    image_remote_id = Column(String(255), nullable=True)
    image_url = Column(String(2000), nullable=True)
    image_original_name = Column(String(255), nullable=True)

    postcode = Column(String(16), nullable=False)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)
    loc_x = Column(Float, nullable=False)
    loc_y = Column(Float, nullable=False)
    loc_z = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
