from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Union

from app.models.job import JobCategory, JobStatus


class ImageRef(BaseModel):
    """Handle to an image held by the image store.

    remote_id is None only for images supplied as a bare URL, which are not
    managed (and never released) by the image store.
    """

    remote_id: Optional[str] = None
    url: str
    original_name: Optional[str] = None

    @classmethod
    def from_url(cls, url: str) -> "ImageRef":
        return cls(remote_id=None, url=url, original_name=None)


def _coerce_image(value: Union[str, dict, ImageRef, None]):
    # Older clients send the image as a plain URL string
    if isinstance(value, str):
        return ImageRef.from_url(value) if value.strip() else None
    return value


class LocationIn(BaseModel):
    postcode: str = Field(min_length=1, max_length=16)


class JobCreate(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    category: JobCategory
    location: LocationIn
    image: Optional[ImageRef] = None

    @field_validator("image", mode="before")
    @classmethod
    def coerce_image(cls, value):
        return _coerce_image(value)


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    category: Optional[JobCategory] = None
    status: Optional[JobStatus] = None
    location: Optional[LocationIn] = None
    image: Optional[ImageRef] = None
    remove_image: bool = False

    @field_validator("image", mode="before")
    @classmethod
    def coerce_image(cls, value):
        return _coerce_image(value)


class JobQuery(BaseModel):
    """Listing criteria. Only open jobs are ever listed."""

    category: Optional[JobCategory] = None
    postcode: Optional[str] = None
    radius_km: float = Field(5.0, gt=0, le=100)
    page: int = Field(1, ge=1, le=10_000)
    page_size: int = Field(10, ge=1, le=50)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def radius_m(self) -> float:
        return self.radius_km * 1000


class JobSummary(BaseModel):
    id: str
    title: str
    description: str
    location: str
    status: JobStatus
    customer_id: str
    category: JobCategory
    image: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_job(cls, job) -> "JobSummary":
        return cls(
            id=job.id,
            title=job.title,
            description=job.description,
            location=job.postcode,
            status=job.status,
            customer_id=job.customer_id,
            category=job.category,
            image=job.image_url,
            created_at=job.created_at,
        )


class JobDetail(BaseModel):
    id: str
    title: str
    description: str
    location: str
    status: JobStatus
    customer_id: str
    tradesman_id: Optional[str] = None
    category: JobCategory
    image: Optional[ImageRef] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job) -> "JobDetail":
        image = None
        if job.image_url:
            image = ImageRef(
                remote_id=job.image_remote_id,
                url=job.image_url,
                original_name=job.image_original_name,
            )
        return cls(
            id=job.id,
            title=job.title,
            description=job.description,
            location=job.postcode,
            status=job.status,
            customer_id=job.customer_id,
            tradesman_id=job.tradesman_id,
            category=job.category,
            image=image,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class JobListResponse(BaseModel):
    items: list[JobSummary]
    pagination: Pagination


class JobUpdateResponse(BaseModel):
    message: str
    job: JobDetail


class JobDeleteResponse(BaseModel):
    message: str
    image_released: Optional[bool] = None
    # released, failed, skipped or shared; None when the job had no managed image
    image_release: Optional[str] = None
