from app.schemas.job import (
    ImageRef,
    LocationIn,
    JobCreate,
    JobUpdate,
    JobQuery,
    JobSummary,
    JobDetail,
    Pagination,
    JobListResponse,
    JobUpdateResponse,
    JobDeleteResponse,
)

__all__ = [
    "ImageRef",
    "LocationIn",
    "JobCreate",
    "JobUpdate",
    "JobQuery",
    "JobSummary",
    "JobDetail",
    "Pagination",
    "JobListResponse",
    "JobUpdateResponse",
    "JobDeleteResponse",
]
