from app.services.geocoder import LocationResolver, ResolvedLocation
from app.services.images import ImageStore, HttpImageStore, NullImageStore
from app.services.job_store import JobStore, SqlJobStore
from app.services.lifecycle import JobLifecycleManager, DeleteResult
from app.services.matching import JobMatchingEngine

__all__ = [
    "LocationResolver",
    "ResolvedLocation",
    "ImageStore",
    "HttpImageStore",
    "NullImageStore",
    "JobStore",
    "SqlJobStore",
    "JobLifecycleManager",
    "DeleteResult",
    "JobMatchingEngine",
]
