"""Job service exceptions and FastAPI error handler registration."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class JobServiceError(Exception):
    """Base error for the job service core."""


class ValidationFailure(JobServiceError):
    """Input has the wrong shape."""


class MalformedJobId(ValidationFailure):
    """Job identity is not a well-formed UUID."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Invalid job ID format: {job_id}")


class UnresolvableLocation(JobServiceError):
    """Postcode could not be resolved to a coordinate."""

    def __init__(self, postcode: str):
        self.postcode = postcode
        super().__init__(f"Invalid postcode: {postcode}")


class ResolutionTransportFailure(JobServiceError):
    """Postcode service was unreachable or returned garbage."""


class JobNotFound(JobServiceError):
    """Well-formed identity with no matching record."""

    def __init__(self, message: str = "Job not found"):
        super().__init__(message)


class StoreFailure(JobServiceError):
    """The persistence layer raised."""


class ImageStoreError(JobServiceError):
    """The image store rejected or failed an upload or release."""


_EXCEPTION_STATUS = {
    MalformedJobId: 400,
    UnresolvableLocation: 400,
    ValidationFailure: 422,
    JobNotFound: 404,
    ImageStoreError: 502,
    StoreFailure: 500,
}


def _make_handler(status_code: int):
    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
            return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return _handler


def register_error_handlers(app: FastAPI) -> None:
    """Map core exceptions to HTTP responses."""
    for exc_cls, status in _EXCEPTION_STATUS.items():
        app.add_exception_handler(exc_cls, _make_handler(status))
