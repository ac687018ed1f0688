"""
Job Lifecycle Manager - create, update and delete with location invariants

Invariants enforced here:
    - A stored job always carries a resolved coordinate together with the
      canonical postcode it came from. An unresolvable postcode rejects the
      whole operation before anything is written.
    - A postcode change replaces every location column at once.
    - An image is released from the image store only when no other job still
      references it. On update the release follows a successful write; on
      delete it is attempted before the record is removed.
    - Status is always one of JobStatus; new jobs start "open".
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.errors import ImageStoreError, JobNotFound, MalformedJobId, UnresolvableLocation
from app.middleware.metrics import record_image_release
from app.models import Job
from app.models.job import JobStatus, utcnow
from app.schemas import ImageRef, JobCreate, JobUpdate
from app.services.geocoder import LocationResolver, ResolvedLocation
from app.services.images import ImageStore
from app.services.job_store import JobStore
from app.services.spherical import unit_vector

logger = logging.getLogger(__name__)


def parse_job_id(job_id: str) -> str:
    """Return the canonical form of a job id, or raise MalformedJobId."""
    try:
        return str(uuid.UUID(str(job_id)))
    except ValueError as e:
        raise MalformedJobId(job_id) from e


def location_values(location: ResolvedLocation) -> Dict[str, Any]:
    """Every location column, derived from a single resolution."""
    x, y, z = unit_vector(location.longitude, location.latitude)
    return {
        "postcode": location.postcode,
        "longitude": location.longitude,
        "latitude": location.latitude,
        "loc_x": x,
        "loc_y": y,
        "loc_z": z,
    }


def image_values(image: Optional[ImageRef]) -> Dict[str, Any]:
    if image is None:
        return {"image_remote_id": None, "image_url": None, "image_original_name": None}
    return {
        "image_remote_id": image.remote_id,
        "image_url": image.url,
        "image_original_name": image.original_name,
    }


IMAGE_RELEASED = "released"
IMAGE_RELEASE_FAILED = "failed"
IMAGE_RELEASE_SKIPPED = "skipped"
IMAGE_SHARED = "shared"


@dataclass
class DeleteResult:
    job_id: str
    # None when the job had no managed image
    image_release: Optional[str] = None

    @property
    def image_released(self) -> Optional[bool]:
        if self.image_release == IMAGE_RELEASED:
            return True
        if self.image_release == IMAGE_RELEASE_FAILED:
            return False
        return None


class JobLifecycleManager:
    def __init__(self, store: JobStore, resolver: LocationResolver, image_store: ImageStore):
        self.store = store
        self.resolver = resolver
        self.image_store = image_store

    async def _resolve_or_reject(self, postcode: str) -> ResolvedLocation:
        location = await self.resolver.resolve(postcode)
        if location is None:
            logger.info(f"Rejecting job write, unresolvable postcode {postcode!r}")
            raise UnresolvableLocation(postcode)
        return location

    async def _release_image(self, job_id: str, remote_id: Optional[str], held_by_job: bool) -> Optional[str]:
        """
        Release a managed image unless another job still references it.

        held_by_job says whether job_id itself still points at remote_id.
        Returns the release outcome, or None if there is no managed image.
        """
        if not remote_id:
            return None

        references = await self.store.count({"image_remote_id": remote_id})
        if references > (1 if held_by_job else 0):
            record_image_release(IMAGE_SHARED)
            logger.warning(f"Image {remote_id} of job {job_id} is referenced by other jobs, not releasing")
            return IMAGE_SHARED

        try:
            released = await self.image_store.release(remote_id)
        except ImageStoreError as e:
            record_image_release(IMAGE_RELEASE_FAILED)
            logger.warning(f"Failed to release image {remote_id} for job {job_id}: {e}")
            return IMAGE_RELEASE_FAILED

        outcome = IMAGE_RELEASED if released else IMAGE_RELEASE_SKIPPED
        record_image_release(outcome)
        return outcome

    async def create(self, data: JobCreate, customer_id: str) -> Job:
        """
        Create an open job for customer_id.

        Raises:
            UnresolvableLocation: postcode did not resolve; nothing is written
        """
        location = await self._resolve_or_reject(data.location.postcode)

        job = Job(
            id=str(uuid.uuid4()),
            title=data.title,
            description=data.description,
            category=data.category.value,
            status=JobStatus.OPEN.value,
            customer_id=customer_id,
            tradesman_id=None,
            **location_values(location),
            **image_values(data.image),
        )
        job = await self.store.create(job)
        logger.info(f"Created job {job.id} ({job.category}) at {job.postcode}")
        return job

    async def update(self, job_id: str, data: JobUpdate) -> Job:
        """
        Apply a partial update.

        Raises:
            MalformedJobId, JobNotFound
            UnresolvableLocation: new postcode did not resolve; nothing changes
        """
        job_id = parse_job_id(job_id)
        job = await self.store.get(job_id)
        if job is None:
            raise JobNotFound()

        fields = data.model_fields_set
        values: Dict[str, Any] = {}

        # Resolve first so a bad postcode leaves the record and its image untouched
        if data.location is not None:
            values.update(location_values(await self._resolve_or_reject(data.location.postcode)))

        for field in ("title", "description"):
            if field in fields and getattr(data, field) is not None:
                values[field] = getattr(data, field)
        if data.category is not None:
            values["category"] = data.category.value
        if data.status is not None:
            values["status"] = data.status.value

        old_remote_id = job.image_remote_id
        replace_image = "image" in fields and data.image is not None
        if replace_image or data.remove_image:
            values.update(image_values(data.image if replace_image else None))

        values["updated_at"] = utcnow()
        updated = await self.store.update(job_id, values)
        if updated is None:
            # Deleted concurrently between lookup and write
            raise JobNotFound()

        # Release only once the record no longer points at the old image
        if old_remote_id and old_remote_id != updated.image_remote_id:
            await self._release_image(job_id, old_remote_id, held_by_job=False)
        logger.info(f"Updated job {job_id}: {sorted(k for k in values if k != 'updated_at')}")
        return updated

    async def delete(self, job_id: str) -> DeleteResult:
        """
        Delete a job, releasing its image first.

        Image release failure is reported in the result but does not stop the
        record from being deleted.

        Raises:
            MalformedJobId, JobNotFound
        """
        job_id = parse_job_id(job_id)
        job = await self.store.get(job_id)
        if job is None:
            raise JobNotFound()

        image_release = await self._release_image(job_id, job.image_remote_id, held_by_job=True)
        if not await self.store.delete(job_id):
            raise JobNotFound()
        logger.info(f"Deleted job {job_id}")
        return DeleteResult(job_id=job_id, image_release=image_release)
