from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import List, Optional
from app.auth import get_current_customer
from app.config import get_settings
from app.dependencies import get_image_store, get_lifecycle_manager, get_matching_engine
from app.models.job import JobCategory
from app.schemas import (
    ImageRef,
    JobCreate,
    JobDeleteResponse,
    JobDetail,
    JobListResponse,
    JobQuery,
    JobUpdate,
    JobUpdateResponse,
)
from app.services import ImageStore, JobLifecycleManager, JobMatchingEngine

settings = get_settings()

router = APIRouter()


@router.post("", response_model=JobDetail, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    lifecycle: JobLifecycleManager = Depends(get_lifecycle_manager),
    customer_id: str = Depends(get_current_customer),
):
    job = await lifecycle.create(data, customer_id)
    return JobDetail.from_job(job)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    category: Optional[JobCategory] = Query(None),
    location: Optional[str] = Query(None, description="Postcode to search around"),
    radius: float = Query(settings.default_radius_km, gt=0, le=settings.max_radius_km),
    page: int = Query(1, ge=1, le=settings.max_page),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    engine: JobMatchingEngine = Depends(get_matching_engine),
):
    query = JobQuery(
        category=category,
        postcode=location,
        radius_km=radius,
        page=page,
        page_size=limit,
    )
    return await engine.list(query)


@router.post("/images", response_model=ImageRef, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    image_store: ImageStore = Depends(get_image_store),
    _: str = Depends(get_current_customer),
):
    content = await file.read()
    return await image_store.upload(
        content,
        file.filename or "upload",
        file.content_type or "application/octet-stream",
    )


@router.get("/customer/{customer_id}", response_model=List[JobDetail])
async def list_customer_jobs(
    customer_id: str,
    engine: JobMatchingEngine = Depends(get_matching_engine),
):
    return await engine.list_for_customer(customer_id)


@router.get("/tradesman/{tradesman_id}", response_model=List[JobDetail])
async def list_tradesman_jobs(
    tradesman_id: str,
    engine: JobMatchingEngine = Depends(get_matching_engine),
):
    return await engine.list_for_tradesman(tradesman_id)


@router.get("/{job_id}", response_model=JobDetail)
async def get_job(
    job_id: str,
    engine: JobMatchingEngine = Depends(get_matching_engine),
):
    return await engine.get_by_id(job_id)


@router.put("/{job_id}", response_model=JobUpdateResponse)
async def update_job(
    job_id: str,
    update: JobUpdate,
    lifecycle: JobLifecycleManager = Depends(get_lifecycle_manager),
    _: str = Depends(get_current_customer),
):
    job = await lifecycle.update(job_id, update)
    return JobUpdateResponse(message="Job updated successfully", job=JobDetail.from_job(job))


@router.delete("/{job_id}", response_model=JobDeleteResponse)
async def delete_job(
    job_id: str,
    lifecycle: JobLifecycleManager = Depends(get_lifecycle_manager),
    _: str = Depends(get_current_customer),
):
    result = await lifecycle.delete(job_id)
    return JobDeleteResponse(
        message="Job deleted successfully",
        image_released=result.image_released,
        image_release=result.image_release,
    )
