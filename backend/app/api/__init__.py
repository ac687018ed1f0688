from fastapi import APIRouter
from app.api import jobs

api_router = APIRouter(prefix="/api")
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
