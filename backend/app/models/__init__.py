from app.models.job import Job, JOB_CATEGORIES, JOB_STATUSES

__all__ = ["Job", "JOB_CATEGORIES", "JOB_STATUSES"]
