from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/jobs.db"
    secret_key: str = "dev-secret-key-change-in-production"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Postcode lookup service (postcodes.io compatible)
    postcode_api_url: str = "https://api.postcodes.io"
    geocode_timeout_seconds: float = 5.0

    # Image store; leave empty to disable remote image management
    image_service_url: str = ""
    image_service_api_key: str = ""
    image_service_timeout_seconds: float = 10.0

    # Listing defaults
    default_radius_km: float = 5.0
    max_radius_km: float = 100.0
    default_page_size: int = 10
    max_page: int = 10_000
    max_page_size: int = 50

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
