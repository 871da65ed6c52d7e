from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    clinic_timezone: str = "UTC"  # schedule rules are local times in this zone
    log_level: str = "INFO"

    # Comma-separated list, e.g. "http://localhost:5173,https://admin.example.org"
    cors_origins: str = ""

    bulk_commit_batch_size: int = 200
    reservation_retry_attempts: int = 3
    reservation_retry_backoff_seconds: float = 0.05
    max_availability_range_days: int = 92
    recurrence_default_horizon_days: int = 365

    billing_api_url: str | None = None
    notifications_api_url: str | None = None
    collaborator_timeout_seconds: float = 5.0

    class Config:
        env_file = ".env"


settings = Settings()
