from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file
    - System environment

    Variable names match docker-compose conventions:
    - POSTGRES_HOST, POSTGRES_PORT, etc. (for database)
    - REDIS_URL (for the ingest queue)
    - EVENT_TIMEFRAME_HOURS (matching window W, symmetric around an alert)
    """

    # Environment
    environment: str = "development"

    # PostgreSQL (from docker-compose)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "newshound_user"
    postgres_password: str = "newshound_pass"
    postgres_db: str = "newshound"
    postgres_pool_min_size: int = 2
    postgres_pool_max_size: int = 10
    database_url: Optional[str] = Field(default=None, validate_default=True)

    # Redis
    redis_url: str = "redis://localhost:6379"
    alert_queue: str = "queue:alert:ingest"
    alert_failed_queue: str = "queue:alert:failed"

    # Matching
    event_timeframe_hours: float = 4.0

    # Full-table scans
    stream_prefetch: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('event_timeframe_hours')
    @classmethod
    def check_timeframe(cls, v):
        if v <= 0:
            raise ValueError("event_timeframe_hours must be positive")
        return v

    @field_validator('stream_prefetch')
    @classmethod
    def check_prefetch(cls, v):
        if v < 1:
            raise ValueError("stream_prefetch must be at least 1")
        return v

    @field_validator('database_url', mode='before')
    @classmethod
    def construct_database_url(cls, v, info):
        """Construct database URL from components if not explicitly set"""
        if v:
            return v

        data = info.data
        host = data.get('postgres_host', 'localhost')
        port = data.get('postgres_port', 5432)
        user = data.get('postgres_user', 'newshound_user')
        password = data.get('postgres_password', 'newshound_pass')
        db = data.get('postgres_db', 'newshound')

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
