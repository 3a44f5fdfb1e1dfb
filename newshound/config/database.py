"""
Database Configuration
======================

Centralized connection configuration for the ingest worker and the
reconciliation pass. Handles PostgreSQL and Redis connections.
"""
from typing import Optional
from dataclasses import dataclass

from .settings import Settings, get_settings


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""
    host: str
    port: int
    user: str
    password: str
    database: str
    min_size: int = 2
    max_size: int = 10

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'PostgresConfig':
        """Create config from application settings (env / .env)."""
        settings = settings or get_settings()
        return cls(
            host=settings.postgres_host,
            port=settings.postgres_port,
            user=settings.postgres_user,
            password=settings.postgres_password,
            database=settings.postgres_db,
            min_size=settings.postgres_pool_min_size,
            max_size=settings.postgres_pool_max_size,
        )

    def to_asyncpg_kwargs(self) -> dict:
        """Convert to asyncpg.create_pool kwargs."""
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'min_size': self.min_size,
            'max_size': self.max_size,
        }


@dataclass
class RedisConfig:
    """Redis connection configuration."""
    url: str

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'RedisConfig':
        settings = settings or get_settings()
        if not settings.redis_url:
            raise ValueError("REDIS_URL must not be empty")
        return cls(url=settings.redis_url)


def get_postgres_config() -> PostgresConfig:
    """Get PostgreSQL configuration from environment."""
    return PostgresConfig.from_settings()


def get_redis_config() -> RedisConfig:
    """Get Redis configuration from environment."""
    return RedisConfig.from_settings()


async def create_postgres_pool(config: Optional[PostgresConfig] = None):
    """Create PostgreSQL connection pool from environment config."""
    import asyncpg
    config = config or get_postgres_config()
    return await asyncpg.create_pool(**config.to_asyncpg_kwargs())


async def create_job_queue(config: Optional[RedisConfig] = None):
    """Create and connect Redis job queue from environment config."""
    from newshound.services.job_queue import JobQueue
    config = config or get_redis_config()
    queue = JobQueue(config.url)
    await queue.connect()
    return queue
