"""
Repository Pattern - Storage abstraction layer

Repositories hide storage details (PostgreSQL via asyncpg) from business
logic. Consumers work with domain models, not database rows.

- AlertRepository: alerts + sentences (atomic write, point/range reads, scan)
- EventRepository: alert clusters (reverse lookup, upsert, delete, merge)
"""
import asyncpg

from newshound.config.database import PostgresConfig

from .alert_repository import AlertRepository
from .event_repository import EventRepository
from .errors import StoreError, ConstraintViolationError

# Shared database connection pool (initialized on first use)
db_pool = None


async def get_db_pool():
    """Get or create shared database connection pool"""
    global db_pool
    if db_pool is None:
        config = PostgresConfig.from_settings()
        db_pool = await asyncpg.create_pool(**config.to_asyncpg_kwargs())
    return db_pool


__all__ = [
    'AlertRepository',
    'EventRepository',
    'StoreError',
    'ConstraintViolationError',
    'db_pool',
    'get_db_pool',
]
