"""
Event Repository - PostgreSQL storage for alert clusters

Storage: PostgreSQL (newshound.event)

An event row holds the sorted member alert ids in a BIGINT[] column with a
GIN index, so reverse lookup by alert id is an array-overlap (&&) query.
"""
import logging
from typing import Iterable, List, Optional

import asyncpg

from newshound.models.domain.event import Event, normalize_alert_ids
from newshound.repositories.errors import ConstraintViolationError

logger = logging.getLogger(__name__)


def _row_to_event(row) -> Event:
    return Event(
        id=row['id'],
        alert_ids=list(row['alert_ids'] or []),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


class EventRepository:
    """
    Repository for Event domain model
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, event_id: int, timeout: Optional[float] = None) -> Optional[Event]:
        """Retrieve event by ID, or None"""
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT id, alert_ids, created_at, updated_at
                FROM newshound.event
                WHERE id = $1
            """, event_id, timeout=timeout)

        return _row_to_event(row) if row else None

    async def find_by_alert_ids(self, alert_ids: Iterable[int], timeout: Optional[float] = None) -> List[Event]:
        """
        Events whose membership intersects the given alert IDs.

        Args:
            alert_ids: Alert IDs to look up
            timeout: Per-statement timeout in seconds

        Returns:
            Events ordered by ID (empty list when nothing matches)
        """
        ids = normalize_alert_ids(alert_ids)
        if not ids:
            return []

        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT id, alert_ids, created_at, updated_at
                FROM newshound.event
                WHERE alert_ids && $1::bigint[]
                ORDER BY id
            """, ids, timeout=timeout)

        return [_row_to_event(row) for row in rows]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def upsert(self, event: Event, timeout: Optional[float] = None) -> Event:
        """
        Create the event if it has no ID, otherwise replace its membership.

        Idempotent: repeating an upsert with the same membership leaves one
        row with unchanged state (updated_at only moves on real changes).

        Returns:
            The same event, with id and timestamps filled from the store
        """
        async with self.db_pool.acquire() as conn:
            await self._upsert(conn, event, timeout)
        return event

    async def delete(self, event_ids: Iterable[int], timeout: Optional[float] = None) -> int:
        """
        Remove events by ID. Unknown IDs are ignored.

        Returns:
            Number of rows deleted
        """
        ids = normalize_alert_ids(event_ids)
        if not ids:
            return 0
        async with self.db_pool.acquire() as conn:
            return await self._delete(conn, ids, timeout)

    async def merge(self, survivor: Event, retired_ids: Iterable[int], timeout: Optional[float] = None) -> Event:
        """
        Upsert the surviving event and delete the superseded ones atomically.

        Args:
            survivor: Event holding the merged membership
            retired_ids: IDs of the events folded into the survivor
            timeout: Per-statement timeout in seconds

        Returns:
            The surviving event
        """
        ids = [i for i in normalize_alert_ids(retired_ids) if i != survivor.id]

        async with self.db_pool.acquire() as conn:
            async with conn.transaction():
                await self._upsert(conn, survivor, timeout)
                if ids:
                    await self._delete(conn, ids, timeout)

        logger.info(f"🔀 Merged events {ids} into event {survivor.id} ({len(survivor.alert_ids)} alerts)")
        return survivor

    async def _upsert(self, conn, event: Event, timeout: Optional[float]) -> Event:
        alert_ids = normalize_alert_ids(event.alert_ids)
        row = None

        try:
            if event.id is not None:
                row = await conn.fetchrow("""
                    UPDATE newshound.event
                    SET alert_ids = $2::bigint[],
                        updated_at = CASE WHEN alert_ids = $2::bigint[]
                                          THEN updated_at ELSE NOW() END
                    WHERE id = $1
                    RETURNING id, alert_ids, created_at, updated_at
                """, event.id, alert_ids, timeout=timeout)

                if row is None:
                    logger.warning(f"Event {event.id} no longer exists, creating a new one")

            if row is None:
                row = await conn.fetchrow("""
                    INSERT INTO newshound.event (alert_ids)
                    VALUES ($1::bigint[])
                    RETURNING id, alert_ids, created_at, updated_at
                """, alert_ids, timeout=timeout)
                logger.info(f"✨ Created event {row['id']} ({len(alert_ids)} alerts)")

        except asyncpg.IntegrityConstraintViolationError as e:
            raise ConstraintViolationError(
                str(e), operation="upsert_event", entity=str(event.id)
            ) from e

        event.id = row['id']
        event.alert_ids = list(row['alert_ids'])
        event.created_at = row['created_at']
        event.updated_at = row['updated_at']
        return event

    async def _delete(self, conn, event_ids: List[int], timeout: Optional[float]) -> int:
        result = await conn.execute("""
            DELETE FROM newshound.event WHERE id = ANY($1::bigint[])
        """, event_ids, timeout=timeout)

        deleted = int(result.split()[-1])
        logger.debug(f"Deleted {deleted}/{len(event_ids)} events")
        return deleted
