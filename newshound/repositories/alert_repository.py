"""
Alert Repository - PostgreSQL storage for alerts and their sentences

Storage: PostgreSQL (newshound.alert, newshound.sentence, newshound.sender)

Write path:
- put(): alert row -> sentence rows -> top-sentence back-reference,
  all inside one transaction so an alert is never visible half-written

Read paths:
- get_by_ids(): batch point lookup, sentences hydrated
- find_by_timeframe(): inclusive range over timestamp
- find_containing(): window + phrase containment query used by the Matcher
- stream_all(): server-side cursor over the whole table for backfill

IDs are bigserial values generated by PostgreSQL.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional

import asyncpg

from newshound.models.domain.alert import Alert, Sentence
from newshound.repositories.errors import ConstraintViolationError
from newshound.utils.datetime_utils import to_utc

logger = logging.getLogger(__name__)


# Shared SELECT for every alert read. The top sentence text is joined back
# so a read alert carries both the reference and its value.
ALERT_SELECT = """
    SELECT a.id, a.sender_id, s.name AS sender, a.url, a."timestamp",
           a.top_phrases, a.tags, a.subject, a.raw_body, a.body,
           a.top_sentence AS top_sentence_id, ts.text AS top_sentence
    FROM newshound.alert a
    LEFT JOIN newshound.sender s ON s.id = a.sender_id
    LEFT JOIN newshound.sentence ts ON ts.id = a.top_sentence
"""


def row_to_alert(row) -> Alert:
    """Build an Alert from a row produced by ALERT_SELECT"""
    return Alert(
        id=row['id'],
        sender_id=row['sender_id'],
        sender=row['sender'],
        article_url=row['url'] or "",
        timestamp=row['timestamp'],
        top_phrases=list(row['top_phrases'] or []),
        tags=list(row['tags'] or []),
        subject=row['subject'] or "",
        raw_body=row['raw_body'] or "",
        body=row['body'] or "",
        top_sentence_id=row['top_sentence_id'],
        top_sentence=row['top_sentence'] or "",
    )


class AlertRepository:
    """
    Repository for Alert domain model

    Every method takes an optional timeout (seconds) that is forwarded to
    asyncpg; cancellation of the calling task aborts the query.
    """

    def __init__(self, db_pool: asyncpg.Pool, stream_prefetch: int = 100):
        self.db_pool = db_pool
        self.stream_prefetch = stream_prefetch

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def put(self, alert: Alert, timeout: Optional[float] = None) -> int:
        """
        Store a new alert with its sentences.

        Steps (single transaction):
        1. Insert alert without top-sentence reference, get generated ID
        2. Insert each sentence referencing that ID
        3. Point the alert at the sentence whose value equals top_sentence

        If no sentence matches top_sentence the reference stays NULL.

        Args:
            alert: Alert domain model (id must be None)
            timeout: Per-statement timeout in seconds

        Returns:
            Generated alert ID. The alert object is updated in place with
            id, sender_id, timestamp, sentence ids and top_sentence_id.

        Raises:
            ValueError: If the alert was already stored
            ConstraintViolationError: If a constraint fails (e.g. unknown sender)
        """
        if alert.id is not None:
            raise ValueError(f"Alert already stored with id {alert.id}")

        try:
            async with self.db_pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow("""
                        INSERT INTO newshound.alert
                            (sender_id, url, "timestamp", top_phrases,
                             subject, raw_body, body, tags)
                        VALUES (
                            (SELECT id FROM newshound.sender WHERE name = lower($1)),
                            $2, COALESCE($3::timestamptz, NOW()), $4::text[],
                            $5, $6, $7, $8::text[]
                        )
                        RETURNING id, sender_id, "timestamp"
                    """,
                        alert.sender,
                        alert.article_url,
                        alert.timestamp,
                        list(alert.top_phrases),
                        alert.subject,
                        alert.raw_body,
                        alert.body,
                        list(alert.tags),
                        timeout=timeout,
                    )
                    alert_id = row['id']

                    sentence_ids = []
                    for sentence in alert.sentences:
                        sentence_id = await conn.fetchval("""
                            INSERT INTO newshound.sentence (text, phrases, alert_id)
                            VALUES ($1, $2::text[], $3)
                            RETURNING id
                        """, sentence.value, list(sentence.phrases), alert_id, timeout=timeout)
                        sentence_ids.append(sentence_id)

                    top_sentence_id = None
                    for sentence, sentence_id in zip(alert.sentences, sentence_ids):
                        if alert.top_sentence and sentence.value == alert.top_sentence:
                            top_sentence_id = sentence_id
                            break

                    if top_sentence_id is not None:
                        await conn.execute("""
                            UPDATE newshound.alert SET top_sentence = $1 WHERE id = $2
                        """, top_sentence_id, alert_id, timeout=timeout)

        except asyncpg.IntegrityConstraintViolationError as e:
            raise ConstraintViolationError(
                str(e), operation="put_alert", entity=alert.sender
            ) from e

        # Only reflect the generated values once the transaction committed
        alert.id = alert_id
        alert.sender_id = row['sender_id']
        alert.timestamp = row['timestamp']
        for sentence, sentence_id in zip(alert.sentences, sentence_ids):
            sentence.id = sentence_id
            sentence.alert_id = alert_id
        alert.top_sentence_id = top_sentence_id

        if top_sentence_id is None and alert.sentences:
            logger.warning(
                f"Alert {alert_id}: no sentence matches top sentence "
                f"{alert.top_sentence[:60]!r}, reference left unset"
            )

        logger.info(
            f"✨ Stored alert {alert_id} ({len(sentence_ids)} sentences, "
            f"{len(alert.top_phrases)} phrases)"
        )
        return alert_id

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, alert_id: int, timeout: Optional[float] = None) -> Optional[Alert]:
        """
        Retrieve alert by ID.

        Returns:
            Alert model (sentences hydrated) or None
        """
        alerts = await self.get_by_ids([alert_id], timeout=timeout)
        return alerts[0] if alerts else None

    async def get_by_ids(self, alert_ids: Iterable[int], timeout: Optional[float] = None) -> List[Alert]:
        """
        Batch point lookup.

        Missing IDs are simply absent from the result.

        Args:
            alert_ids: Alert IDs to fetch
            timeout: Per-statement timeout in seconds

        Returns:
            Alerts ordered by ID, sentences hydrated
        """
        ids = sorted(set(alert_ids))
        if not ids:
            return []

        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                ALERT_SELECT + " WHERE a.id = ANY($1::bigint[]) ORDER BY a.id",
                ids, timeout=timeout,
            )
            alerts = [row_to_alert(row) for row in rows]
            if not alerts:
                return []

            sentences = await self._fetch_sentences(conn, [a.id for a in alerts], timeout)

        for alert in alerts:
            alert.sentences = sentences.get(alert.id, [])

        logger.debug(f"Fetched {len(alerts)}/{len(ids)} alerts by id")
        return alerts

    async def get_sentences(self, alert_ids: Iterable[int], timeout: Optional[float] = None) -> Dict[int, List[Sentence]]:
        """
        Fetch sentences for several alerts.

        Returns:
            Mapping alert_id -> sentences in insertion order (alerts without
            sentences are absent)
        """
        ids = sorted(set(alert_ids))
        if not ids:
            return {}
        async with self.db_pool.acquire() as conn:
            return await self._fetch_sentences(conn, ids, timeout)

    async def _fetch_sentences(self, conn, alert_ids: List[int], timeout: Optional[float]) -> Dict[int, List[Sentence]]:
        rows = await conn.fetch("""
            SELECT id, text, phrases, alert_id
            FROM newshound.sentence
            WHERE alert_id = ANY($1::bigint[])
            ORDER BY alert_id, id
        """, alert_ids, timeout=timeout)

        by_alert = defaultdict(list)
        for row in rows:
            by_alert[row['alert_id']].append(Sentence(
                id=row['id'],
                value=row['text'],
                phrases=list(row['phrases'] or []),
                alert_id=row['alert_id'],
            ))
        return dict(by_alert)

    async def find_by_timeframe(
        self,
        start: datetime,
        end: datetime,
        timeout: Optional[float] = None
    ) -> List[Alert]:
        """
        Alerts with start <= timestamp <= end, oldest first.

        Sentences are not hydrated; top_sentence carries the top sentence text.
        """
        start, end = to_utc(start), to_utc(end)
        if start > end:
            return []

        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                ALERT_SELECT + """
                WHERE a."timestamp" BETWEEN $1 AND $2
                ORDER BY a."timestamp", a.id
                """,
                start, end, timeout=timeout,
            )

        return [row_to_alert(row) for row in rows]

    async def find_containing(
        self,
        tags: List[str],
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Alert]:
        """
        Alerts in [start, end] whose top_phrases contain every tag.

        Uses the GIN index on top_phrases (array containment @>).

        Args:
            tags: Tags that must all be present in a stored alert's phrases
            start: Window start (inclusive)
            end: Window end (inclusive)
            exclude_id: Alert ID to leave out (the alert being matched)
            timeout: Per-statement timeout in seconds

        Returns:
            Matching alerts ordered by (timestamp, id)
        """
        start, end = to_utc(start), to_utc(end)
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                ALERT_SELECT + """
                WHERE a."timestamp" BETWEEN $1 AND $2
                  AND ($3::bigint IS NULL OR a.id <> $3)
                  AND a.top_phrases @> $4::text[]
                ORDER BY a."timestamp", a.id
                """,
                start, end, exclude_id, list(tags), timeout=timeout,
            )

        return [row_to_alert(row) for row in rows]

    async def stream_all(
        self,
        cancel: Optional[asyncio.Event] = None,
        prefetch: Optional[int] = None
    ) -> AsyncIterator[Alert]:
        """
        Iterate over every stored alert, ordered by ID.

        Rows come from a server-side cursor inside a read-only transaction,
        so the table is never materialized. The cursor and the pooled
        connection are released when iteration ends, when the generator is
        closed (use contextlib.aclosing when breaking out early), when the
        task is cancelled, or when `cancel` is set. Setting `cancel` ends
        the iteration quietly.

        Args:
            cancel: Optional cancellation token checked before each row
            prefetch: Rows fetched per round trip (defaults to stream_prefetch)

        Yields:
            Alert models (sentences not hydrated)
        """
        prefetch = prefetch or self.stream_prefetch
        count = 0

        async with self.db_pool.acquire() as conn:
            async with conn.transaction(readonly=True):
                async for row in conn.cursor(
                    ALERT_SELECT + " ORDER BY a.id", prefetch=prefetch
                ):
                    if cancel is not None and cancel.is_set():
                        logger.info(f"Alert stream cancelled after {count} alerts")
                        return
                    count += 1
                    yield row_to_alert(row)

        logger.debug(f"Alert stream exhausted after {count} alerts")
