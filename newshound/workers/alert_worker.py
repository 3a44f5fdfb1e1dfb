"""
Alert Worker - consumes extracted alerts and clusters them into events

Flow: extraction pipeline → queue:alert:ingest → AlertWorker
      → AlertIngestionService (store, match, aggregate)

Payloads that fail (bad data, unknown sender, store errors) are pushed to
queue:alert:failed together with the error so they can be replayed once
the cause is fixed. Nothing is retried here.

When the alert was stored but clustering failed, the dead letter carries
alert_id. A replayed payload with an id is only reclustered, never stored
again.
"""
import logging
from typing import Optional

import asyncpg

from newshound.config.settings import Settings, get_settings
from newshound.models.domain.alert import Alert
from newshound.repositories.alert_repository import AlertRepository
from newshound.repositories.event_repository import EventRepository
from newshound.services.alert_ingestion import AlertIngestionService
from newshound.services.event_aggregator import EventAggregator
from newshound.services.job_queue import JobQueue
from newshound.services.matcher import Matcher
from newshound.services.worker_base import BaseWorker
from newshound.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class StoredAlertError(Exception):
    """Alert was committed, but binding it to an event failed"""

    def __init__(self, alert_id: int, cause: Exception):
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.alert_id = alert_id
        self.cause = cause


class AlertWorker(BaseWorker):
    """Ingests alert payloads from Redis"""

    def __init__(
        self,
        ingestion: AlertIngestionService,
        job_queue: JobQueue,
        queue_name: str = "queue:alert:ingest",
        failed_queue_name: Optional[str] = "queue:alert:failed",
        worker_id: int = 1
    ):
        super().__init__(job_queue, f"alert-worker-{worker_id}", queue_name)
        self.ingestion = ingestion
        self.failed_queue_name = failed_queue_name

    @classmethod
    def from_pool(
        cls,
        db_pool: asyncpg.Pool,
        job_queue: JobQueue,
        settings: Optional[Settings] = None,
        worker_id: int = 1
    ) -> 'AlertWorker':
        """Wire repositories and services from a connection pool"""
        settings = settings or get_settings()
        alert_repo = AlertRepository(db_pool, stream_prefetch=settings.stream_prefetch)
        ingestion = AlertIngestionService(
            alert_repo=alert_repo,
            matcher=Matcher.from_settings(alert_repo, settings),
            aggregator=EventAggregator(EventRepository(db_pool)),
        )
        return cls(
            ingestion,
            job_queue,
            queue_name=settings.alert_queue,
            failed_queue_name=settings.alert_failed_queue,
            worker_id=worker_id,
        )

    async def process(self, job: dict):
        alert = Alert.from_dict(job)
        if alert.id is not None:
            result = await self.ingestion.recluster(alert.id)
        else:
            try:
                result = await self.ingestion.ingest(alert)
            except Exception as e:
                if alert.id is None:
                    raise
                raise StoredAlertError(alert.id, e) from e

        logger.info(
            f"[{self.worker_name}] Alert {alert.id} → event {result.event.id} "
            f"({result.decision.value})"
        )

    async def handle_error(self, job: dict, error: Exception):
        if not self.failed_queue_name:
            await super().handle_error(job, error)
            return

        cause = error.cause if isinstance(error, StoredAlertError) else error
        entry = {
            "job": job,
            "error": f"{type(cause).__name__}: {cause}",
            "failed_at": utc_now().isoformat(),
            "worker": self.worker_name,
        }
        if isinstance(error, StoredAlertError):
            entry["alert_id"] = error.alert_id

        await self.job_queue.enqueue(self.failed_queue_name, entry)
        logger.warning(f"[{self.worker_name}] Job moved to {self.failed_queue_name}")
