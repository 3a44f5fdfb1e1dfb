"""
Alert ingestion pipeline

Flow: AlertRepository.put -> Matcher.find_candidates -> EventAggregator.resolve

recluster() repeats only the last two steps for an alert already stored.

Only put() is transactional. Two related alerts ingested at the same time
can miss each other in the matcher and end up in separate events; the
Reconciler repairs that later.
"""
import logging
from typing import Optional

from newshound.models.domain.alert import Alert
from newshound.models.domain.event import ClusterResult
from newshound.repositories.alert_repository import AlertRepository
from newshound.services.event_aggregator import EventAggregator
from newshound.services.matcher import Matcher

logger = logging.getLogger(__name__)


class AlertIngestionService:
    """Stores a new alert and binds it to an event"""

    def __init__(self, alert_repo: AlertRepository, matcher: Matcher, aggregator: EventAggregator):
        self.alert_repo = alert_repo
        self.matcher = matcher
        self.aggregator = aggregator

    async def ingest(self, alert: Alert, timeout: Optional[float] = None) -> ClusterResult:
        """
        Ingest one alert.

        Args:
            alert: New alert from the extraction pipeline
            timeout: Per-statement timeout in seconds

        Returns:
            How the alert was clustered
        """
        await self.alert_repo.put(alert, timeout=timeout)
        result = await self.cluster(alert, timeout=timeout)

        logger.info(
            f"Ingested alert {alert.id} from {alert.sender}: "
            f"{result.decision.value} event {result.event.id}"
        )
        return result

    async def cluster(self, alert: Alert, timeout: Optional[float] = None) -> ClusterResult:
        """Match a stored alert and bind it to an event"""
        candidates = await self.matcher.find_candidates(alert, timeout=timeout)
        return await self.aggregator.resolve(alert, candidates, timeout=timeout)

    async def recluster(self, alert_id: int, timeout: Optional[float] = None) -> ClusterResult:
        """
        Re-run matching for an alert that is already stored.

        Used when clustering failed after put() committed, so the alert
        must not be inserted again.

        Raises:
            ValueError: If no alert with that ID exists
        """
        alert = await self.alert_repo.get_by_id(alert_id, timeout=timeout)
        if alert is None:
            raise ValueError(f"Alert {alert_id} not found")

        result = await self.cluster(alert, timeout=timeout)
        logger.info(f"Reclustered alert {alert_id}: {result.decision.value} event {result.event.id}")
        return result
