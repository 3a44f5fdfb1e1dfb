"""
Matcher - finds stored alerts that may report the same happening

A stored alert is a candidate for a new alert when:
- its timestamp lies in [alert.timestamp - W, alert.timestamp + W]
- it is not the alert itself
- its top_phrases contain every tag of the new alert

Containment is asymmetric and deliberately coarse: it is a cheap, indexable
filter, not a relevance score. Precision is tuned upstream by the phrase
extractor.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from newshound.config.settings import Settings
from newshound.models.domain.alert import Alert
from newshound.repositories.alert_repository import AlertRepository

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TIMEFRAME = timedelta(hours=4)


class Matcher:
    """Candidate lookup for newly ingested alerts"""

    def __init__(self, alert_repo: AlertRepository, event_timeframe: timedelta = DEFAULT_EVENT_TIMEFRAME):
        if event_timeframe <= timedelta(0):
            raise ValueError("event_timeframe must be positive")
        self.alert_repo = alert_repo
        self.event_timeframe = event_timeframe

    @classmethod
    def from_settings(cls, alert_repo: AlertRepository, settings: Settings) -> 'Matcher':
        return cls(alert_repo, timedelta(hours=settings.event_timeframe_hours))

    def window(self, alert: Alert) -> Tuple[datetime, datetime]:
        """
        Symmetric time window around the alert's timestamp.

        Raises:
            ValueError: If the alert has no timestamp
        """
        if alert.timestamp is None:
            raise ValueError("Cannot match an alert without a timestamp")
        return (
            alert.timestamp - self.event_timeframe,
            alert.timestamp + self.event_timeframe,
        )

    async def find_candidates(self, alert: Alert, timeout: Optional[float] = None) -> List[Alert]:
        """
        Stored alerts that plausibly duplicate `alert`.

        Args:
            alert: Alert to match (normally just stored, so it has an id)
            timeout: Per-statement timeout in seconds

        Returns:
            Candidates ordered by (timestamp, id); never includes the alert
            itself. Empty when the alert has no tags to match on.
        """
        tags = alert.match_tags
        if not tags:
            logger.debug(f"Alert {alert.id} has no tags, skipping candidate lookup")
            return []

        start, end = self.window(alert)
        candidates = await self.alert_repo.find_containing(
            tags, start, end, exclude_id=alert.id, timeout=timeout
        )

        logger.info(
            f"🔍 Alert {alert.id}: {len(candidates)} candidates "
            f"within ±{self.event_timeframe} for {len(tags)} tags"
        )
        return candidates
