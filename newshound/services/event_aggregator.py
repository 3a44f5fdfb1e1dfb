"""
Event Aggregator - folds matched alerts into event clusters

Decision table (per alert, after the Matcher ran):

    events found for alert + candidates | action
    ------------------------------------+-----------------------------------
    none                                | CREATED: new event = alert + candidates
    exactly one                         | JOINED: add alert + candidates to it
    several                             | MERGED: union into lowest-id event,
                                        |         delete the others

The lookup includes the alert's own id, so running an already clustered
alert through again (reconciliation) never creates a second event for it.
"""
import logging
from typing import List, Optional

from newshound.models.domain.alert import Alert
from newshound.models.domain.event import ClusterDecision, ClusterResult, Event
from newshound.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)


class EventAggregator:
    """Maps matched alert clusters to event records"""

    def __init__(self, event_repo: EventRepository):
        self.event_repo = event_repo

    async def resolve(
        self,
        alert: Alert,
        candidates: List[Alert],
        timeout: Optional[float] = None
    ) -> ClusterResult:
        """
        Bind a stored alert and its candidates to exactly one live event.

        Args:
            alert: Stored alert (must have an id)
            candidates: Output of Matcher.find_candidates for this alert
            timeout: Per-statement timeout in seconds

        Returns:
            ClusterResult with the decision, the surviving event and the ids
            of any events retired by a merge

        Raises:
            ValueError: If the alert has not been stored
        """
        if alert.id is None:
            raise ValueError("Alert must be stored before it can be clustered")

        member_ids = [alert.id] + [c.id for c in candidates if c.id is not None]
        events = await self.event_repo.find_by_alert_ids(member_ids, timeout=timeout)

        if not events:
            event = Event(alert_ids=member_ids)
            await self.event_repo.upsert(event, timeout=timeout)
            logger.info(f"📰 Alert {alert.id}: new event {event.id} with {len(event.alert_ids)} alerts")
            return ClusterResult(ClusterDecision.CREATED, event)

        if len(events) == 1:
            event = events[0]
            if event.add_alerts(member_ids):
                await self.event_repo.upsert(event, timeout=timeout)
            logger.info(f"📊 Alert {alert.id}: joined event {event.id} ({len(event.alert_ids)} alerts)")
            return ClusterResult(ClusterDecision.JOINED, event)

        # Several events share members with this cluster - collapse them
        survivor = min(events, key=lambda e: e.id)
        retired = [e for e in events if e.id != survivor.id]
        survivor.absorb(retired)
        survivor.add_alerts(member_ids)
        retired_ids = [e.id for e in retired]

        await self.event_repo.merge(survivor, retired_ids, timeout=timeout)
        logger.info(
            f"🔀 Alert {alert.id}: merged events {retired_ids} into {survivor.id} "
            f"({len(survivor.alert_ids)} alerts)"
        )
        return ClusterResult(ClusterDecision.MERGED, survivor, retired_ids)
