"""
Event domain model
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional


def normalize_alert_ids(alert_ids: Optional[Iterable[int]]) -> List[int]:
    """Sorted, de-duplicated alert ids"""
    if not alert_ids:
        return []
    return sorted({int(a) for a in alert_ids})


class ClusterDecision(Enum):
    """How a new alert was folded into the event set"""
    CREATED = "created"  # No existing event - new one created
    JOINED = "joined"    # Added to the single matching event
    MERGED = "merged"    # Several events collapsed into one


@dataclass
class Event:
    """
    Event domain model - a cluster of alerts about the same happening

    Storage: PostgreSQL (newshound.event)

    Membership is held as a sorted list of unique alert ids so that two
    events with the same members compare equal and upserts are idempotent.
    """
    alert_ids: List[int] = field(default_factory=list)
    id: Optional[int] = None

    # Timestamps (store-maintained)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.alert_ids = normalize_alert_ids(self.alert_ids)

    def __contains__(self, alert_id: int) -> bool:
        return alert_id in self.alert_ids

    @property
    def is_new(self) -> bool:
        return self.id is None

    def add_alerts(self, alert_ids: Iterable[int]) -> bool:
        """
        Add alerts to the membership.

        Returns:
            True if membership changed
        """
        merged = normalize_alert_ids(list(self.alert_ids) + list(alert_ids))
        changed = merged != self.alert_ids
        self.alert_ids = merged
        return changed

    def absorb(self, others: Iterable['Event']) -> None:
        """Take over the membership of other events"""
        for other in others:
            self.add_alerts(other.alert_ids)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "alert_ids": list(self.alert_ids),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ClusterResult:
    """Outcome of resolving one alert against existing events"""
    decision: ClusterDecision
    event: Event
    retired_event_ids: List[int] = field(default_factory=list)
