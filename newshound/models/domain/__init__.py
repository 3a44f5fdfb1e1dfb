"""
Domain Models - Storage-agnostic data structures

These models represent the core domain entities independent of storage layer.
Services operate on these models, not raw database rows.

- Alert: an ingested news item with keyphrases and sentences
- Sentence: a sub-unit of an alert body (owned by its alert)
- Event: a cluster of alerts believed to report the same happening
"""

from .alert import Alert, Sentence
from .event import Event, ClusterDecision, ClusterResult, normalize_alert_ids

__all__ = [
    'Alert',
    'Sentence',
    'Event',
    'ClusterDecision',
    'ClusterResult',
    'normalize_alert_ids',
]
