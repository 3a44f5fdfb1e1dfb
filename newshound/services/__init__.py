"""
Services - matching, clustering and ingestion on top of the repositories
"""
from .matcher import Matcher, DEFAULT_EVENT_TIMEFRAME
from .event_aggregator import EventAggregator
from .alert_ingestion import AlertIngestionService
from .reconciliation import Reconciler, ReconciliationStats
from .job_queue import JobQueue

__all__ = [
    'Matcher',
    'DEFAULT_EVENT_TIMEFRAME',
    'EventAggregator',
    'AlertIngestionService',
    'Reconciler',
    'ReconciliationStats',
    'JobQueue',
]
