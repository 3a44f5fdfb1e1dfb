from .domain import Alert, Sentence, Event, ClusterDecision, ClusterResult

__all__ = ['Alert', 'Sentence', 'Event', 'ClusterDecision', 'ClusterResult']
