"""
Utility functions
"""
from .datetime_utils import to_utc, utc_now
from .phrases import normalize_phrases, contains_all

__all__ = ['to_utc', 'utc_now', 'normalize_phrases', 'contains_all']
