"""
newshound - news alert storage and event clustering

Stores alerts with their sentences, finds earlier alerts about the same
happening, and keeps them grouped into events.
"""

__version__ = "0.1.0"
