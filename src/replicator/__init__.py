"""
Change-data-capture replicator.

Keeps a search index eventually consistent with a keyed source table by
applying batches of change-log records as bulk write operations.
"""

__version__ = "0.1.0"
