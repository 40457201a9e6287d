"""Ribbon: a local reading tracker.

Catalog books, log reading sessions, and view reading statistics.
"""

__version__ = "0.1.0"
