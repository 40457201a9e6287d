"""Cover image caching."""

from .cache import CoverCache, RecacheResult

__all__ = [
    "CoverCache",
    "RecacheResult",
]
