"""API module for external book metadata services."""

from .openlibrary import (
    BookMetadata,
    OpenLibraryClient,
    OpenLibraryError,
    OpenLibraryRateLimitError,
    process_book_data,
)

__all__ = [
    "OpenLibraryClient",
    "OpenLibraryError",
    "OpenLibraryRateLimitError",
    "BookMetadata",
    "process_book_data",
]
