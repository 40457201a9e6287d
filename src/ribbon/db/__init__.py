"""Database module for local SQLite storage."""

from .models import (
    Author,
    Base,
    Book,
    BookAuthor,
    BookCategory,
    BookPublisher,
    Category,
    PageLog,
    Publisher,
)
from .schemas import (
    BookCreate,
    BookType,
    BookUpdate,
    BookWithTags,
    DimensionTotal,
    PageLogDetails,
    PageLogResponse,
    ReadingStatus,
    ReadingSummary,
    TagResponse,
)
from .sqlite import Database

__all__ = [
    # Models
    "Base",
    "Book",
    "Author",
    "Category",
    "Publisher",
    "BookAuthor",
    "BookCategory",
    "BookPublisher",
    "PageLog",
    # Schemas
    "BookType",
    "ReadingStatus",
    "BookCreate",
    "BookUpdate",
    "BookWithTags",
    "PageLogResponse",
    "PageLogDetails",
    "TagResponse",
    "DimensionTotal",
    "ReadingSummary",
    # Connection
    "Database",
]
