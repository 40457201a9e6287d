"""Pydantic schemas for data validation.

These schemas validate book and reading-log input and shape the values the
query layer hands back (books flattened with their author, category and
publisher name lists).
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookType(str, Enum):
    """Known book formats. The stored column accepts any string."""

    PAPERBACK = "paperback"
    HARDCOVER = "hardcover"
    EBOOK = "ebook"
    PDF = "pdf"
    OTHER = "other"


class ReadingStatus(str, Enum):
    """Reading status derived from a book's current page."""

    NOT_STARTED = "notStarted"
    READING = "reading"
    FINISHED = "finished"


def reading_status(current_page: int, number_of_pages: int) -> ReadingStatus:
    """Classify a book by how far into it the reader is."""
    if current_page <= 0:
        return ReadingStatus.NOT_STARTED
    if current_page >= number_of_pages:
        return ReadingStatus.FINISHED
    return ReadingStatus.READING


def completion_ratio(current_page: int, number_of_pages: int) -> float:
    """Fraction of the book read, 0.0 when the page count is unknown."""
    if not number_of_pages or number_of_pages <= 0:
        return 0.0
    return (current_page or 0) / number_of_pages


def _clean_names(values: Optional[list[str]]) -> Optional[list[str]]:
    """Trim names, drop blanks and collapse exact duplicates, keeping order."""
    if values is None:
        return None
    cleaned: list[str] = []
    for value in values:
        name = str(value).strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(BaseModel):
    """Base book fields common to create/update operations."""

    title: str = Field(..., min_length=1, description="Book title")
    book_type: str = Field(default=BookType.PAPERBACK.value)
    number_of_pages: int = Field(..., gt=0)
    cover_url: Optional[str] = Field(None, description="Remote cover image URL")
    cover_path: Optional[str] = Field(None, description="Locally cached cover image")
    isbn: Optional[str] = None
    openlibrary_code: Optional[str] = None
    year_published: Optional[int] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    stars: Optional[int] = Field(None, ge=0, le=5)
    price: Optional[float] = Field(None, ge=0)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        """Titles are stored without surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("book_type", mode="before")
    @classmethod
    def normalize_book_type(cls, v) -> str:
        """Lower-case the book type; fall back to paperback when blank."""
        if isinstance(v, BookType):
            return v.value
        if v is None or not str(v).strip():
            return BookType.PAPERBACK.value
        return str(v).strip().lower()

    @field_validator("isbn", mode="before")
    @classmethod
    def clean_isbn(cls, v: Optional[str]) -> Optional[str]:
        """Strip hyphens and spaces from ISBN values."""
        if v is None:
            return None
        v = str(v).replace("-", "").replace(" ", "").strip()
        return v if v else None

    @field_validator("openlibrary_code", "cover_url", "cover_path", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings as missing values."""
        if v is None:
            return None
        v = str(v).strip()
        return v if v else None


class BookCreate(BookBase):
    """Schema for creating a new book with its tags."""

    authors: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)

    @field_validator("authors", "categories", "publishers", mode="after")
    @classmethod
    def clean_names(cls, v: list[str]) -> list[str]:
        """Trim and de-duplicate tag names."""
        return _clean_names(v)


class BookUpdate(BaseModel):
    """Schema for updating an existing book. All fields optional.

    Tag lists replace the book's full set when given; ``None`` leaves the
    current associations untouched. Title, book type and page count are
    required columns, so they may be left out but never set to ``None``.
    """

    title: Optional[str] = Field(None, min_length=1)
    book_type: Optional[str] = None
    number_of_pages: Optional[int] = Field(None, gt=0)
    cover_url: Optional[str] = None
    cover_path: Optional[str] = None
    isbn: Optional[str] = None
    openlibrary_code: Optional[str] = None
    year_published: Optional[int] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    stars: Optional[int] = Field(None, ge=0, le=5)
    price: Optional[float] = Field(None, ge=0)
    authors: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    publishers: Optional[list[str]] = None

    @field_validator("title", "number_of_pages", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        """Required columns cannot be cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be cleared")
        return v.strip() if isinstance(v, str) else v

    @field_validator("book_type", mode="before")
    @classmethod
    def normalize_book_type(cls, v) -> str:
        """Lower-case the book type; a blank type is an error."""
        if isinstance(v, BookType):
            return v.value
        if v is None or not str(v).strip():
            raise ValueError("book_type cannot be blank")
        return str(v).strip().lower()

    @field_validator("isbn", mode="before")
    @classmethod
    def clean_isbn(cls, v: Optional[str]) -> Optional[str]:
        """Strip hyphens and spaces from ISBN values; blank clears the ISBN."""
        if v is None:
            return None
        v = str(v).replace("-", "").replace(" ", "").strip()
        return v if v else None

    @field_validator("openlibrary_code", "cover_url", "cover_path", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings as cleared values."""
        if v is None:
            return None
        v = str(v).strip()
        return v if v else None

    @field_validator("authors", "categories", "publishers", mode="after")
    @classmethod
    def clean_names(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        """Trim and de-duplicate tag names."""
        return _clean_names(v)


class BookWithTags(BookBase):
    """A book flattened with the names of its authors, categories and publishers."""

    book_id: int
    date_added: date
    last_read: Optional[date] = None
    current_page: int = 0
    authors: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)

    @classmethod
    def from_model(cls, book) -> "BookWithTags":
        """Build from a ``Book`` ORM instance with its tag collections loaded."""
        return cls(
            book_id=book.book_id,
            book_type=book.book_type,
            title=book.title,
            cover_url=book.cover_url,
            cover_path=book.cover_path,
            number_of_pages=book.number_of_pages,
            isbn=book.isbn,
            openlibrary_code=book.openlibrary_code,
            year_published=book.year_published,
            date_added=book.date_added,
            last_read=book.last_read,
            current_page=book.current_page,
            review=book.review,
            notes=book.notes,
            stars=book.stars,
            price=book.price,
            authors=sorted(a.name for a in book.authors),
            categories=sorted(c.name for c in book.categories),
            publishers=sorted(p.name for p in book.publishers),
        )

    @property
    def completion(self) -> float:
        """Fraction of the book read."""
        return completion_ratio(self.current_page, self.number_of_pages)

    @property
    def status(self) -> ReadingStatus:
        """Reading status derived from the current page."""
        return reading_status(self.current_page, self.number_of_pages)


# ============================================================================
# Page Log Schemas
# ============================================================================


class PageLogResponse(BaseModel):
    """Schema for page log responses."""

    page_log_id: int
    book_id: int
    start_page: int
    end_page: int
    current_page_after_log: int
    total_page_read: int
    read_date: date
    page_notes: Optional[str] = None

    model_config = {"from_attributes": True}


class PageLogDetails(PageLogResponse):
    """A page log together with the state of its book."""

    book_title: str
    number_of_pages: int
    book_current_page: int


# ============================================================================
# Tag Schemas
# ============================================================================


class TagResponse(BaseModel):
    """Schema for author, category and publisher responses."""

    id: int
    name: str
    kind: str
    book_count: int = 0


# ============================================================================
# Statistics Schemas
# ============================================================================


class DimensionTotal(BaseModel):
    """Pages read grouped under one name (an author, category, publisher or book)."""

    id: int
    name: str
    total_pages: int


class ReadingSummary(BaseModel):
    """Numbers shown on the home dashboard."""

    total_books: int = 0
    books_reading: int = 0
    pages_today: int = 0
    pages_this_week: int = 0
    streak: int = 0
