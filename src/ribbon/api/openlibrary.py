"""Open Library API client for book metadata lookup.

Open Library (openlibrary.org) provides free book metadata including:
- Search by title/author
- ISBN lookup
- Cover images

No API key required. Results are normalized to ``BookMetadata``, which can
be turned into a ``BookCreate`` for the catalog.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Optional

import requests

from ..db.schemas import BookCreate

logger = logging.getLogger(__name__)

SEARCH_FIELDS = (
    "key,title,author_name,first_publish_year,isbn,cover_i,"
    "publisher,subject,number_of_pages_median"
)
MAX_SUBJECTS = 5
UNKNOWN_AUTHOR = "Unknown Author"


class OpenLibraryError(Exception):
    """Base exception for Open Library API errors."""

    pass


class OpenLibraryRateLimitError(OpenLibraryError):
    """Raised when rate limited by Open Library."""

    pass


@dataclass
class BookMetadata:
    """Normalized book metadata from Open Library."""

    title: str
    openlibrary_key: str
    authors: list[str] = field(default_factory=list)
    isbn: Optional[str] = None
    publish_year: Optional[int] = None
    publishers: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    number_of_pages: Optional[int] = None
    cover_url: Optional[str] = None
    description: Optional[str] = None

    def to_book_create(self, number_of_pages: Optional[int] = None, **overrides) -> BookCreate:
        """Convert to a BookCreate, with subjects as categories.

        Args:
            number_of_pages: Page count to use when Open Library has none
            **overrides: Any other BookCreate fields to set

        Raises:
            pydantic.ValidationError: If no positive page count is known
        """
        data = {
            "title": self.title,
            "number_of_pages": self.number_of_pages or number_of_pages,
            "isbn": self.isbn,
            "openlibrary_code": self.openlibrary_key,
            "year_published": self.publish_year,
            "cover_url": self.cover_url,
            "authors": self.authors,
            "categories": self.subjects,
            "publishers": self.publishers,
        }
        data.update(overrides)
        return BookCreate(**data)


def cover_url_for_id(cover_id: int, size: str = "L") -> str:
    return f"{OpenLibraryClient.COVERS_URL}/b/id/{cover_id}-{size}.jpg"


def cover_url_for_isbn(isbn: str, size: str = "L") -> str:
    isbn = isbn.replace("-", "").replace(" ", "")
    return f"{OpenLibraryClient.COVERS_URL}/b/isbn/{isbn}-{size}.jpg"


def process_book_data(doc: dict, details: Optional[dict] = None) -> BookMetadata:
    """Merge a search document with optional work/edition details.

    Details win over the search document wherever they carry a value.
    """
    details = details or {}

    if details.get("authors"):
        authors = [a.get("name") or UNKNOWN_AUTHOR for a in details["authors"]]
    else:
        authors = list(doc.get("author_name") or [])

    isbn = None
    if details.get("isbn_13"):
        isbn = details["isbn_13"][0]
    elif details.get("isbn_10"):
        isbn = details["isbn_10"][0]
    elif doc.get("isbn"):
        isbn = doc["isbn"][0]

    publish_year = None
    match = re.search(r"\d{4}", details.get("publish_date") or "")
    if match and int(match.group()) > 0:
        publish_year = int(match.group())
    elif doc.get("first_publish_year"):
        publish_year = doc["first_publish_year"]

    publishers = list(details.get("publishers") or doc.get("publisher") or [])
    subjects = list(details.get("subjects") or doc.get("subject") or [])[:MAX_SUBJECTS]
    pages = details.get("number_of_pages") or doc.get("number_of_pages_median")

    cover_url = None
    if details.get("covers"):
        cover_url = cover_url_for_id(details["covers"][0])
    elif doc.get("cover_i"):
        cover_url = cover_url_for_id(doc["cover_i"])
    elif isbn:
        cover_url = cover_url_for_isbn(isbn)

    description = details.get("description")
    if isinstance(description, dict):
        description = description.get("value")

    return BookMetadata(
        title=details.get("title") or doc.get("title") or "Unknown Title",
        openlibrary_key=details.get("key") or doc.get("key", ""),
        authors=authors,
        isbn=isbn,
        publish_year=publish_year,
        publishers=publishers,
        subjects=subjects,
        number_of_pages=pages,
        cover_url=cover_url,
        description=description,
    )


class OpenLibraryClient:
    """Client for Open Library API."""

    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org"

    def __init__(self, timeout: int = 10):
        """Initialize client.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": "Ribbon/0.1 (personal reading tracker)"
        })
        self._last_request_time = 0.0
        self._min_request_interval = 0.5  # Be nice to free API

    def _rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < self._min_request_interval:
            time.sleep(self._min_request_interval - elapsed)
        self._last_request_time = time.time()

    def _get(self, url: str, params: Optional[dict] = None) -> dict:
        """Make GET request with error handling."""
        self._rate_limit()
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            raise OpenLibraryError("Request timed out")
        except requests.exceptions.HTTPError as e:
            if e.response.status_code == 429:
                raise OpenLibraryRateLimitError("Rate limited by Open Library")
            raise OpenLibraryError(f"HTTP error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            raise OpenLibraryError(f"Request failed: {e}")

    # ========================================================================
    # Search Operations
    # ========================================================================

    def search(self, query: str, limit: int = 10) -> list[BookMetadata]:
        """Search for books by title, author or any text.

        Args:
            query: Search query
            limit: Maximum results to return

        Returns:
            List of BookMetadata built from the search documents
        """
        data = self._get(
            f"{self.BASE_URL}/search.json",
            {"q": query, "limit": limit, "fields": SEARCH_FIELDS},
        )
        return [process_book_data(doc) for doc in data.get("docs", []) if doc.get("title")]

    def lookup_by_isbn(self, isbn: str) -> Optional[BookMetadata]:
        """Look up a book by ISBN, enriched with its detail record.

        Args:
            isbn: ISBN-10 or ISBN-13, hyphens allowed

        Returns:
            BookMetadata if found, None otherwise
        """
        isbn = isbn.replace("-", "").replace(" ", "")
        data = self._get(
            f"{self.BASE_URL}/search.json",
            {"isbn": isbn, "fields": SEARCH_FIELDS},
        )
        docs = data.get("docs", [])
        if not docs:
            return None

        doc = docs[0]
        try:
            details = self.get_details(doc.get("key", ""))
        except OpenLibraryError as e:
            logger.warning("Could not fetch details for %s: %s", doc.get("key"), e)
            details = None
        return process_book_data(doc, details)

    # ========================================================================
    # Work/Edition Details
    # ========================================================================

    def get_details(self, key: str) -> Optional[dict]:
        """Get a work or edition record with author names resolved.

        Args:
            key: Open Library key (e.g., "/works/OL123456W")

        Returns:
            Raw record with ``authors`` as ``{"name", "key"}`` dicts
        """
        if not key:
            return None
        key = key if key.startswith("/") else f"/{key}"
        data = self._get(f"{self.BASE_URL}{key}.json")

        authors = []
        for entry in data.get("authors") or []:
            if isinstance(entry, str):
                author_key = entry
            else:
                author_key = (entry.get("author") or {}).get("key") or entry.get("key", "")
            authors.append({"name": self._get_author_name(author_key), "key": author_key})
        if authors:
            data["authors"] = authors
        return data

    def _get_author_name(self, author_key: str) -> str:
        """Fetch author name from Open Library.

        Args:
            author_key: Author key (e.g., "/authors/OL123456A")

        Returns:
            Author name, or a placeholder when it cannot be fetched
        """
        if not author_key:
            return UNKNOWN_AUTHOR
        try:
            data = self._get(f"{self.BASE_URL}{author_key}.json")
        except OpenLibraryError as e:
            logger.warning("Could not fetch author %s: %s", author_key, e)
            return UNKNOWN_AUTHOR
        return data.get("name") or UNKNOWN_AUTHOR

    # ========================================================================
    # Cover Images
    # ========================================================================

    def download_cover(self, url: str) -> Optional[bytes]:
        """Download cover image.

        Args:
            url: Cover image URL

        Returns:
            Image bytes or None
        """
        self._rate_limit()
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.content
        except requests.exceptions.RequestException as e:
            logger.warning("Cover download failed for %s: %s", url, e)
            return None
