"""Tests for Open Library API client."""

from unittest.mock import MagicMock

import pytest
import requests
from pydantic import ValidationError

from ribbon.api.openlibrary import (
    BookMetadata,
    OpenLibraryClient,
    OpenLibraryError,
    OpenLibraryRateLimitError,
    cover_url_for_id,
    cover_url_for_isbn,
    process_book_data,
)


def _response(payload=None, status_code=None, content=b""):
    response = MagicMock()
    response.json.return_value = payload or {}
    response.content = content
    if status_code:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            response=MagicMock(status_code=status_code)
        )
    else:
        response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def client():
    """Create a client with mocked session and no request spacing."""
    client = OpenLibraryClient()
    client._session = MagicMock()
    client._last_request_time = 0
    client._min_request_interval = 0
    return client


class TestBookMetadata:
    """Tests for BookMetadata conversion."""

    def test_to_book_create(self):
        """Test metadata maps onto catalog fields."""
        meta = BookMetadata(
            title="Dune",
            openlibrary_key="/works/OL893415W",
            authors=["Frank Herbert"],
            isbn="9780441172719",
            publish_year=1965,
            publishers=["Chilton"],
            subjects=["Science Fiction", "Deserts"],
            number_of_pages=604,
        )

        book = meta.to_book_create()

        assert book.title == "Dune"
        assert book.openlibrary_code == "/works/OL893415W"
        assert book.categories == ["Science Fiction", "Deserts"]
        assert book.publishers == ["Chilton"]
        assert book.number_of_pages == 604

    def test_page_count_fallback_and_overrides(self):
        """Test a caller page count fills the gap and overrides apply."""
        meta = BookMetadata(title="Dune", openlibrary_key="/works/OL1W")

        book = meta.to_book_create(number_of_pages=500, book_type="ebook")

        assert book.number_of_pages == 500
        assert book.book_type == "ebook"

    def test_missing_page_count(self):
        """Test conversion fails without any page count."""
        with pytest.raises(ValidationError):
            BookMetadata(title="Dune", openlibrary_key="/works/OL1W").to_book_create()


class TestProcessBookData:
    """Tests for normalizing API records."""

    def test_search_doc_only(self):
        """Test a search document alone."""
        meta = process_book_data({
            "key": "/works/OL1W",
            "title": "Dune",
            "author_name": ["Frank Herbert"],
            "first_publish_year": 1965,
            "isbn": ["0441172717", "9780441172719"],
            "cover_i": 123,
            "publisher": ["Chilton"],
            "subject": ["a", "b", "c", "d", "e", "f", "g"],
            "number_of_pages_median": 604,
        })

        assert meta.authors == ["Frank Herbert"]
        assert meta.isbn == "0441172717"
        assert meta.publish_year == 1965
        assert meta.cover_url == "https://covers.openlibrary.org/b/id/123-L.jpg"
        assert meta.subjects == ["a", "b", "c", "d", "e"]
        assert meta.number_of_pages == 604

    def test_details_win(self):
        """Test detail records override the search document."""
        doc = {"key": "/works/OL1W", "title": "Dune", "author_name": ["F. Herbert"], "isbn": ["111"]}
        details = {
            "key": "/books/OL2M",
            "title": "Dune (Deluxe)",
            "authors": [{"name": "Frank Herbert", "key": "/authors/OL1A"}],
            "isbn_10": ["0441172717"],
            "isbn_13": ["9780441172719"],
            "publish_date": "August 1, 1990",
            "number_of_pages": 535,
            "covers": [456],
            "description": {"type": "/type/text", "value": "Desert planet."},
        }

        meta = process_book_data(doc, details)

        assert meta.title == "Dune (Deluxe)"
        assert meta.openlibrary_key == "/books/OL2M"
        assert meta.authors == ["Frank Herbert"]
        assert meta.isbn == "9780441172719"
        assert meta.publish_year == 1990
        assert meta.number_of_pages == 535
        assert meta.cover_url == cover_url_for_id(456)
        assert meta.description == "Desert planet."

    def test_isbn_cover_fallback(self):
        """Test the cover falls back to the ISBN URL."""
        meta = process_book_data({"key": "/works/OL1W", "title": "X", "isbn": ["978-1"]})
        assert meta.cover_url == cover_url_for_isbn("978-1")
        assert meta.cover_url.endswith("/b/isbn/9781-L.jpg")


class TestClient:
    """Tests for OpenLibraryClient requests."""

    def test_session_created(self):
        """Test the client identifies itself."""
        assert "User-Agent" in OpenLibraryClient()._session.headers

    def test_search(self, client):
        """Test search returns metadata and skips untitled docs."""
        client._session.get.return_value = _response({
            "docs": [
                {"key": "/works/OL1W", "title": "Dune", "author_name": ["Frank Herbert"]},
                {"key": "/works/OL2W"},
            ]
        })

        results = client.search("dune", limit=5)

        assert [r.title for r in results] == ["Dune"]
        params = client._session.get.call_args.kwargs["params"]
        assert params["q"] == "dune"
        assert params["limit"] == 5

    def test_lookup_by_isbn(self, client):
        """Test ISBN lookup enriches the doc with details and author names."""
        client._session.get.side_effect = [
            _response({"docs": [{"key": "/works/OL1W", "title": "Dune"}]}),
            _response({
                "key": "/works/OL1W",
                "title": "Dune",
                "authors": [{"author": {"key": "/authors/OL1A"}}],
                "subjects": ["Science Fiction"],
            }),
            _response({"name": "Frank Herbert"}),
        ]

        meta = client.lookup_by_isbn("978-0-441-17271-9")

        assert meta.authors == ["Frank Herbert"]
        assert meta.subjects == ["Science Fiction"]
        first_call = client._session.get.call_args_list[0]
        assert first_call.kwargs["params"]["isbn"] == "9780441172719"

    def test_lookup_by_isbn_not_found(self, client):
        """Test an ISBN with no docs returns None."""
        client._session.get.return_value = _response({"docs": []})
        assert client.lookup_by_isbn("0000000000") is None

    def test_lookup_details_failure_falls_back(self, client):
        """Test a failed detail fetch still returns the search data."""
        client._session.get.side_effect = [
            _response({"docs": [{"key": "/works/OL1W", "title": "Dune"}]}),
            _response(status_code=500),
        ]

        meta = client.lookup_by_isbn("9780441172719")

        assert meta.title == "Dune"

    def test_author_failure_placeholder(self, client):
        """Test an unresolvable author becomes a placeholder."""
        client._session.get.side_effect = [
            _response({"key": "/works/OL1W", "authors": [{"author": {"key": "/authors/OL1A"}}]}),
            _response(status_code=404),
        ]

        details = client.get_details("works/OL1W")

        assert details["authors"] == [{"name": "Unknown Author", "key": "/authors/OL1A"}]
        assert client._session.get.call_args_list[0].args[0].endswith("/works/OL1W.json")

    def test_rate_limited(self, client):
        """Test HTTP 429 raises the rate limit error."""
        client._session.get.return_value = _response(status_code=429)
        with pytest.raises(OpenLibraryRateLimitError):
            client.search("dune")

    def test_timeout(self, client):
        """Test timeouts raise OpenLibraryError."""
        client._session.get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(OpenLibraryError, match="timed out"):
            client.search("dune")

    def test_download_cover(self, client):
        """Test cover bytes are returned, failures give None."""
        client._session.get.return_value = _response(content=b"\xff\xd8jpeg")
        assert client.download_cover("https://example.com/c.jpg") == b"\xff\xd8jpeg"

        client._session.get.side_effect = requests.exceptions.ConnectionError()
        assert client.download_cover("https://example.com/c.jpg") is None
