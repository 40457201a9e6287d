"""Tests for library search, filtering and sorting."""

from datetime import date, timedelta

import pytest

from ribbon.db.schemas import BookWithTags, ReadingStatus
from ribbon.errors import InvalidInputError
from ribbon.library.query import (
    LibraryFilter,
    LibraryQuery,
    SortKey,
    SortOptions,
    matches_search,
    sort_books,
    title_key,
)


@pytest.fixture
def query(db):
    """Create a LibraryQuery with test database."""
    return LibraryQuery(db)


def _titles(books):
    return [b.title for b in books]


def _book(book_id, title, **kwargs):
    return BookWithTags(
        book_id=book_id, title=title, number_of_pages=100, date_added=date(2025, 1, 1), **kwargs
    )


class TestSearch:
    """Tests for the search box."""

    def test_title_match(self, query, library):
        """Test case-insensitive title substrings match."""
        assert _titles(query.list_books(search="dUNe")) == ["Dune"]

    def test_author_match(self, query, library):
        """Test author names are searched too."""
        assert _titles(query.list_books(search="le guin")) == [
            "A Wizard of Earthsea",
            "The Dispossessed",
        ]

    def test_blank_search(self, query, library):
        """Test a blank search returns everything."""
        assert len(query.list_books(search="   ")) == 4

    def test_matches_search(self):
        """Test the search predicate on a single book."""
        book = _book(1, "Dune", authors=["Frank Herbert"])
        assert matches_search(book, "herb")
        assert matches_search(book, None)
        assert not matches_search(book, "tolkien")


class TestFilters:
    """Tests for filter groups."""

    def test_or_within_group(self, query, library):
        """Test values inside one group are alternatives."""
        books = query.list_books(filters=LibraryFilter(categories=["Philosophy", "Fantasy"]))
        assert _titles(books) == ["A Wizard of Earthsea", "Émile"]

    def test_and_across_groups(self, query, library):
        """Test separate groups must all match."""
        books = query.list_books(
            filters=LibraryFilter(categories=["Fiction", "Fantasy"], publishers=["Penguin"])
        )
        assert _titles(books) == ["A Wizard of Earthsea"]

    def test_book_type_filter(self, query, library):
        """Test book types match case-insensitively."""
        books = query.list_books(filters=LibraryFilter(book_types=["PAPERBACK"]))
        assert _titles(books) == ["A Wizard of Earthsea", "Émile"]

    def test_status_filter(self, query, library, tracker):
        """Test filtering by derived reading status."""
        dune, emile, dispossessed, _ = library
        tracker.create_log(dune.book_id, 1, 100)
        tracker.create_log(emile.book_id, 1, 400)

        reading = query.list_books(filters=LibraryFilter(status=["reading"]))
        finished = query.list_books(filters=LibraryFilter(status=[ReadingStatus.FINISHED]))
        not_started = query.list_books(filters=LibraryFilter(status=["notStarted"]))

        assert _titles(reading) == ["Dune"]
        assert _titles(finished) == ["Émile"]
        assert _titles(not_started) == ["A Wizard of Earthsea", "The Dispossessed"]

    def test_unknown_status(self):
        """Test an unknown status is rejected."""
        with pytest.raises(InvalidInputError):
            LibraryFilter(status=["abandoned"])

    def test_search_and_filter_combine(self, query, library):
        """Test search narrows before filters apply."""
        books = query.list_books(search="le guin", filters=LibraryFilter(book_types=["ebook"]))
        assert _titles(books) == ["The Dispossessed"]

    def test_empty_filter(self):
        """Test an empty filter matches everything."""
        flt = LibraryFilter()
        assert flt.is_empty
        assert flt.matches(_book(1, "Anything"))


class TestSorting:
    """Tests for sort keys and direction."""

    def test_title_default_ignores_accents(self, query, library):
        """Test titles sort with accents and case ignored."""
        assert _titles(query.list_books()) == [
            "A Wizard of Earthsea",
            "Dune",
            "Émile",
            "The Dispossessed",
        ]

    def test_title_key(self):
        """Test the title collation key."""
        assert title_key("Émile") == title_key("emile")

    def test_stars_descending(self, query, library):
        """Test sorting by stars with unrated books last."""
        books = query.list_books(sort=SortOptions(SortKey.STARS, descending=True))
        assert _titles(books) == ["Dune", "A Wizard of Earthsea", "Émile", "The Dispossessed"]

    def test_year_published(self, query, library):
        """Test sorting by publication year."""
        books = query.list_books(sort=SortOptions("yearPublished"))
        assert _titles(books) == ["Émile", "Dune", "A Wizard of Earthsea", "The Dispossessed"]

    def test_completion(self, query, library, tracker):
        """Test sorting by fraction read."""
        dune, _, _, wizard = library
        tracker.create_log(dune.book_id, 1, 60)
        tracker.create_log(wizard.book_id, 1, 100)

        books = query.list_books(sort=SortOptions(SortKey.COMPLETION, descending=True))

        assert _titles(books)[:2] == ["A Wizard of Earthsea", "Dune"]

    def test_stable_both_directions(self):
        """Test equal keys keep their incoming order ascending and descending."""
        books = [
            _book(1, "First", price=7.5),
            _book(2, "Second", price=7.5),
            _book(3, "Cheap", price=1.0),
        ]

        ascending = sort_books(books, SortOptions(SortKey.PRICE))
        descending = sort_books(books, SortOptions(SortKey.PRICE, descending=True))

        assert _titles(ascending) == ["Cheap", "First", "Second"]
        assert _titles(descending) == ["First", "Second", "Cheap"]

    def test_unknown_sort_key(self):
        """Test an unknown sort key is rejected."""
        with pytest.raises(InvalidInputError):
            SortOptions("popularity")


class TestLibraryViews:
    """Tests for filter options, lookups and the in-progress shelf."""

    def test_filter_options(self, query, library):
        """Test each group lists distinct names in order."""
        options = query.filter_options()

        assert options.authors == ["Frank Herbert", "Jean-Jacques Rousseau", "Ursula K. Le Guin"]
        assert options.categories == ["Fantasy", "Fiction", "Philosophy", "Science Fiction"]
        assert options.publishers == ["Chilton", "Harper", "Penguin"]
        assert options.book_types == ["ebook", "hardcover", "paperback"]

    def test_get_book(self, query, library):
        """Test one book is returned with tag names."""
        book = query.get_book(library[0].book_id)
        assert book.authors == ["Frank Herbert"]
        assert query.get_book(999) is None

    def test_books_in_progress(self, query, library, tracker, today):
        """Test only started, unfinished books are listed, latest read first."""
        dune, emile, dispossessed, wizard = library
        tracker.create_log(dune.book_id, 1, 50, read_date=today - timedelta(days=3))
        tracker.create_log(dispossessed.book_id, 1, 50, read_date=today)
        tracker.create_log(wizard.book_id, 1, 200, read_date=today)

        books = query.books_in_progress()

        assert _titles(books) == ["The Dispossessed", "Dune"]

    def test_books_in_progress_limit(self, query, library, tracker):
        """Test the in-progress list honours its limit."""
        for book in library:
            tracker.create_log(book.book_id, 1, 10)

        assert len(query.books_in_progress(limit=2)) == 2
