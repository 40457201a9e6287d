"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the ribbon application,
including in-memory databases, the core managers, and sample books.
"""

from datetime import date
from pathlib import Path
from typing import Generator

import pytest

from ribbon.db.schemas import BookCreate, BookWithTags
from ribbon.db.sqlite import Database
from ribbon.library.catalog import Catalog
from ribbon.reading.progress import ProgressTracker
from ribbon.tags.manager import TagManager


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def file_db(tmp_path: Path) -> Generator[Database, None, None]:
    """Create a database backed by a temporary file."""
    database = Database(tmp_path / "ribbon.db")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def today() -> date:
    """Fixed current date used by date-dependent managers."""
    return date(2025, 6, 18)


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def tags(db: Database) -> TagManager:
    """Create a TagManager with test database."""
    return TagManager(db)


@pytest.fixture
def catalog(db: Database, tags: TagManager) -> Catalog:
    """Create a Catalog with test database."""
    return Catalog(db, tags)


@pytest.fixture
def tracker(db: Database, today: date) -> ProgressTracker:
    """Create a ProgressTracker whose today is fixed."""
    return ProgressTracker(db, today=lambda: today)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="The Left Hand of Darkness",
        book_type="paperback",
        number_of_pages=300,
        isbn="978-0-441-47812-5",
        year_published=1969,
        authors=["Ursula K. Le Guin"],
        categories=["Fiction", "Science Fiction"],
        publishers=["Ace"],
        stars=5,
        price=9.99,
    )


@pytest.fixture
def sample_book(catalog: Catalog, sample_book_data: BookCreate) -> BookWithTags:
    """Create and return a 300-page book in the database."""
    return catalog.add_book(sample_book_data)


@pytest.fixture
def library(catalog: Catalog) -> list[BookWithTags]:
    """Create a small library of books with varied tags and fields."""
    books_data = [
        BookCreate(
            title="Dune",
            book_type="hardcover",
            number_of_pages=600,
            year_published=1965,
            authors=["Frank Herbert"],
            categories=["Fiction", "Science Fiction"],
            publishers=["Chilton"],
            stars=5,
            price=20.0,
        ),
        BookCreate(
            title="Émile",
            book_type="paperback",
            number_of_pages=400,
            year_published=1762,
            authors=["Jean-Jacques Rousseau"],
            categories=["Philosophy"],
            publishers=["Penguin"],
            stars=3,
        ),
        BookCreate(
            title="The Dispossessed",
            book_type="ebook",
            number_of_pages=350,
            year_published=1974,
            authors=["Ursula K. Le Guin"],
            categories=["Fiction", "Science Fiction"],
            publishers=["Harper"],
            price=7.5,
        ),
        BookCreate(
            title="A Wizard of Earthsea",
            book_type="paperback",
            number_of_pages=200,
            year_published=1968,
            authors=["Ursula K. Le Guin"],
            categories=["Fantasy"],
            publishers=["Penguin"],
            stars=4,
            price=7.5,
        ),
    ]
    return [catalog.add_book(data) for data in books_data]
