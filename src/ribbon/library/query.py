"""Library search, filtering and sorting.

Books are loaded once with their tag names and then narrowed in memory:
search first, then filters, then a stable sort. Filters are plain predicate
functions over ``BookWithTags`` values.
"""

import unicodedata
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from ..db.models import Author, Book, Category, PageLog, Publisher
from ..db.schemas import BookWithTags, ReadingStatus
from ..db.sqlite import Database
from ..errors import InvalidInputError

BookPredicate = Callable[[BookWithTags], bool]


class SortKey(str, Enum):
    """Fields the library list can be ordered by."""

    TITLE = "title"
    COMPLETION = "completion"
    YEAR_PUBLISHED = "yearPublished"
    DATE_ADDED = "dateAdded"
    STARS = "stars"
    PRICE = "price"


def title_key(title: str) -> str:
    """Collation key for titles: accents dropped, case folded."""
    decomposed = unicodedata.normalize("NFKD", title or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


SORT_KEYS: dict[SortKey, Callable[[BookWithTags], object]] = {
    SortKey.TITLE: lambda b: title_key(b.title),
    SortKey.COMPLETION: lambda b: b.completion,
    SortKey.YEAR_PUBLISHED: lambda b: b.year_published or 0,
    SortKey.DATE_ADDED: lambda b: b.date_added or date.min,
    SortKey.STARS: lambda b: b.stars or 0,
    SortKey.PRICE: lambda b: b.price or 0.0,
}


@dataclass
class SortOptions:
    """Sort key and direction for the library list."""

    key: SortKey = SortKey.TITLE
    descending: bool = False

    def __post_init__(self):
        try:
            self.key = SortKey(self.key)
        except ValueError:
            raise InvalidInputError(
                f"Unknown sort key {self.key!r}; expected one of "
                + ", ".join(k.value for k in SortKey)
            ) from None


def _any_of(wanted: Iterable[str], have: Iterable[str]) -> bool:
    return not set(wanted).isdisjoint(have)


@dataclass
class LibraryFilter:
    """Filter selections. Values in one group are OR'd, groups are AND'd.

    An empty group does not filter.
    """

    status: list[Union[ReadingStatus, str]] = field(default_factory=list)
    book_types: list[str] = field(default_factory=list)
    authors: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)

    def __post_init__(self):
        try:
            self.status = [ReadingStatus(s) for s in self.status]
        except ValueError as exc:
            raise InvalidInputError(
                f"{exc}; expected one of " + ", ".join(s.value for s in ReadingStatus)
            ) from None
        self.book_types = [t.strip().lower() for t in self.book_types if t.strip()]

    @property
    def is_empty(self) -> bool:
        return not (
            self.status or self.book_types or self.authors or self.categories or self.publishers
        )

    def predicates(self) -> list[BookPredicate]:
        """One predicate per non-empty group."""
        preds: list[BookPredicate] = []
        if self.status:
            statuses = set(self.status)
            preds.append(lambda b: b.status in statuses)
        if self.book_types:
            types = set(self.book_types)
            preds.append(lambda b: (b.book_type or "").lower() in types)
        if self.authors:
            preds.append(lambda b: _any_of(self.authors, b.authors))
        if self.categories:
            preds.append(lambda b: _any_of(self.categories, b.categories))
        if self.publishers:
            preds.append(lambda b: _any_of(self.publishers, b.publishers))
        return preds

    def matches(self, book: BookWithTags) -> bool:
        return all(pred(book) for pred in self.predicates())


def matches_search(book: BookWithTags, query: Optional[str]) -> bool:
    """Case-insensitive substring match on the title or any author."""
    if not query or not query.strip():
        return True
    needle = query.strip().casefold()
    if needle in book.title.casefold():
        return True
    return any(needle in author.casefold() for author in book.authors)


def search_books(books: Iterable[BookWithTags], query: Optional[str]) -> list[BookWithTags]:
    return [b for b in books if matches_search(b, query)]


def filter_books(
    books: Iterable[BookWithTags], filters: Optional[LibraryFilter]
) -> list[BookWithTags]:
    if filters is None or filters.is_empty:
        return list(books)
    preds = filters.predicates()
    return [b for b in books if all(pred(b) for pred in preds)]


def sort_books(
    books: Iterable[BookWithTags], options: Optional[SortOptions] = None
) -> list[BookWithTags]:
    """Stable sort; books with equal keys keep their incoming order."""
    options = options or SortOptions()
    return sorted(books, key=SORT_KEYS[options.key], reverse=options.descending)


@dataclass
class FilterOptions:
    """Values available to each filter group."""

    authors: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)
    book_types: list[str] = field(default_factory=list)


class LibraryQuery:
    """Read-only access to the library list."""

    def __init__(self, db: Database):
        """Initialize the library query.

        Args:
            db: Database instance
        """
        self.db = db

    def all_books(self) -> list[BookWithTags]:
        """Load every book with its tag names."""
        with self.db.get_session() as s:
            return [BookWithTags.from_model(b) for b in self.db.get_all_books(session=s)]

    def list_books(
        self,
        search: Optional[str] = None,
        filters: Optional[LibraryFilter] = None,
        sort: Optional[SortOptions] = None,
    ) -> list[BookWithTags]:
        """Search, filter and sort the library.

        Args:
            search: Text to look for in titles and author names
            filters: Filter selections
            sort: Sort key and direction (default: title ascending)

        Returns:
            Matching books in display order
        """
        books = search_books(self.all_books(), search)
        books = filter_books(books, filters)
        return sort_books(books, sort)

    def get_book(self, book_id: int) -> Optional[BookWithTags]:
        """Get one book with its tag names."""
        with self.db.get_session() as s:
            stmt = (
                select(Book)
                .where(Book.book_id == book_id)
                .options(
                    selectinload(Book.authors),
                    selectinload(Book.categories),
                    selectinload(Book.publishers),
                )
            )
            book = s.execute(stmt).scalar_one_or_none()
            return BookWithTags.from_model(book) if book else None

    def filter_options(self) -> FilterOptions:
        """Distinct names for each filter group, name ordered."""
        with self.db.get_session() as s:
            def names(model) -> list[str]:
                return list(s.execute(select(model.name).order_by(model.name)).scalars())

            book_types = s.execute(
                select(Book.book_type).distinct().order_by(Book.book_type)
            ).scalars()
            return FilterOptions(
                authors=names(Author),
                categories=names(Category),
                publishers=names(Publisher),
                book_types=list(book_types),
            )

    def books_in_progress(self, limit: int = 3) -> list[BookWithTags]:
        """Books currently being read, most recently read first."""
        latest_log = (
            select(PageLog.book_id, func.max(PageLog.page_log_id).label("latest_log_id"))
            .group_by(PageLog.book_id)
            .subquery()
        )
        stmt = (
            select(Book)
            .outerjoin(latest_log, latest_log.c.book_id == Book.book_id)
            .where(Book.current_page > 0, Book.current_page < Book.number_of_pages)
            .order_by(
                Book.last_read.is_(None),
                Book.last_read.desc(),
                latest_log.c.latest_log_id.desc(),
                Book.date_added.desc(),
            )
            .limit(limit)
            .options(
                selectinload(Book.authors),
                selectinload(Book.categories),
                selectinload(Book.publishers),
            )
        )
        with self.db.get_session() as s:
            return [BookWithTags.from_model(b) for b in s.execute(stmt).scalars()]
