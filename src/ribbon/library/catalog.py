"""Adding, editing and removing books.

Each operation writes the book row and its author, category and publisher
links in one transaction.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..db.models import Book
from ..db.schemas import BookCreate, BookUpdate, BookWithTags
from ..db.sqlite import Database
from ..errors import InvalidInputError
from ..tags.manager import TagKind, TagManager

logger = logging.getLogger(__name__)

TAG_LIST_FIELDS = {
    TagKind.AUTHOR: "authors",
    TagKind.CATEGORY: "categories",
    TagKind.PUBLISHER: "publishers",
}


class Catalog:
    """Book catalog operations."""

    def __init__(self, db: Database, tags: Optional[TagManager] = None):
        """Initialize the catalog.

        Args:
            db: Database instance
            tags: Tag manager sharing the same database
        """
        self.db = db
        self.tags = tags or TagManager(db)

    def add_book(self, book: BookCreate) -> BookWithTags:
        """Add a book with its authors, categories and publishers.

        Args:
            book: Validated book data

        Returns:
            The stored book

        Raises:
            InvalidInputError: If the ISBN or Open Library key is already used
        """
        with self.db.get_session() as s:
            self._check_identifiers(s, book.isbn, book.openlibrary_code)
            db_book = self.db.create_book(book, session=s)
            for kind, field_name in TAG_LIST_FIELDS.items():
                self.tags.replace_book_tags(
                    kind, db_book.book_id, getattr(book, field_name), session=s
                )
            logger.info("Added book %d %r", db_book.book_id, db_book.title)
            return self._load(s, db_book.book_id)

    def update_book(self, book_id: int, update: BookUpdate) -> Optional[BookWithTags]:
        """Edit a book. Tag lists that are given replace the book's current set.

        Returns:
            The updated book, or None if it does not exist

        Raises:
            InvalidInputError: If the page count drops below the current page or an identifier is taken
        """
        with self.db.get_session() as s:
            if s.get(Book, book_id) is None:
                return None
            fields = update.model_fields_set
            self._check_identifiers(
                s,
                update.isbn if "isbn" in fields else None,
                update.openlibrary_code if "openlibrary_code" in fields else None,
                exclude_book_id=book_id,
            )
            self.db.update_book(book_id, update, session=s)
            for kind, field_name in TAG_LIST_FIELDS.items():
                names = getattr(update, field_name)
                if names is not None:
                    self.tags.replace_book_tags(kind, book_id, names, session=s)
            logger.info("Updated book %d", book_id)
            return self._load(s, book_id)

    def delete_book(self, book_id: int) -> bool:
        """Delete a book along with its page logs and tag links.

        Returns:
            True if deleted
        """
        deleted = self.db.delete_book(book_id)
        if deleted:
            logger.info("Deleted book %d", book_id)
        return deleted

    def get_book(self, book_id: int) -> Optional[BookWithTags]:
        """Get one book with its tag names."""
        with self.db.get_session() as s:
            if s.get(Book, book_id) is None:
                return None
            return self._load(s, book_id)

    @staticmethod
    def _load(s: Session, book_id: int) -> BookWithTags:
        stmt = (
            select(Book)
            .where(Book.book_id == book_id)
            .options(
                selectinload(Book.authors),
                selectinload(Book.categories),
                selectinload(Book.publishers),
            )
            .execution_options(populate_existing=True)
        )
        return BookWithTags.from_model(s.execute(stmt).scalar_one())

    @staticmethod
    def _check_identifiers(
        s: Session,
        isbn: Optional[str],
        openlibrary_code: Optional[str],
        exclude_book_id: Optional[int] = None,
    ) -> None:
        """Reject identifiers that already belong to another book."""
        for column, value, label in (
            (Book.isbn, isbn, "ISBN"),
            (Book.openlibrary_code, openlibrary_code, "Open Library key"),
        ):
            if not value:
                continue
            stmt = select(Book.book_id).where(column == value)
            if exclude_book_id is not None:
                stmt = stmt.where(Book.book_id != exclude_book_id)
            if s.execute(stmt).first() is not None:
                raise InvalidInputError(f"A book with {label} {value} is already in the library")
