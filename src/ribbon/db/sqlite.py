"""SQLite database operations.

Handles database connection, session management, and book CRUD operations.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from sqlalchemy import create_engine, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import InvalidInputError, StoreError
from .models import Base, Book
from .schemas import BookCreate, BookUpdate

logger = logging.getLogger(__name__)

# Tag lists are handled by the tag manager, not as book columns
TAG_FIELDS = ("authors", "categories", "publishers")


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on SQLite foreign key enforcement so ON DELETE CASCADE applies."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        event.listen(self.engine, "connect", _enable_foreign_keys)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @property
    def is_memory(self) -> bool:
        """Whether this database lives only in memory."""
        return self._is_memory

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections (needed before replacing the file)."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        The session is one transaction: it commits when the block succeeds and
        rolls back everything when it raises. Store failures are logged and
        re-raised as ``StoreError``.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Store operation failed, transaction rolled back")
            raise StoreError(f"Store operation failed: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book record (without its tags)."""

        def _create(s: Session) -> Book:
            db_book = Book(
                book_type=book.book_type,
                title=book.title,
                cover_url=book.cover_url,
                cover_path=book.cover_path,
                number_of_pages=book.number_of_pages,
                isbn=book.isbn,
                openlibrary_code=book.openlibrary_code,
                year_published=book.year_published,
                current_page=0,
                review=book.review,
                notes=book.notes,
                stars=book.stars,
                price=book.price,
            )
            s.add(db_book)
            s.flush()
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                db_book = _create(s)
                s.expunge(db_book)
                return db_book

    def get_book(self, book_id: int, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_book_by_isbn(self, isbn: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ISBN."""

        def _get(s: Session) -> Optional[Book]:
            cleaned = isbn.replace("-", "").replace(" ", "")
            stmt = select(Book).where(Book.isbn == cleaned)
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_book_by_openlibrary_code(
        self, code: str, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Get a book by its Open Library key."""

        def _get(s: Session) -> Optional[Book]:
            stmt = select(Book).where(Book.openlibrary_code == code)
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_all_books(self, session: Optional[Session] = None) -> list[Book]:
        """Get all books with their tag collections loaded, ordered by title."""

        def _get(s: Session) -> list[Book]:
            stmt = (
                select(Book)
                .options(
                    selectinload(Book.authors),
                    selectinload(Book.categories),
                    selectinload(Book.publishers),
                )
                .order_by(Book.title, Book.book_id)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                books = _get(s)
                for book in books:
                    s.expunge(book)
                return books

    def update_book(
        self, book_id: int, update: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update a book's own columns. Tag lists in ``update`` are ignored here.

        Raises:
            InvalidInputError: If the new page count is below the current page
        """

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            update_data = update.model_dump(exclude_unset=True, exclude=set(TAG_FIELDS))
            new_pages = update_data.get("number_of_pages")
            if new_pages is not None and new_pages < book.current_page:
                raise InvalidInputError(
                    f"Book has progress up to page {book.current_page}; "
                    f"page count cannot be lowered to {new_pages}"
                )
            for field, value in update_data.items():
                setattr(book, field, value)

            s.flush()
            return book

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                book = _update(s)
                if book:
                    s.expunge(book)
                return book

    def delete_book(self, book_id: int, session: Optional[Session] = None) -> bool:
        """Delete a book record. Its logs and tag joins cascade."""

        def _delete(s: Session) -> bool:
            book = s.get(Book, book_id)
            if not book:
                return False
            s.delete(book)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)
