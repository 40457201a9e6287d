"""SQLAlchemy ORM models for the local SQLite store.

Tables:
- books: Main book records
- authors, categories, publishers: Reusable tags, unique by name
- book_authors, book_categories, book_publishers: Book/tag join rows
- page_logs: Individual reading session entries
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Float, ForeignKey, Integer, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Book(Base):
    """Book model - a catalog entry and its reading position."""

    __tablename__ = "books"
    __table_args__ = {"sqlite_autoincrement": True}

    book_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    cover_url: Mapped[Optional[str]] = mapped_column(Text)
    cover_path: Mapped[Optional[str]] = mapped_column(Text)
    number_of_pages: Mapped[int] = mapped_column(Integer, nullable=False)
    isbn: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    openlibrary_code: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    year_published: Mapped[Optional[int]] = mapped_column(Integer)
    date_added: Mapped[date] = mapped_column(
        Date, nullable=True, default=date.today, server_default=text("CURRENT_DATE")
    )
    last_read: Mapped[Optional[date]] = mapped_column(Date)
    current_page: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    review: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    stars: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Optional[float]] = mapped_column(Float)

    # Relationships
    page_logs: Mapped[list["PageLog"]] = relationship(
        "PageLog", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )
    book_authors: Mapped[list["BookAuthor"]] = relationship(
        "BookAuthor", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )
    book_categories: Mapped[list["BookCategory"]] = relationship(
        "BookCategory", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )
    book_publishers: Mapped[list["BookPublisher"]] = relationship(
        "BookPublisher", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )

    # Read-only views through the join tables; writes go through the join models
    authors: Mapped[list["Author"]] = relationship(
        "Author", secondary="book_authors", viewonly=True, order_by="Author.name"
    )
    categories: Mapped[list["Category"]] = relationship(
        "Category", secondary="book_categories", viewonly=True, order_by="Category.name"
    )
    publishers: Mapped[list["Publisher"]] = relationship(
        "Publisher", secondary="book_publishers", viewonly=True, order_by="Publisher.name"
    )

    def __repr__(self) -> str:
        return f"<Book(book_id={self.book_id}, title='{self.title}')>"


class Author(Base):
    """An author tag."""

    __tablename__ = "authors"
    __table_args__ = {"sqlite_autoincrement": True}

    author_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    book_links: Mapped[list["BookAuthor"]] = relationship(
        "BookAuthor", back_populates="author", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Author(author_id={self.author_id}, name='{self.name}')>"


class Category(Base):
    """A category tag."""

    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    category_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    book_links: Mapped[list["BookCategory"]] = relationship(
        "BookCategory", back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Category(category_id={self.category_id}, name='{self.name}')>"


class Publisher(Base):
    """A publisher tag."""

    __tablename__ = "publishers"
    __table_args__ = {"sqlite_autoincrement": True}

    publisher_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    book_links: Mapped[list["BookPublisher"]] = relationship(
        "BookPublisher", back_populates="publisher", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Publisher(publisher_id={self.publisher_id}, name='{self.name}')>"


class BookAuthor(Base):
    """Association between a book and an author."""

    __tablename__ = "book_authors"

    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.book_id", ondelete="CASCADE"), primary_key=True
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("authors.author_id", ondelete="CASCADE"), primary_key=True
    )

    book: Mapped["Book"] = relationship("Book", back_populates="book_authors")
    author: Mapped["Author"] = relationship("Author", back_populates="book_links")


class BookCategory(Base):
    """Association between a book and a category."""

    __tablename__ = "book_categories"

    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.book_id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.category_id", ondelete="CASCADE"), primary_key=True
    )

    book: Mapped["Book"] = relationship("Book", back_populates="book_categories")
    category: Mapped["Category"] = relationship("Category", back_populates="book_links")


class BookPublisher(Base):
    """Association between a book and a publisher."""

    __tablename__ = "book_publishers"

    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.book_id", ondelete="CASCADE"), primary_key=True
    )
    publisher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("publishers.publisher_id", ondelete="CASCADE"), primary_key=True
    )

    book: Mapped["Book"] = relationship("Book", back_populates="book_publishers")
    publisher: Mapped["Publisher"] = relationship("Publisher", back_populates="book_links")


class PageLog(Base):
    """Page log model - one reading session on a given day."""

    __tablename__ = "page_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    page_log_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.book_id", ondelete="CASCADE"), nullable=False
    )
    start_page: Mapped[int] = mapped_column(Integer, nullable=False)
    end_page: Mapped[int] = mapped_column(Integer, nullable=False)
    # Snapshot of the book's current_page right after this log was applied
    current_page_after_log: Mapped[int] = mapped_column(Integer, nullable=False)
    total_page_read: Mapped[int] = mapped_column(Integer, nullable=False)
    read_date: Mapped[date] = mapped_column(Date, nullable=False)
    page_notes: Mapped[Optional[str]] = mapped_column(Text)

    book: Mapped["Book"] = relationship("Book", back_populates="page_logs")

    def __repr__(self) -> str:
        return (
            f"<PageLog(page_log_id={self.page_log_id}, book_id={self.book_id}, "
            f"pages={self.start_page}-{self.end_page}, read_date={self.read_date})>"
        )
