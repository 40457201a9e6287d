"""Manager for author, category and publisher tags.

The three tag families share one shape: a table of unique names and a join
table linking names to books. ``TagKind`` picks the family.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..db.models import (
    Author,
    Book,
    BookAuthor,
    BookCategory,
    BookPublisher,
    Category,
    Publisher,
)
from ..db.schemas import TagResponse
from ..db.sqlite import Database
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


class TagKind(str, Enum):
    """Tag families a book can be classified by."""

    AUTHOR = "author"
    CATEGORY = "category"
    PUBLISHER = "publisher"


@dataclass(frozen=True)
class TagTables:
    """The ORM classes behind one tag family."""

    model: type
    link: type
    id_column: str

    @property
    def tag_id(self):
        return getattr(self.model, self.id_column)

    @property
    def link_tag_id(self):
        return getattr(self.link, self.id_column)


TAG_TABLES = {
    TagKind.AUTHOR: TagTables(Author, BookAuthor, "author_id"),
    TagKind.CATEGORY: TagTables(Category, BookCategory, "category_id"),
    TagKind.PUBLISHER: TagTables(Publisher, BookPublisher, "publisher_id"),
}


def tag_tables(kind: Union[TagKind, str]) -> TagTables:
    """Resolve a kind (enum or its string value) to its tables."""
    try:
        return TAG_TABLES[TagKind(kind)]
    except ValueError:
        raise InvalidInputError(
            f"Unknown tag kind {kind!r}; expected one of "
            + ", ".join(k.value for k in TagKind)
        ) from None


def clean_tag_name(name: str) -> str:
    """Trim a tag name, rejecting blank values."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("Tag name cannot be blank")
    return name.strip()


@dataclass
class ListChangeResult:
    """Outcome of saving edits to one tag list."""

    kind: TagKind
    created: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


class TagManager:
    """Manager for tag lookup, creation, and book association."""

    def __init__(self, db: Database):
        """Initialize the tag manager.

        Args:
            db: Database instance
        """
        self.db = db

    def _run(self, op, session: Optional[Session]):
        if session:
            return op(session)
        with self.db.get_session() as s:
            return op(s)

    # ========================================================================
    # Tag CRUD
    # ========================================================================

    def get_or_create(
        self,
        kind: Union[TagKind, str],
        name: str,
        session: Optional[Session] = None,
    ) -> int:
        """Return the id of the tag with this exact name, creating it if absent.

        Args:
            kind: Tag family
            name: Tag name (surrounding whitespace is ignored)
            session: Optional session to join

        Returns:
            The tag id

        Raises:
            InvalidInputError: If the name is blank
        """
        tables = tag_tables(kind)
        name = clean_tag_name(name)

        def _get_or_create(s: Session) -> int:
            stmt = (
                sqlite_insert(tables.model)
                .values(name=name)
                .on_conflict_do_nothing(index_elements=["name"])
            )
            s.execute(stmt)
            return s.execute(
                select(tables.tag_id).where(tables.model.name == name)
            ).scalar_one()

        return self._run(_get_or_create, session)

    def get_tag_by_name(
        self,
        kind: Union[TagKind, str],
        name: str,
        session: Optional[Session] = None,
    ) -> Optional[TagResponse]:
        """Get a tag by its exact (case-sensitive) name."""
        tables = tag_tables(kind)

        def _get(s: Session) -> Optional[TagResponse]:
            rows = self._tag_rows(s, kind, tables.model.name == name.strip())
            return rows[0] if rows else None

        return self._run(_get, session)

    def list_tags(
        self, kind: Union[TagKind, str], session: Optional[Session] = None
    ) -> list[TagResponse]:
        """List every tag of a kind, name ordered, with usage counts."""
        return self._run(lambda s: self._tag_rows(s, kind), session)

    def delete_tag(
        self,
        kind: Union[TagKind, str],
        tag_id: int,
        session: Optional[Session] = None,
    ) -> bool:
        """Delete a tag everywhere. Its links to every book cascade away.

        Returns:
            True if deleted, False if no such tag
        """
        tables = tag_tables(kind)

        def _delete(s: Session) -> bool:
            tag = s.get(tables.model, tag_id)
            if not tag:
                return False
            name = tag.name
            s.delete(tag)
            s.flush()
            logger.info("Deleted %s %r (id=%s) from all books", TagKind(kind).value, name, tag_id)
            return True

        return self._run(_delete, session)

    def delete_tag_by_name(
        self,
        kind: Union[TagKind, str],
        name: str,
        session: Optional[Session] = None,
    ) -> bool:
        """Delete a tag everywhere, looked up by exact name."""
        tables = tag_tables(kind)

        def _delete(s: Session) -> bool:
            tag_id = s.execute(
                select(tables.tag_id).where(tables.model.name == name.strip())
            ).scalar_one_or_none()
            if tag_id is None:
                return False
            return self.delete_tag(kind, tag_id, session=s)

        return self._run(_delete, session)

    def _tag_rows(self, s: Session, kind: Union[TagKind, str], *criteria) -> list[TagResponse]:
        """Query tags of one kind with the number of books using each."""
        tables = tag_tables(kind)
        stmt = (
            select(tables.tag_id, tables.model.name, func.count(tables.link.book_id))
            .outerjoin(tables.link, tables.link_tag_id == tables.tag_id)
            .where(*criteria)
            .group_by(tables.tag_id, tables.model.name)
            .order_by(tables.model.name)
        )
        return [
            TagResponse(id=tag_id, name=name, kind=TagKind(kind).value, book_count=count)
            for tag_id, name, count in s.execute(stmt).all()
        ]

    # ========================================================================
    # Book Tagging
    # ========================================================================

    def attach(
        self,
        kind: Union[TagKind, str],
        book_id: int,
        tag_id: int,
        session: Optional[Session] = None,
    ) -> bool:
        """Link a tag to a book. Linking twice leaves one link.

        Returns:
            True if the link exists afterwards, False if the book or tag is missing
        """
        tables = tag_tables(kind)

        def _attach(s: Session) -> bool:
            if s.get(Book, book_id) is None or s.get(tables.model, tag_id) is None:
                return False
            stmt = (
                sqlite_insert(tables.link)
                .values({"book_id": book_id, tables.id_column: tag_id})
                .on_conflict_do_nothing(index_elements=["book_id", tables.id_column])
            )
            s.execute(stmt)
            return True

        return self._run(_attach, session)

    def detach(
        self,
        kind: Union[TagKind, str],
        book_id: int,
        tag_id: int,
        session: Optional[Session] = None,
    ) -> bool:
        """Unlink a tag from one book. The tag itself is kept.

        Returns:
            True if a link was removed
        """
        tables = tag_tables(kind)

        def _detach(s: Session) -> bool:
            result = s.execute(
                delete(tables.link).where(
                    tables.link.book_id == book_id,
                    tables.link_tag_id == tag_id,
                )
            )
            return result.rowcount > 0

        return self._run(_detach, session)

    def replace_book_tags(
        self,
        kind: Union[TagKind, str],
        book_id: int,
        names: Iterable[str],
        session: Optional[Session] = None,
    ) -> Optional[list[int]]:
        """Make ``names`` the complete set of one kind of tag on a book.

        Existing links of that kind are removed first, then each name is
        resolved (created if needed) and linked. Other books are untouched.

        Returns:
            Tag ids now linked, in the order given, or None if the book is missing

        Raises:
            InvalidInputError: If any name is blank
        """
        tables = tag_tables(kind)
        cleaned: list[str] = []
        for name in names:
            name = clean_tag_name(name)
            if name not in cleaned:
                cleaned.append(name)

        def _replace(s: Session) -> Optional[list[int]]:
            if s.get(Book, book_id) is None:
                return None
            s.execute(delete(tables.link).where(tables.link.book_id == book_id))
            tag_ids = []
            for name in cleaned:
                tag_id = self.get_or_create(kind, name, session=s)
                self.attach(kind, book_id, tag_id, session=s)
                tag_ids.append(tag_id)
            return tag_ids

        return self._run(_replace, session)

    def get_book_tags(
        self,
        kind: Union[TagKind, str],
        book_id: int,
        session: Optional[Session] = None,
    ) -> list[TagResponse]:
        """Get the tags of one kind linked to a book, name ordered."""
        tables = tag_tables(kind)
        linked = select(tables.link_tag_id).where(tables.link.book_id == book_id)
        return self._run(lambda s: self._tag_rows(s, kind, tables.tag_id.in_(linked)), session)

    # ========================================================================
    # List Management
    # ========================================================================

    def apply_list_changes(
        self,
        kind: Union[TagKind, str],
        added: Iterable[str] = (),
        deleted: Iterable[str] = (),
        session: Optional[Session] = None,
    ) -> ListChangeResult:
        """Save edits to a tag list in one transaction.

        Deletions run first and are global. Names that were both added and
        deleted in the same edit are dropped from the additions.

        Args:
            kind: Tag family
            added: Names to create (existing names are left as they are)
            deleted: Names to delete from every book

        Returns:
            Which names were created and which were deleted
        """
        deleted_names = [clean_tag_name(n) for n in deleted]
        added_names = [
            n for n in dict.fromkeys(clean_tag_name(n) for n in added)
            if n not in deleted_names
        ]
        result = ListChangeResult(kind=TagKind(kind))

        def _apply(s: Session) -> ListChangeResult:
            for name in dict.fromkeys(deleted_names):
                if self.delete_tag_by_name(kind, name, session=s):
                    result.deleted.append(name)
            for name in added_names:
                existed = self.get_tag_by_name(kind, name, session=s) is not None
                self.get_or_create(kind, name, session=s)
                if not existed:
                    result.created.append(name)
            return result

        return self._run(_apply, session)
