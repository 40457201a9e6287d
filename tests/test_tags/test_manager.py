"""Tests for TagManager."""

import pytest
from sqlalchemy import func, select

from ribbon.db.models import BookCategory, Category
from ribbon.db.schemas import BookCreate
from ribbon.errors import InvalidInputError
from ribbon.tags.manager import TagKind, TagManager, clean_tag_name, tag_tables


@pytest.fixture
def two_books(db):
    """Create two untagged books."""
    a = db.create_book(BookCreate(title="Book A", number_of_pages=100))
    b = db.create_book(BookCreate(title="Book B", number_of_pages=200))
    return a, b


def _link_count(db, book_id=None) -> int:
    with db.get_session() as session:
        stmt = select(func.count()).select_from(BookCategory)
        if book_id is not None:
            stmt = stmt.where(BookCategory.book_id == book_id)
        return session.execute(stmt).scalar()


class TestTagKind:
    """Tests for tag kind resolution."""

    def test_accepts_string_values(self):
        """Test kinds can be given as strings."""
        assert tag_tables("category").model is Category

    def test_unknown_kind(self):
        """Test an unknown kind is a validation error."""
        with pytest.raises(InvalidInputError):
            tag_tables("genre")

    def test_clean_tag_name(self):
        """Test names are trimmed and blanks rejected."""
        assert clean_tag_name("  Fiction ") == "Fiction"
        with pytest.raises(InvalidInputError):
            clean_tag_name("   ")


class TestGetOrCreate:
    """Tests for get_or_create."""

    def test_creates_new_tag(self, tags):
        """Test a new name creates a row."""
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")

        assert tag_id > 0
        assert tags.get_tag_by_name(TagKind.CATEGORY, "Fiction").id == tag_id

    def test_idempotent(self, tags, db):
        """Test the same name always resolves to the same row."""
        first = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        second = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        third = tags.get_or_create(TagKind.CATEGORY, "  Fiction  ")

        assert first == second == third
        with db.get_session() as session:
            assert session.execute(select(func.count(Category.category_id))).scalar() == 1

    def test_case_sensitive(self, tags):
        """Test names differing only in case are distinct tags."""
        assert tags.get_or_create("author", "bell hooks") != tags.get_or_create("author", "Bell Hooks")

    def test_blank_name_rejected(self, tags):
        """Test blank names raise before writing."""
        with pytest.raises(InvalidInputError):
            tags.get_or_create(TagKind.AUTHOR, "")
        assert tags.list_tags(TagKind.AUTHOR) == []

    def test_kinds_are_separate(self, tags):
        """Test the same name can exist in different kinds."""
        tags.get_or_create(TagKind.AUTHOR, "Penguin")
        assert tags.get_tag_by_name(TagKind.PUBLISHER, "Penguin") is None


class TestAttachDetach:
    """Tests for linking tags to books."""

    def test_attach(self, tags, two_books):
        """Test attaching links the tag to the book."""
        book_a, _ = two_books
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")

        assert tags.attach(TagKind.CATEGORY, book_a.book_id, tag_id) is True
        assert [t.name for t in tags.get_book_tags(TagKind.CATEGORY, book_a.book_id)] == ["Fiction"]

    def test_attach_twice_single_row(self, tags, db, two_books):
        """Test attaching "Fiction" twice leaves exactly one link."""
        book_a, _ = two_books
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        tags.attach(TagKind.CATEGORY, book_a.book_id, tag_id)

        again = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        assert tags.attach(TagKind.CATEGORY, book_a.book_id, again) is True

        assert _link_count(db, book_a.book_id) == 1

    def test_attach_missing_book(self, tags):
        """Test attaching to a missing book returns False."""
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        assert tags.attach(TagKind.CATEGORY, 999, tag_id) is False

    def test_attach_missing_tag(self, tags, two_books):
        """Test attaching a missing tag returns False."""
        book_a, _ = two_books
        assert tags.attach(TagKind.CATEGORY, book_a.book_id, 999) is False

    def test_detach(self, tags, two_books):
        """Test detaching removes the link but keeps the tag."""
        book_a, _ = two_books
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        tags.attach(TagKind.CATEGORY, book_a.book_id, tag_id)

        assert tags.detach(TagKind.CATEGORY, book_a.book_id, tag_id) is True
        assert tags.get_book_tags(TagKind.CATEGORY, book_a.book_id) == []
        assert tags.get_tag_by_name(TagKind.CATEGORY, "Fiction") is not None

    def test_detach_missing_link(self, tags, two_books):
        """Test detaching a link that does not exist returns False."""
        book_a, _ = two_books
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        assert tags.detach(TagKind.CATEGORY, book_a.book_id, tag_id) is False


class TestReplaceBookTags:
    """Tests for replace_book_tags."""

    def test_replaces_full_set(self, tags, two_books):
        """Test the given names become the book's whole set."""
        book_a, _ = two_books
        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction", "Classic"])

        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Classic", "Drama"])

        names = [t.name for t in tags.get_book_tags(TagKind.CATEGORY, book_a.book_id)]
        assert names == ["Classic", "Drama"]

    def test_other_books_untouched(self, tags, two_books):
        """Test replacing one book's tags leaves other books alone."""
        book_a, book_b = two_books
        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction"])
        tags.replace_book_tags(TagKind.CATEGORY, book_b.book_id, ["Fiction"])

        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, [])

        assert tags.get_book_tags(TagKind.CATEGORY, book_a.book_id) == []
        assert [t.name for t in tags.get_book_tags(TagKind.CATEGORY, book_b.book_id)] == ["Fiction"]

    def test_duplicates_collapsed(self, tags, db, two_books):
        """Test repeated names give one link."""
        book_a, _ = two_books
        ids = tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction", " Fiction"])

        assert len(ids) == 1
        assert _link_count(db, book_a.book_id) == 1

    def test_missing_book(self, tags):
        """Test replacing tags of a missing book returns None."""
        assert tags.replace_book_tags(TagKind.CATEGORY, 999, ["Fiction"]) is None

    def test_blank_name_writes_nothing(self, tags, two_books):
        """Test a blank name rejects the whole replacement."""
        book_a, _ = two_books
        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction"])

        with pytest.raises(InvalidInputError):
            tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Drama", " "])

        assert [t.name for t in tags.get_book_tags(TagKind.CATEGORY, book_a.book_id)] == ["Fiction"]


class TestDeleteTag:
    """Tests for global tag deletion."""

    def test_global_delete_cascades(self, tags, db, two_books):
        """Test deleting "Fiction" removes it from every book."""
        book_a, book_b = two_books
        tag_id = tags.get_or_create(TagKind.CATEGORY, "Fiction")
        tags.attach(TagKind.CATEGORY, book_a.book_id, tag_id)
        tags.attach(TagKind.CATEGORY, book_b.book_id, tag_id)

        assert tags.delete_tag(TagKind.CATEGORY, tag_id) is True

        assert tags.get_book_tags(TagKind.CATEGORY, book_a.book_id) == []
        assert tags.get_book_tags(TagKind.CATEGORY, book_b.book_id) == []
        assert tags.get_tag_by_name(TagKind.CATEGORY, "Fiction") is None
        assert _link_count(db) == 0

    def test_delete_missing(self, tags):
        """Test deleting a missing tag returns False."""
        assert tags.delete_tag(TagKind.CATEGORY, 999) is False

    def test_delete_by_name(self, tags):
        """Test deleting by exact name."""
        tags.get_or_create(TagKind.AUTHOR, "Frank Herbert")

        assert tags.delete_tag_by_name(TagKind.AUTHOR, "Frank Herbert") is True
        assert tags.delete_tag_by_name(TagKind.AUTHOR, "Frank Herbert") is False


class TestListManagement:
    """Tests for listing tags and saving list edits."""

    def test_list_tags_with_counts(self, tags, two_books):
        """Test tags are name ordered with usage counts."""
        book_a, book_b = two_books
        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction", "Classic"])
        tags.replace_book_tags(TagKind.CATEGORY, book_b.book_id, ["Fiction"])
        tags.get_or_create(TagKind.CATEGORY, "Unused")

        listed = tags.list_tags(TagKind.CATEGORY)

        assert [(t.name, t.book_count) for t in listed] == [
            ("Classic", 1),
            ("Fiction", 2),
            ("Unused", 0),
        ]
        assert all(t.kind == "category" for t in listed)

    def test_apply_list_changes(self, tags, two_books):
        """Test deletions run first and additions skip deleted names."""
        book_a, _ = two_books
        tags.replace_book_tags(TagKind.CATEGORY, book_a.book_id, ["Fiction"])
        tags.get_or_create(TagKind.CATEGORY, "Classic")

        result = tags.apply_list_changes(
            TagKind.CATEGORY,
            added=["Drama", "Classic", "Fiction"],
            deleted=["Fiction"],
        )

        assert result.created == ["Drama"]
        assert result.deleted == ["Fiction"]
        assert [t.name for t in tags.list_tags(TagKind.CATEGORY)] == ["Classic", "Drama"]
        assert tags.get_book_tags(TagKind.CATEGORY, book_a.book_id) == []

    def test_apply_list_changes_is_atomic(self, tags):
        """Test a blank addition cancels the deletions too."""
        tags.get_or_create(TagKind.CATEGORY, "Fiction")

        with pytest.raises(InvalidInputError):
            tags.apply_list_changes(TagKind.CATEGORY, added=[""], deleted=["Fiction"])

        assert tags.get_tag_by_name(TagKind.CATEGORY, "Fiction") is not None

    def test_shared_session(self, db, two_books):
        """Test calls can be composed into one caller-owned transaction."""
        manager = TagManager(db)
        book_a, _ = two_books
        with pytest.raises(RuntimeError):
            with db.get_session() as session:
                tag_id = manager.get_or_create(TagKind.CATEGORY, "Fiction", session=session)
                manager.attach(TagKind.CATEGORY, book_a.book_id, tag_id, session=session)
                raise RuntimeError("abort")

        assert manager.get_tag_by_name(TagKind.CATEGORY, "Fiction") is None
