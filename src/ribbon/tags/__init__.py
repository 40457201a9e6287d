"""Tags module: authors, categories and publishers attached to books."""

from .manager import (
    TAG_TABLES,
    ListChangeResult,
    TagKind,
    TagManager,
    TagTables,
    clean_tag_name,
    tag_tables,
)

__all__ = [
    "TagManager",
    "TagKind",
    "TagTables",
    "TAG_TABLES",
    "ListChangeResult",
    "clean_tag_name",
    "tag_tables",
]
