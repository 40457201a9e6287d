"""Library catalog: book add/edit/delete flows and the searchable book list."""

from .catalog import Catalog
from .query import (
    FilterOptions,
    LibraryFilter,
    LibraryQuery,
    SortKey,
    SortOptions,
    filter_books,
    matches_search,
    search_books,
    sort_books,
    title_key,
)

__all__ = [
    "Catalog",
    "LibraryQuery",
    "LibraryFilter",
    "SortKey",
    "SortOptions",
    "FilterOptions",
    "filter_books",
    "matches_search",
    "search_books",
    "sort_books",
    "title_key",
]
