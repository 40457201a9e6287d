"""Exceptions raised by the ribbon core."""


class RibbonError(Exception):
    """Base exception for ribbon errors."""

    pass


class InvalidInputError(RibbonError, ValueError):
    """Raised when input is malformed or out of range. Nothing was written."""

    pass


class PageRangeError(InvalidInputError):
    """Raised when a reading log's page range is invalid for its book."""

    pass


class StoreError(RibbonError):
    """Raised when the underlying store fails. The transaction was rolled back."""

    pass
