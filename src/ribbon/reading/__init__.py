"""Reading progress: page logs and the book positions derived from them."""

from .progress import (
    BookProgress,
    ProgressTracker,
    pages_covered,
    parse_page,
    parse_read_date,
    validate_page_range,
)

__all__ = [
    "ProgressTracker",
    "BookProgress",
    "pages_covered",
    "parse_page",
    "parse_read_date",
    "validate_page_range",
]
