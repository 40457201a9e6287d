"""Reading progress tracking.

Page logs record which pages were read on a day. Every change to a book's
logs keeps its ``current_page`` equal to the furthest page any surviving log
reached, and its ``last_read`` date never moves backwards.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.models import Book, PageLog
from ..db.schemas import PageLogDetails, PageLogResponse, completion_ratio
from ..db.sqlite import Database
from ..errors import InvalidInputError, PageRangeError

logger = logging.getLogger(__name__)

PageValue = Union[int, str]


def pages_covered(start_page: int, end_page: int) -> int:
    """Number of pages a log covers.

    Both ends are inclusive and page 0 means "not started yet", so it is
    never counted: 1-50 and 0-50 both cover 50 pages, 0-0 covers none.
    """
    return max(0, end_page - max(start_page, 1) + 1)


def parse_page(value: PageValue) -> int:
    """Convert user input to a page number."""
    if isinstance(value, bool):
        raise PageRangeError("Please enter valid page numbers")
    if isinstance(value, float):
        if not value.is_integer():
            raise PageRangeError("Please enter valid page numbers")
        return int(value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise PageRangeError("Please enter valid page numbers") from None


def validate_page_range(start_page: int, end_page: int, number_of_pages: int) -> None:
    """Check a page range against a book.

    Raises:
        PageRangeError: If the range is negative, reversed, or past the last page
    """
    if start_page < 0 or end_page < 0:
        raise PageRangeError("Page numbers cannot be negative")
    if start_page > end_page:
        raise PageRangeError("Start page cannot be greater than end page")
    if end_page > number_of_pages:
        raise PageRangeError(f"End page cannot exceed {number_of_pages} pages")


def parse_read_date(value: Union[date, str, None]) -> Optional[date]:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInputError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


@dataclass
class BookProgress:
    """Reading progress for one book."""

    book_id: int
    book_title: str
    current_page: int
    number_of_pages: int
    progress_percent: int
    pages_read: int
    sessions_count: int
    last_read: Optional[date] = None


class ProgressTracker:
    """Records page logs and keeps book progress consistent with them."""

    def __init__(self, db: Database, today: Callable[[], date] = date.today):
        """Initialize progress tracker.

        Args:
            db: Database instance
            today: Returns the current date (used when no read date is given)
        """
        self.db = db
        self._today = today

    def _run(self, op, session: Optional[Session]):
        if session:
            return op(session)
        with self.db.get_session() as s:
            return op(s)

    @staticmethod
    def _max_end_page(s: Session, book_id: int, exclude_log_id: Optional[int] = None) -> int:
        """Furthest page reached by a book's logs, 0 when it has none."""
        stmt = select(func.max(PageLog.end_page)).where(PageLog.book_id == book_id)
        if exclude_log_id is not None:
            stmt = stmt.where(PageLog.page_log_id != exclude_log_id)
        return s.execute(stmt).scalar() or 0

    @staticmethod
    def _raise_last_read(book: Book, read_date: date) -> None:
        if book.last_read is None or read_date >= book.last_read:
            book.last_read = read_date

    # ========================================================================
    # Log Mutations
    # ========================================================================

    def create_log(
        self,
        book_id: int,
        start_page: PageValue,
        end_page: PageValue,
        read_date: Union[date, str, None] = None,
        page_notes: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> Optional[PageLogResponse]:
        """Record a reading session.

        Args:
            book_id: Book that was read
            start_page: First page of the session
            end_page: Last page of the session
            read_date: Day of the session (default: today)
            page_notes: Optional notes

        Returns:
            The new log, or None if the book does not exist

        Raises:
            PageRangeError: If the page range is invalid for the book
        """
        start = parse_page(start_page)
        end = parse_page(end_page)
        day = parse_read_date(read_date) or self._today()

        def _create(s: Session) -> Optional[PageLogResponse]:
            book = s.get(Book, book_id)
            if not book:
                return None
            validate_page_range(start, end, book.number_of_pages)

            log = PageLog(
                book_id=book_id,
                start_page=start,
                end_page=end,
                current_page_after_log=max(end, book.current_page),
                total_page_read=pages_covered(start, end),
                read_date=day,
                page_notes=page_notes or None,
            )
            s.add(log)
            book.current_page = max(book.current_page, end)
            self._raise_last_read(book, day)
            s.flush()

            logger.info(
                "Logged pages %d-%d of book %d on %s (now at page %d)",
                start, end, book_id, day.isoformat(), book.current_page,
            )
            return PageLogResponse.model_validate(log)

        return self._run(_create, session)

    def update_log(
        self,
        page_log_id: int,
        start_page: PageValue,
        end_page: PageValue,
        read_date: Union[date, str, None] = None,
        page_notes: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> Optional[PageLogResponse]:
        """Edit a reading session and re-derive the book's progress.

        Args:
            page_log_id: Log to edit
            start_page: New first page
            end_page: New last page
            read_date: New day, or None to keep the current one
            page_notes: New notes, None to keep, "" to clear

        Returns:
            The updated log, or None if the log does not exist

        Raises:
            PageRangeError: If the page range is invalid for the book
        """
        start = parse_page(start_page)
        end = parse_page(end_page)
        day = parse_read_date(read_date)

        def _update(s: Session) -> Optional[PageLogResponse]:
            log = s.get(PageLog, page_log_id)
            if not log:
                return None
            book = s.get(Book, log.book_id)
            validate_page_range(start, end, book.number_of_pages)

            others_max = self._max_end_page(s, book.book_id, exclude_log_id=page_log_id)
            log.start_page = start
            log.end_page = end
            log.total_page_read = pages_covered(start, end)
            log.current_page_after_log = max(end, others_max)
            if day is not None:
                log.read_date = day
                self._raise_last_read(book, day)
            if page_notes is not None:
                log.page_notes = page_notes or None

            book.current_page = max(end, others_max)
            s.flush()

            logger.info(
                "Updated log %d of book %d (book now at page %d)",
                page_log_id, book.book_id, book.current_page,
            )
            return PageLogResponse.model_validate(log)

        return self._run(_update, session)

    def delete_log(self, page_log_id: int, session: Optional[Session] = None) -> bool:
        """Delete a reading session and re-derive the book's progress.

        ``last_read`` is left as it is.

        Returns:
            True if deleted
        """

        def _delete(s: Session) -> bool:
            log = s.get(PageLog, page_log_id)
            if not log:
                return False
            book = s.get(Book, log.book_id)
            s.delete(log)
            s.flush()
            book.current_page = self._max_end_page(s, book.book_id)
            s.flush()

            logger.info(
                "Deleted log %d of book %d (book now at page %d)",
                page_log_id, book.book_id, book.current_page,
            )
            return True

        return self._run(_delete, session)

    def recompute_progress(self, book_id: int, session: Optional[Session] = None) -> Optional[int]:
        """Reset a book's current page from its logs.

        Returns:
            The re-derived current page, or None if the book does not exist
        """

        def _recompute(s: Session) -> Optional[int]:
            book = s.get(Book, book_id)
            if not book:
                return None
            derived = self._max_end_page(s, book_id)
            if derived != book.current_page:
                logger.info(
                    "Book %d current page corrected from %d to %d",
                    book_id, book.current_page, derived,
                )
                book.current_page = derived
            return derived

        return self._run(_recompute, session)

    # ========================================================================
    # Log Queries
    # ========================================================================

    def get_log(self, page_log_id: int) -> Optional[PageLogDetails]:
        """Get a log together with its book's title and progress."""
        with self.db.get_session() as s:
            log = s.get(PageLog, page_log_id)
            if not log:
                return None
            return self._details(log, s.get(Book, log.book_id))

    def get_logs_for_book(self, book_id: int) -> list[PageLogResponse]:
        """Get a book's logs, most recent first."""
        with self.db.get_session() as s:
            stmt = (
                select(PageLog)
                .where(PageLog.book_id == book_id)
                .order_by(PageLog.read_date.desc(), PageLog.page_log_id.desc())
            )
            return [PageLogResponse.model_validate(log) for log in s.execute(stmt).scalars()]

    def get_logs_for_date(self, day: Union[date, str]) -> list[PageLogDetails]:
        """Get every log recorded on one day, in the order they were added."""
        day = parse_read_date(day)
        with self.db.get_session() as s:
            stmt = (
                select(PageLog, Book)
                .join(Book, PageLog.book_id == Book.book_id)
                .where(PageLog.read_date == day)
                .order_by(PageLog.page_log_id)
            )
            return [self._details(log, book) for log, book in s.execute(stmt).all()]

    def get_book_progress(self, book_id: int) -> Optional[BookProgress]:
        """Get progress info for a specific book.

        Returns:
            Current page, percent complete, pages logged and session count,
            or None if the book does not exist
        """
        with self.db.get_session() as s:
            book = s.get(Book, book_id)
            if not book:
                return None
            pages_read, sessions = s.execute(
                select(
                    func.coalesce(func.sum(PageLog.total_page_read), 0),
                    func.count(PageLog.page_log_id),
                ).where(PageLog.book_id == book_id)
            ).one()
            percent = min(100, int(completion_ratio(book.current_page, book.number_of_pages) * 100))
            return BookProgress(
                book_id=book.book_id,
                book_title=book.title,
                current_page=book.current_page,
                number_of_pages=book.number_of_pages,
                progress_percent=percent,
                pages_read=pages_read,
                sessions_count=sessions,
                last_read=book.last_read,
            )

    @staticmethod
    def _details(log: PageLog, book: Book) -> PageLogDetails:
        return PageLogDetails(
            **PageLogResponse.model_validate(log).model_dump(),
            book_title=book.title,
            number_of_pages=book.number_of_pages,
            book_current_page=book.current_page,
        )
