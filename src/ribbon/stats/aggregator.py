"""Pages-read statistics grouped by author, category, publisher and book.

Totals sum ``page_logs.total_page_read`` over a timeframe of read dates.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Callable, Optional, Union

from sqlalchemy import func, select

from ..config import Config
from ..db.models import Book, PageLog
from ..db.schemas import DimensionTotal, ReadingSummary
from ..db.sqlite import Database
from ..errors import InvalidInputError
from ..tags.manager import TagKind, tag_tables
from .streak import DEFAULT_MAX_DAYS, reading_streak

DEFAULT_TOP_N = 10


class Timeframe(str, Enum):
    """Read-date windows used by the statistics screens."""

    TODAY = "today"
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"
    THIS_YEAR = "thisYear"
    ALL_TIME = "allTime"


def parse_timeframe(value: Union[Timeframe, str]) -> Timeframe:
    try:
        return Timeframe(value)
    except ValueError:
        raise InvalidInputError(
            f"Unknown timeframe {value!r}; expected one of "
            + ", ".join(t.value for t in Timeframe)
        ) from None


def timeframe_criteria(timeframe: Union[Timeframe, str], today: date) -> list:
    """WHERE clauses on ``PageLog.read_date`` for a timeframe."""
    timeframe = parse_timeframe(timeframe)
    if timeframe == Timeframe.TODAY:
        return [PageLog.read_date == today]
    if timeframe == Timeframe.THIS_WEEK:
        return [PageLog.read_date >= today - timedelta(days=7)]
    if timeframe == Timeframe.THIS_MONTH:
        return [PageLog.read_date >= today.replace(day=1)]
    if timeframe == Timeframe.THIS_YEAR:
        return [PageLog.read_date >= today.replace(month=1, day=1)]
    return []


class StatsAggregator:
    """Calculates reading statistics."""

    def __init__(
        self,
        db: Database,
        config: Optional[Config] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the aggregator.

        Args:
            db: Database instance
            config: Supplies the top-N limit and streak bound
            today: Returns the current date
        """
        self.db = db
        self.top_n = config.stats_top_n if config else DEFAULT_TOP_N
        self.streak_max_days = config.streak_max_days if config else DEFAULT_MAX_DAYS
        self._today = today

    def dimension_totals(
        self,
        dimension: Union[TagKind, str],
        timeframe: Union[Timeframe, str] = Timeframe.ALL_TIME,
        limit: Optional[int] = None,
    ) -> list[DimensionTotal]:
        """Pages read per author, category or publisher.

        Args:
            dimension: Tag family to group by
            timeframe: Read-date window
            limit: Maximum rows (default: configured top N)

        Returns:
            Entities with a positive total, largest first, ties by name
        """
        tables = tag_tables(dimension)
        total = func.sum(PageLog.total_page_read).label("total")
        stmt = (
            select(tables.tag_id, tables.model.name, total)
            .select_from(PageLog)
            .join(tables.link, tables.link.book_id == PageLog.book_id)
            .join(tables.model, tables.tag_id == tables.link_tag_id)
            .where(*timeframe_criteria(timeframe, self._today()))
            .group_by(tables.tag_id, tables.model.name)
            .having(total > 0)
            .order_by(total.desc(), tables.model.name)
            .limit(limit or self.top_n)
        )
        with self.db.get_session() as s:
            return [
                DimensionTotal(id=tag_id, name=name, total_pages=pages)
                for tag_id, name, pages in s.execute(stmt).all()
            ]

    def drill_down(
        self,
        dimension: Union[TagKind, str],
        entity_id: int,
        timeframe: Union[Timeframe, str] = Timeframe.ALL_TIME,
        limit: Optional[int] = None,
    ) -> list[DimensionTotal]:
        """Pages read per book title within one author, category or publisher."""
        tables = tag_tables(dimension)
        total = func.sum(PageLog.total_page_read).label("total")
        stmt = (
            select(func.min(Book.book_id), Book.title, total)
            .select_from(PageLog)
            .join(Book, Book.book_id == PageLog.book_id)
            .join(tables.link, tables.link.book_id == Book.book_id)
            .where(tables.link_tag_id == entity_id)
            .where(*timeframe_criteria(timeframe, self._today()))
            .group_by(Book.title)
            .having(total > 0)
            .order_by(total.desc(), Book.title)
            .limit(limit or self.top_n)
        )
        with self.db.get_session() as s:
            return [
                DimensionTotal(id=book_id, name=title, total_pages=pages)
                for book_id, title, pages in s.execute(stmt).all()
            ]

    def available_entities(
        self,
        dimension: Union[TagKind, str],
        timeframe: Union[Timeframe, str] = Timeframe.ALL_TIME,
    ) -> list[DimensionTotal]:
        """Entities with at least one page log in the timeframe, name ordered."""
        tables = tag_tables(dimension)
        stmt = (
            select(
                tables.tag_id,
                tables.model.name,
                func.coalesce(func.sum(PageLog.total_page_read), 0),
            )
            .select_from(PageLog)
            .join(tables.link, tables.link.book_id == PageLog.book_id)
            .join(tables.model, tables.tag_id == tables.link_tag_id)
            .where(*timeframe_criteria(timeframe, self._today()))
            .group_by(tables.tag_id, tables.model.name)
            .order_by(tables.model.name)
        )
        with self.db.get_session() as s:
            return [
                DimensionTotal(id=tag_id, name=name, total_pages=pages)
                for tag_id, name, pages in s.execute(stmt).all()
            ]

    def pages_read(self, timeframe: Union[Timeframe, str] = Timeframe.ALL_TIME) -> int:
        """Total pages logged in a timeframe."""
        stmt = select(func.coalesce(func.sum(PageLog.total_page_read), 0)).where(
            *timeframe_criteria(timeframe, self._today())
        )
        with self.db.get_session() as s:
            return s.execute(stmt).scalar_one()

    def reading_streak(self) -> int:
        """Consecutive days with reading, ending today or yesterday."""
        return reading_streak(self.db, self._today(), self.streak_max_days)

    def reading_summary(self) -> ReadingSummary:
        """Library and reading totals for the home dashboard."""
        with self.db.get_session() as s:
            total_books = s.execute(select(func.count(Book.book_id))).scalar_one()
            books_reading = s.execute(
                select(func.count(Book.book_id)).where(
                    Book.current_page > 0, Book.current_page < Book.number_of_pages
                )
            ).scalar_one()

        return ReadingSummary(
            total_books=total_books,
            books_reading=books_reading,
            pages_today=self.pages_read(Timeframe.TODAY),
            pages_this_week=self.pages_read(Timeframe.THIS_WEEK),
            streak=self.reading_streak(),
        )
