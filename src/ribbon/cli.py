"""Command-line interface for ribbon.

Built with Typer for commands and Rich for beautiful output.
"""

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import Config
from .db.schemas import BookCreate, BookUpdate, BookWithTags, ReadingStatus
from .db.sqlite import Database
from .errors import RibbonError
from .tags.manager import TagKind

# Create the main app
app = typer.Typer(
    name="ribbon",
    help="Track the books you own and the pages you read.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
log_app = typer.Typer(help="Record and review reading sessions.")
app.add_typer(log_app, name="log")
tags_app = typer.Typer(help="Manage author, category and publisher lists.")
app.add_typer(tags_app, name="tags")
stats_app = typer.Typer(help="Reading statistics.")
app.add_typer(stats_app, name="stats")
backup_app = typer.Typer(help="Export and import the database.")
app.add_typer(backup_app, name="backup")
covers_app = typer.Typer(help="Manage cached cover images.")
app.add_typer(covers_app, name="covers")

# Rich console for pretty output
console = Console()

logger = logging.getLogger(__name__)

_config: Optional[Config] = None
_db: Optional[Database] = None


# ============================================================================
# Global State
# ============================================================================


def get_config() -> Config:
    """Get or create the process-wide config."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the process-wide config. Used for testing."""
    global _config
    _config = None


def get_db() -> Database:
    """Get or create the process-wide database, creating tables on first use."""
    global _db
    if _db is None:
        _db = Database(get_config().db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the process-wide database. Used for testing."""
    global _db
    if _db is not None:
        _db.dispose()
    _db = None


def setup_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback() -> None:
    """Track the books you own and the pages you read."""
    config = get_config()
    setup_logging(config.log_level)
    for problem in config.validate():
        logger.warning(problem)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report validation and store errors and exit with status 1."""
    try:
        yield
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"]) or "input"
            print_error(f"{field}: {err['msg']}")
        raise typer.Exit(1)
    except RibbonError as e:
        print_error(str(e))
        raise typer.Exit(1)


def format_book_table(books: list[BookWithTags], title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Type")
    table.add_column("Status", style="yellow")
    table.add_column("Progress", justify="right")
    table.add_column("Stars", justify="center")

    for book in books:
        stars = "★" * book.stars + "☆" * (5 - book.stars) if book.stars else "-"
        table.add_row(
            str(book.book_id),
            book.title,
            ", ".join(book.authors) or "-",
            book.book_type,
            book.status.value,
            f"{book.current_page}/{book.number_of_pages} ({book.completion:.0%})",
            stars,
        )

    return table


def _not_found(what: str, ident) -> None:
    print_error(f"{what} not found: {ident}")
    raise typer.Exit(1)


# ============================================================================
# Book Management Commands
# ============================================================================


@app.command()
def add(
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
    pages: int = typer.Option(..., "--pages", "-p", prompt="Number of pages"),
    book_type: str = typer.Option("paperback", "--type", help="paperback, hardcover, ebook, pdf or other"),
    authors: Optional[list[str]] = typer.Option(None, "--author", "-a", help="Author (repeatable)"),
    categories: Optional[list[str]] = typer.Option(None, "--category", "-c", help="Category (repeatable)"),
    publishers: Optional[list[str]] = typer.Option(None, "--publisher", help="Publisher (repeatable)"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year published"),
    cover: Optional[Path] = typer.Option(None, "--cover", help="Local cover image to cache"),
    cover_url: Optional[str] = typer.Option(None, "--cover-url", help="Remote cover image URL"),
    stars: Optional[int] = typer.Option(None, "--stars", min=0, max=5, help="Rating 0-5"),
    price: Optional[float] = typer.Option(None, "--price", help="Price paid"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes"),
) -> None:
    """Add a book manually."""
    from .covers import CoverCache
    from .library import Catalog

    config = get_config()
    db = get_db()
    cache = CoverCache(config.covers_dir, timeout=config.http_timeout)

    with handle_errors():
        cover_path = None
        if cover:
            cover_path = cache.persist_local(cover)
            if cover_path is None:
                print_warning(f"Cover image not used: {cover}")
        elif cover_url:
            cover_path = cache.persist_remote(cover_url)

        book_data = BookCreate(
            title=title,
            number_of_pages=pages,
            book_type=book_type,
            authors=authors or [],
            categories=categories or [],
            publishers=publishers or [],
            isbn=isbn,
            year_published=year,
            cover_url=cover_url,
            cover_path=cover_path,
            stars=stars,
            price=price,
            notes=notes,
        )
        book = Catalog(db).add_book(book_data)

    print_success(f"Added: {book.title} (id {book.book_id})")


def _show_metadata_preview(result) -> None:
    """Display a metadata preview panel."""
    lines = [
        f"[bold]{result.title}[/bold]",
        f"by {', '.join(result.authors) or 'Unknown Author'}",
    ]
    if result.publish_year:
        lines.append(f"Published: {result.publish_year}")
    if result.publishers:
        lines.append(f"Publishers: {', '.join(result.publishers[:3])}")
    if result.number_of_pages:
        lines.append(f"Pages: {result.number_of_pages}")
    if result.isbn:
        lines.append(f"ISBN: {result.isbn}")
    if result.subjects:
        lines.append(f"Subjects: {', '.join(result.subjects)}")
    if result.cover_url:
        lines.append(f"Cover: {result.cover_url}")

    console.print(Panel("\n".join(lines), title="Book Details"))


@app.command()
def lookup(
    query: str = typer.Argument(..., help="Title/author to search for, or an ISBN with --isbn"),
    isbn: bool = typer.Option(False, "--isbn", "-i", help="Treat QUERY as an ISBN"),
    limit: int = typer.Option(10, "--limit", "-l", help="Max search results"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Page count if Open Library has none"),
    book_type: str = typer.Option("paperback", "--type", help="Book type to store"),
    cache_cover: bool = typer.Option(True, "--cache-cover/--no-cache-cover", help="Download the cover"),
) -> None:
    """Find a book on Open Library and add it."""
    from .api import OpenLibraryClient, OpenLibraryError
    from .covers import CoverCache
    from .library import Catalog

    config = get_config()
    db = get_db()
    client = OpenLibraryClient(timeout=config.http_timeout)

    try:
        if isbn:
            existing = db.get_book_by_isbn(query)
            if existing:
                print_warning(f"Book with ISBN {query} already exists: {existing.title}")
                raise typer.Exit(1)
            print_info(f"Looking up ISBN: {query}...")
            found = client.lookup_by_isbn(query)
            results = [found] if found else []
        else:
            print_info(f"Searching Open Library for: {query}...")
            results = client.search(query, limit=limit)
    except OpenLibraryError as e:
        print_error(f"Open Library error: {e}")
        raise typer.Exit(1)

    if not results:
        print_error(f"No books found matching: {query}")
        print_info("Try 'ribbon add' to add manually.")
        raise typer.Exit(1)

    if len(results) == 1:
        selected = results[0]
    else:
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", style="cyan", width=3)
        table.add_column("Title", width=35)
        table.add_column("Author", width=20)
        table.add_column("Year", width=6)
        table.add_column("Pages", width=6)
        for i, r in enumerate(results, 1):
            table.add_row(
                str(i),
                r.title[:35],
                (r.authors[0] if r.authors else "-")[:20],
                str(r.publish_year or "-"),
                str(r.number_of_pages or "-"),
            )
        console.print(table)

        choice = typer.prompt("\nSelect book number (0 to cancel)", type=int, default=1)
        if choice <= 0 or choice > len(results):
            print_info("Cancelled.")
            raise typer.Exit(0)
        selected = results[choice - 1]

    _show_metadata_preview(selected)
    if not typer.confirm("\nAdd this book?", default=True):
        print_info("Cancelled.")
        raise typer.Exit(0)

    if not selected.number_of_pages and not pages:
        pages = typer.prompt("Number of pages", type=int)

    with handle_errors():
        book_data = selected.to_book_create(number_of_pages=pages, book_type=book_type)
        if cache_cover and book_data.cover_url:
            cache = CoverCache(config.covers_dir, timeout=config.http_timeout)
            book_data.cover_path = cache.persist_remote(book_data.cover_url)
        book = Catalog(db).add_book(book_data)

    print_success(f"Added: {book.title} (id {book.book_id})")


@app.command()
def show(book_id: int = typer.Argument(..., help="Book ID")) -> None:
    """Show a book's details, progress and recent reading sessions."""
    from .covers import CoverCache
    from .library import LibraryQuery
    from .reading import ProgressTracker

    db = get_db()
    book = LibraryQuery(db).get_book(book_id)
    if not book:
        _not_found("Book", book_id)

    tracker = ProgressTracker(db)
    progress = tracker.get_book_progress(book_id)
    cover = CoverCache.resolve_cover_uri(book.cover_path, book.cover_url)

    lines = [f"[bold]{book.title}[/bold]"]
    if book.authors:
        lines.append(f"by {', '.join(book.authors)}")
    lines.append(f"Type: {book.book_type}")
    lines.append(
        f"Progress: {book.current_page}/{book.number_of_pages} "
        f"({progress.progress_percent}%) - {book.status.value}"
    )
    lines.append(f"Pages logged: {progress.pages_read} in {progress.sessions_count} sessions")
    if book.last_read:
        lines.append(f"Last read: {book.last_read.isoformat()}")
    lines.append(f"Added: {book.date_added.isoformat()}")
    if book.categories:
        lines.append(f"Categories: {', '.join(book.categories)}")
    if book.publishers:
        lines.append(f"Publishers: {', '.join(book.publishers)}")
    if book.isbn:
        lines.append(f"ISBN: {book.isbn}")
    if book.year_published:
        lines.append(f"Published: {book.year_published}")
    if book.stars is not None:
        lines.append(f"Stars: {'★' * book.stars}{'☆' * (5 - book.stars)}")
    if book.price is not None:
        lines.append(f"Price: {book.price:.2f}")
    if cover:
        lines.append(f"Cover: {cover}")
    if book.review:
        lines.append(f"\nReview: {book.review}")
    if book.notes:
        lines.append(f"\nNotes: {book.notes}")

    console.print(Panel("\n".join(lines), title=f"Book {book.book_id}"))

    logs = tracker.get_logs_for_book(book_id)[:5]
    if logs:
        console.print(_format_log_table(logs, title="Recent Sessions"))


@app.command()
def edit(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p"),
    book_type: Optional[str] = typer.Option(None, "--type"),
    authors: Optional[list[str]] = typer.Option(None, "--author", "-a", help="Replaces all authors"),
    categories: Optional[list[str]] = typer.Option(None, "--category", "-c", help="Replaces all categories"),
    publishers: Optional[list[str]] = typer.Option(None, "--publisher", help="Replaces all publishers"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    stars: Optional[int] = typer.Option(None, "--stars", min=0, max=5),
    price: Optional[float] = typer.Option(None, "--price"),
    review: Optional[str] = typer.Option(None, "--review"),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    """Edit a book. Tag options replace the book's whole list."""
    from .library import Catalog

    fields = {
        "title": title,
        "number_of_pages": pages,
        "book_type": book_type,
        "authors": authors,
        "categories": categories,
        "publishers": publishers,
        "isbn": isbn,
        "year_published": year,
        "stars": stars,
        "price": price,
        "review": review,
        "notes": notes,
    }
    changes = {k: v for k, v in fields.items() if v is not None}
    if not changes:
        print_warning("Nothing to change.")
        raise typer.Exit(0)

    with handle_errors():
        book = Catalog(get_db()).update_book(book_id, BookUpdate(**changes))
    if not book:
        _not_found("Book", book_id)
    print_success(f"Updated: {book.title}")


@app.command()
def delete(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book with all its reading sessions."""
    from .covers import CoverCache
    from .library import Catalog

    config = get_config()
    db = get_db()
    book = db.get_book(book_id)
    if not book:
        _not_found("Book", book_id)

    if not yes and not typer.confirm(f"Delete '{book.title}' and its reading sessions?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    with handle_errors():
        Catalog(db).delete_book(book_id)
    CoverCache(config.covers_dir).delete(book.cover_path)
    print_success(f"Deleted: {book.title}")


@app.command("list")
def list_books(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match title or author"),
    status: Optional[list[ReadingStatus]] = typer.Option(None, "--status", help="Reading status (repeatable)"),
    book_types: Optional[list[str]] = typer.Option(None, "--type", help="Book type (repeatable)"),
    authors: Optional[list[str]] = typer.Option(None, "--author", "-a", help="Author (repeatable)"),
    categories: Optional[list[str]] = typer.Option(None, "--category", "-c", help="Category (repeatable)"),
    publishers: Optional[list[str]] = typer.Option(None, "--publisher", help="Publisher (repeatable)"),
    sort: str = typer.Option("title", "--sort", help="title, completion, yearPublished, dateAdded, stars or price"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
) -> None:
    """List books with search, filters and sorting."""
    from .library import LibraryFilter, LibraryQuery, SortOptions

    with handle_errors():
        filters = LibraryFilter(
            status=status or [],
            book_types=book_types or [],
            authors=authors or [],
            categories=categories or [],
            publishers=publishers or [],
        )
        books = LibraryQuery(get_db()).list_books(
            search=search, filters=filters, sort=SortOptions(key=sort, descending=desc)
        )

    if not books:
        print_info("No books found.")
        return

    console.print(format_book_table(books, title="Library"))


# ============================================================================
# Reading Log Commands
# ============================================================================


def _format_log_table(logs, title: str = "Reading Sessions", with_titles: bool = False) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    if with_titles:
        table.add_column("Book", style="cyan", max_width=35)
    table.add_column("Date")
    table.add_column("Pages", justify="right")
    table.add_column("Read", justify="right", style="green")
    table.add_column("Notes", max_width=30)
    for entry in logs:
        row = [str(entry.page_log_id)]
        if with_titles:
            row.append(entry.book_title)
        row.extend([
            entry.read_date.isoformat(),
            f"{entry.start_page}-{entry.end_page}",
            str(entry.total_page_read),
            entry.page_notes or "",
        ])
        table.add_row(*row)
    return table


@log_app.command("add")
def log_add(
    book_id: int = typer.Argument(..., help="Book ID"),
    start: str = typer.Argument(..., help="Start page"),
    end: str = typer.Argument(..., help="End page"),
    read_date: Optional[str] = typer.Option(None, "--date", "-d", help="Date read (YYYY-MM-DD, default today)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes about these pages"),
) -> None:
    """Log pages read for a book."""
    from .reading import ProgressTracker

    with handle_errors():
        entry = ProgressTracker(get_db()).create_log(book_id, start, end, read_date, notes)
    if not entry:
        _not_found("Book", book_id)
    print_success(
        f"Logged pages {entry.start_page}-{entry.end_page} "
        f"({entry.total_page_read} pages) on {entry.read_date.isoformat()}"
    )


@log_app.command("edit")
def log_edit(
    log_id: int = typer.Argument(..., help="Log ID"),
    start: str = typer.Argument(..., help="Start page"),
    end: str = typer.Argument(..., help="End page"),
    read_date: Optional[str] = typer.Option(None, "--date", "-d", help="New date (YYYY-MM-DD)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="New notes (empty to clear)"),
) -> None:
    """Edit a reading session."""
    from .reading import ProgressTracker

    with handle_errors():
        entry = ProgressTracker(get_db()).update_log(log_id, start, end, read_date, notes)
    if not entry:
        _not_found("Log", log_id)
    print_success(f"Updated log {log_id}: pages {entry.start_page}-{entry.end_page}")


@log_app.command("delete")
def log_delete(
    log_id: int = typer.Argument(..., help="Log ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a reading session."""
    from .reading import ProgressTracker

    tracker = ProgressTracker(get_db())
    entry = tracker.get_log(log_id)
    if not entry:
        _not_found("Log", log_id)
    if not yes and not typer.confirm(
        f"Delete pages {entry.start_page}-{entry.end_page} of '{entry.book_title}'?"
    ):
        print_info("Cancelled.")
        raise typer.Exit(0)

    with handle_errors():
        tracker.delete_log(log_id)
    print_success(f"Deleted log {log_id}")


@log_app.command("day")
def log_day(
    day: Optional[str] = typer.Argument(None, help="Date (YYYY-MM-DD, default today)"),
) -> None:
    """Show the reading sessions of one day."""
    from .reading import ProgressTracker

    with handle_errors():
        logs = ProgressTracker(get_db()).get_logs_for_date(day or date.today())
    if not logs:
        print_info("No reading sessions on that day.")
        return
    console.print(_format_log_table(logs, title=f"Sessions on {logs[0].read_date.isoformat()}", with_titles=True))
    console.print(f"[bold]Total:[/bold] {sum(e.total_page_read for e in logs)} pages")


@log_app.command("book")
def log_book(book_id: int = typer.Argument(..., help="Book ID")) -> None:
    """Show every reading session of a book."""
    from .reading import ProgressTracker

    db = get_db()
    book = db.get_book(book_id)
    if not book:
        _not_found("Book", book_id)
    logs = ProgressTracker(db).get_logs_for_book(book_id)
    if not logs:
        print_info(f"No reading sessions for '{book.title}'.")
        return
    console.print(_format_log_table(logs, title=book.title))


# ============================================================================
# Tag List Commands
# ============================================================================


@tags_app.command("list")
def tags_list(kind: TagKind = typer.Argument(..., help="author, category or publisher")) -> None:
    """List every tag of a kind with how many books use it."""
    from .tags import TagManager

    tags = TagManager(get_db()).list_tags(kind)
    if not tags:
        print_info(f"No {kind.value} entries yet.")
        return

    table = Table(title=f"{kind.value.title()} list", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Books", justify="right")
    for tag in tags:
        table.add_row(str(tag.id), tag.name, str(tag.book_count))
    console.print(table)


@tags_app.command("add")
def tags_add(
    kind: TagKind = typer.Argument(..., help="author, category or publisher"),
    names: list[str] = typer.Argument(..., help="Names to add"),
) -> None:
    """Add names to a tag list. Existing names are left alone."""
    from .tags import TagManager

    with handle_errors():
        result = TagManager(get_db()).apply_list_changes(kind, added=names)
    if result.created:
        print_success(f"Added {kind.value}: {', '.join(result.created)}")
    else:
        print_info("All names already exist.")


@tags_app.command("delete")
def tags_delete(
    kind: TagKind = typer.Argument(..., help="author, category or publisher"),
    names: list[str] = typer.Argument(..., help="Names to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete names from a tag list and from every book using them."""
    from .tags import TagManager

    if not yes and not typer.confirm(f"Remove {', '.join(names)} from every book?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    with handle_errors():
        result = TagManager(get_db()).apply_list_changes(kind, deleted=names)
    missing = [n for n in names if n.strip() not in result.deleted]
    if result.deleted:
        print_success(f"Deleted {kind.value}: {', '.join(result.deleted)}")
    if missing:
        print_warning(f"Not found: {', '.join(missing)}")


# ============================================================================
# Statistics Commands
# ============================================================================


def _totals_table(rows, title: str, label: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column(label, style="cyan")
    table.add_column("Pages", justify="right", style="green")
    table.add_column("", no_wrap=True)
    top = max((r.total_pages for r in rows), default=0)
    for r in rows:
        bar_len = int((r.total_pages / top) * 30) if top else 0
        table.add_row(r.name, str(r.total_pages), "█" * bar_len)
    return table


@stats_app.command("totals")
def stats_totals(
    dimension: TagKind = typer.Argument(..., help="author, category or publisher"),
    timeframe: str = typer.Option("allTime", "--timeframe", "-t", help="today, thisWeek, thisMonth, thisYear or allTime"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Max rows"),
) -> None:
    """Pages read per author, category or publisher."""
    from .stats import StatsAggregator

    with handle_errors():
        rows = StatsAggregator(get_db(), get_config()).dimension_totals(dimension, timeframe, limit)
    if not rows:
        print_info("No pages logged in this timeframe.")
        return
    console.print(_totals_table(rows, f"Pages by {dimension.value} ({timeframe})", dimension.value.title()))


@stats_app.command("drill")
def stats_drill(
    dimension: TagKind = typer.Argument(..., help="author, category or publisher"),
    name: str = typer.Argument(..., help="Name to drill into"),
    timeframe: str = typer.Option("allTime", "--timeframe", "-t", help="today, thisWeek, thisMonth, thisYear or allTime"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Max rows"),
) -> None:
    """Pages read per book within one author, category or publisher."""
    from .stats import StatsAggregator
    from .tags import TagManager

    db = get_db()
    with handle_errors():
        tag = TagManager(db).get_tag_by_name(dimension, name)
        if not tag:
            _not_found(dimension.value.title(), name)
        rows = StatsAggregator(db, get_config()).drill_down(dimension, tag.id, timeframe, limit)
    if not rows:
        print_info("No pages logged in this timeframe.")
        return
    console.print(_totals_table(rows, f"{tag.name} ({timeframe})", "Book"))


@stats_app.command("summary")
def stats_summary() -> None:
    """Library overview, today's reading and books in progress."""
    from .library import LibraryQuery
    from .stats import StatsAggregator

    db = get_db()
    summary = StatsAggregator(db, get_config()).reading_summary()

    table = Table(title="Reading Overview", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Total books", str(summary.total_books))
    table.add_row("Currently reading", str(summary.books_reading))
    table.add_row("Pages today", str(summary.pages_today))
    table.add_row("Pages this week", str(summary.pages_this_week))
    table.add_row("Streak", f"{summary.streak} days")
    console.print(table)

    in_progress = LibraryQuery(db).books_in_progress()
    if in_progress:
        console.print(format_book_table(in_progress, title="Continue Reading"))


@stats_app.command("streak")
def stats_streak() -> None:
    """Show the current reading streak."""
    from .stats import StatsAggregator

    streak = StatsAggregator(get_db(), get_config()).reading_streak()
    if streak:
        console.print(f"[bold green]{streak}[/bold green] day streak")
    else:
        print_info("No current streak. Log some pages to start one.")


# ============================================================================
# Backup and Cover Commands
# ============================================================================


@backup_app.command("export")
def backup_export(
    dest: Path = typer.Argument(..., help="Backup file, or directory for a timestamped copy"),
) -> None:
    """Copy the database to a backup file."""
    from .backup import BackupManager

    result = BackupManager(get_db()).export_backup(dest)
    if not result.success:
        print_error(result.error)
        raise typer.Exit(1)
    print_success(f"Database backed up to: {result.backup_path} ({result.size_human})")


@backup_app.command("import")
def backup_import(
    src: Path = typer.Argument(..., help="Backup file to restore"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Replace the database with a backup file."""
    from .backup import BackupManager

    if not yes and not typer.confirm("This replaces all current data. Continue?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    result = BackupManager(get_db()).import_backup(src)
    if not result.success:
        print_error(result.error)
        raise typer.Exit(1)
    reset_db()
    print_success(f"Database restored from: {src}")


@covers_app.command("recache")
def covers_recache() -> None:
    """Download every remote cover again and update the cached files."""
    from .covers import CoverCache

    config = get_config()
    cache = CoverCache(config.covers_dir, timeout=config.http_timeout)
    with handle_errors():
        result = cache.recache_covers(get_db())
    print_success(f"Re-cached {result.updated_count} covers")
    if result.error_count:
        print_warning(f"{result.error_count} covers could not be downloaded")


# ============================================================================
# Utility Commands
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"ribbon version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()
