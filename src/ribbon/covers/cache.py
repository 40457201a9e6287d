"""Local cover image cache.

Books store a remote ``cover_url`` and, once cached, a local ``cover_path``.
Cover files live in one directory; the database only holds their paths.
"""

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import requests
from sqlalchemy import select

from ..db.models import Book
from ..db.sqlite import Database

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_FORMATS = ("jpg", "jpeg", "png", "webp")


@dataclass
class RecacheResult:
    """Result of re-downloading remote covers."""

    updated_count: int = 0
    error_count: int = 0

    @property
    def success(self) -> bool:
        return self.error_count == 0


def _extension_from_url(url: str) -> str:
    """File extension of a URL's last path segment, ``jpg`` when absent."""
    name = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    if "." in name:
        ext = name.rsplit(".", 1)[-1].lower()
        if ext in ALLOWED_FORMATS:
            return ext
    return "jpg"


class CoverCache:
    """Stores cover images under a covers directory."""

    def __init__(
        self,
        covers_dir: Union[str, Path],
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the cover cache.

        Args:
            covers_dir: Directory holding cached covers
            timeout: Download timeout in seconds
            session: HTTP session to download with
        """
        self.covers_dir = Path(covers_dir)
        self.timeout = timeout
        self._session = session or requests.Session()

    def _ensure_directory(self) -> None:
        self.covers_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _timestamp() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def resolve_cover_uri(local_path: Optional[str], remote_url: Optional[str]) -> Optional[str]:
        """Pick the image to show: the cached file when it exists, else the URL."""
        if local_path and Path(local_path).is_file():
            return local_path
        return remote_url or None

    def validate_image(self, path: Union[str, Path]) -> bool:
        """Check that a file exists, is not too large and has an image extension."""
        path = Path(path)
        if not path.is_file():
            logger.warning("Cover image not found: %s", path)
            return False
        if path.stat().st_size > MAX_FILE_SIZE:
            logger.warning("Cover image larger than 10MB: %s", path)
            return False
        ext = path.suffix.lstrip(".").lower()
        if ext and ext not in ALLOWED_FORMATS:
            logger.warning("Unsupported cover image format %r: %s", ext, path)
            return False
        return True

    def persist_local(
        self, source_path: Union[str, Path], book_id: Optional[int] = None
    ) -> Optional[str]:
        """Copy a local image into the cache.

        Returns:
            Path of the cached copy, or None if the image is not acceptable
        """
        source = Path(source_path)
        if not self.validate_image(source):
            return None
        self._ensure_directory()
        ext = source.suffix.lstrip(".").lower() or "jpg"
        owner = book_id if book_id is not None else "temp"
        destination = self.covers_dir / f"book_{owner}_{self._timestamp()}.{ext}"
        shutil.copyfile(source, destination)
        logger.info("Cover saved to %s", destination)
        return str(destination)

    def persist_remote(self, remote_url: str, book_id: Optional[int] = None) -> Optional[str]:
        """Download a remote image into the cache.

        Returns:
            Path of the cached file, or None if the download failed
        """
        self._ensure_directory()
        owner = book_id if book_id is not None else "temp"
        destination = (
            self.covers_dir
            / f"cached_book_{owner}_{self._timestamp()}.{_extension_from_url(remote_url)}"
        )
        if not self._download(remote_url, destination):
            return None
        return str(destination)

    def delete(self, local_path: Optional[str]) -> bool:
        """Remove a cached cover file.

        Only files inside the covers directory are removed.

        Returns:
            True if a file was removed
        """
        if not local_path:
            return False
        path = Path(local_path)
        try:
            path.resolve().relative_to(self.covers_dir.resolve())
        except ValueError:
            logger.warning("Refusing to delete cover outside %s: %s", self.covers_dir, path)
            return False
        if not path.is_file():
            return False
        path.unlink()
        return True

    def _download(self, url: str, destination: Path) -> bool:
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Cover download failed for %s: %s", url, e)
            return False
        destination.write_bytes(response.content)
        return True

    def recache_covers(self, db: Database) -> RecacheResult:
        """Re-download every remote cover and point the books at the new files.

        Args:
            db: Database whose books are re-cached

        Returns:
            Counts of updated and failed books
        """
        result = RecacheResult()
        with db.get_session() as s:
            rows = s.execute(
                select(Book.book_id, Book.title, Book.cover_url).where(
                    Book.cover_url.is_not(None), Book.cover_url.like("http%")
                )
            ).all()
        if not rows:
            return result

        self._ensure_directory()
        for book_id, title, cover_url in rows:
            with db.get_session() as s:
                book = s.get(Book, book_id)
                if book is None:
                    logger.warning("Book %d was deleted before its cover was refreshed", book_id)
                    continue
                book.cover_path = None

            destination = self.covers_dir / f"cover_{book_id}.{_extension_from_url(cover_url)}"
            if destination.exists():
                destination.unlink()

            if self._download(cover_url, destination):
                with db.get_session() as s:
                    book = s.get(Book, book_id)
                    if book is None:
                        destination.unlink()
                        continue
                    book.cover_path = str(destination)
                result.updated_count += 1
            else:
                logger.warning("Could not cache cover for %r", title)
                result.error_count += 1

        return result
