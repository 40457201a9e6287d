"""Database backup and restore.

The whole store is one SQLite file. Export copies it; import validates a
candidate file and swaps it in, restoring the previous file on failure.
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from ..db.sqlite import Database

logger = logging.getLogger(__name__)

SQLITE_HEADER = b"SQLite format 3\x00"
REQUIRED_TABLE = "books"


@dataclass
class BackupResult:
    """Result of a backup or restore operation."""

    success: bool
    backup_path: Optional[Path] = None
    error: Optional[str] = None
    size_bytes: int = 0

    @property
    def size_human(self) -> str:
        """Get human-readable size."""
        if self.size_bytes < 1024:
            return f"{self.size_bytes} B"
        elif self.size_bytes < 1024 * 1024:
            return f"{self.size_bytes / 1024:.1f} KB"
        else:
            return f"{self.size_bytes / (1024 * 1024):.1f} MB"


def validate_backup_file(path: Union[str, Path]) -> Optional[str]:
    """Check that a file is a SQLite database holding a books table.

    Returns:
        A description of the problem, or None if the file is usable
    """
    path = Path(path)
    if not path.is_file():
        return f"File not found: {path}"
    with open(path, "rb") as f:
        if f.read(len(SQLITE_HEADER)) != SQLITE_HEADER:
            return f"Not a SQLite database: {path}"

    engine = create_engine(f"sqlite:///{path}")
    try:
        if not inspect(engine).has_table(REQUIRED_TABLE):
            return f"Database has no {REQUIRED_TABLE} table: {path}"
    except SQLAlchemyError as e:
        return f"Cannot read database {path}: {e}"
    finally:
        engine.dispose()
    return None


class BackupManager:
    """Manages database backups."""

    BACKUP_PREFIX = "ribbon"
    BACKUP_EXTENSION = ".db"

    def __init__(self, db: Database):
        """Initialize backup manager.

        Args:
            db: Database instance
        """
        self.db = db

    def _backup_name(self) -> str:
        stamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
        return f"{self.BACKUP_PREFIX}-{stamp}{self.BACKUP_EXTENSION}"

    def export_backup(self, dest: Union[str, Path]) -> BackupResult:
        """Copy the database file.

        Args:
            dest: Target file, or a directory to place a timestamped copy in

        Returns:
            BackupResult with status and details
        """
        if self.db.is_memory:
            return BackupResult(success=False, error="In-memory database cannot be exported")
        if not self.db.db_path.is_file():
            return BackupResult(success=False, error=f"Database not found: {self.db.db_path}")

        dest = Path(dest)
        final_path = dest / self._backup_name() if dest.is_dir() else dest
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
            # Pooled connections are closed so the copy sees every commit
            self.db.dispose()
            shutil.copy2(self.db.db_path, final_path)
        except OSError as e:
            logger.exception("Backup export failed")
            return BackupResult(success=False, error=str(e))

        logger.info("Exported database to %s", final_path)
        return BackupResult(
            success=True,
            backup_path=final_path,
            size_bytes=final_path.stat().st_size,
        )

    def import_backup(self, src: Union[str, Path]) -> BackupResult:
        """Replace the database with a backup file.

        The current file is kept aside until the copy succeeds and is put
        back if it fails.

        Args:
            src: Backup file to import

        Returns:
            BackupResult with status and details
        """
        if self.db.is_memory:
            return BackupResult(success=False, error="In-memory database cannot be replaced")

        src = Path(src)
        problem = validate_backup_file(src)
        if problem:
            return BackupResult(success=False, error=problem)

        db_path = self.db.db_path
        saved = db_path.with_name(db_path.name + ".backup")
        had_original = db_path.is_file()

        self.db.dispose()
        try:
            if had_original:
                shutil.copy2(db_path, saved)
            shutil.copyfile(src, db_path)
        except OSError as e:
            logger.exception("Backup import failed")
            if had_original and saved.is_file():
                shutil.copy2(saved, db_path)
            return BackupResult(success=False, error=str(e))
        finally:
            if saved.is_file():
                saved.unlink()

        logger.info("Imported database from %s", src)
        return BackupResult(
            success=True,
            backup_path=db_path,
            size_bytes=db_path.stat().st_size,
        )
