"""Configuration management for ribbon.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_HOME = Path.home() / ".ribbon"


@dataclass
class Config:
    """Application configuration."""

    # Storage
    db_path: Path
    covers_dir: Path

    # Logging
    log_level: str

    # Metadata lookup
    http_timeout: int  # seconds

    # Statistics
    stats_top_n: int
    streak_max_days: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = Path(
            os.environ.get("RIBBON_DB_PATH", str(DEFAULT_HOME / "ribbon.db"))
        ).expanduser()
        covers_dir = Path(
            os.environ.get("RIBBON_COVERS_DIR", str(DEFAULT_HOME / "covers"))
        ).expanduser()

        return cls(
            db_path=db_path,
            covers_dir=covers_dir,
            log_level=os.environ.get("RIBBON_LOG_LEVEL", "WARNING").upper(),
            http_timeout=int(os.environ.get("RIBBON_HTTP_TIMEOUT", "10")),
            stats_top_n=int(os.environ.get("RIBBON_STATS_TOP_N", "10")),
            streak_max_days=int(os.environ.get("RIBBON_STREAK_MAX_DAYS", "365")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.http_timeout <= 0:
            errors.append("RIBBON_HTTP_TIMEOUT must be positive")
        if self.stats_top_n <= 0:
            errors.append("RIBBON_STATS_TOP_N must be positive")
        if self.streak_max_days <= 0:
            errors.append("RIBBON_STREAK_MAX_DAYS must be positive")

        return errors
