"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ribbon.config import DEFAULT_HOME, Config

ENV_VARS = (
    "RIBBON_DB_PATH",
    "RIBBON_COVERS_DIR",
    "RIBBON_LOG_LEVEL",
    "RIBBON_HTTP_TIMEOUT",
    "RIBBON_STATS_TOP_N",
    "RIBBON_STREAK_MAX_DAYS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove ribbon variables so defaults apply."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromEnv:
    """Tests for Config.from_env."""

    def test_defaults(self):
        """Test defaults when nothing is set."""
        config = Config.from_env()

        assert config.db_path == DEFAULT_HOME / "ribbon.db"
        assert config.covers_dir == DEFAULT_HOME / "covers"
        assert config.log_level == "WARNING"
        assert config.http_timeout == 10
        assert config.stats_top_n == 10
        assert config.streak_max_days == 365

    def test_overrides(self, monkeypatch, tmp_path: Path):
        """Test environment variables override defaults."""
        monkeypatch.setenv("RIBBON_DB_PATH", str(tmp_path / "lib.db"))
        monkeypatch.setenv("RIBBON_COVERS_DIR", str(tmp_path / "img"))
        monkeypatch.setenv("RIBBON_LOG_LEVEL", "debug")
        monkeypatch.setenv("RIBBON_HTTP_TIMEOUT", "3")
        monkeypatch.setenv("RIBBON_STATS_TOP_N", "5")
        monkeypatch.setenv("RIBBON_STREAK_MAX_DAYS", "30")

        config = Config.from_env()

        assert config.db_path == tmp_path / "lib.db"
        assert config.covers_dir == tmp_path / "img"
        assert config.log_level == "DEBUG"
        assert config.http_timeout == 3
        assert config.stats_top_n == 5
        assert config.streak_max_days == 30


class TestValidate:
    """Tests for Config.validate."""

    def _config(self, tmp_path: Path, **overrides) -> Config:
        values = dict(
            db_path=tmp_path / "data" / "ribbon.db",
            covers_dir=tmp_path / "covers",
            log_level="INFO",
            http_timeout=10,
            stats_top_n=10,
            streak_max_days=365,
        )
        values.update(overrides)
        return Config(**values)

    def test_valid_creates_directory(self, tmp_path: Path):
        """Test a valid config has no problems and gets its directory."""
        config = self._config(tmp_path)

        assert config.validate() == []
        assert (tmp_path / "data").is_dir()

    def test_non_positive_numbers(self, tmp_path: Path):
        """Test each numeric setting must be positive."""
        config = self._config(tmp_path, http_timeout=0, stats_top_n=-1, streak_max_days=0)

        problems = config.validate()

        assert len(problems) == 3
        assert any("RIBBON_STATS_TOP_N" in p for p in problems)
