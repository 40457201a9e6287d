"""Backup and restore functionality."""

from .backup import BackupManager, BackupResult, validate_backup_file

__all__ = [
    "BackupManager",
    "BackupResult",
    "validate_backup_file",
]
