"""
StoreFix Backup Manager

Snapshots a store directory before any destructive repair.

Provides:
- Timestamped backup naming ({store_dir}_corrupted_backup_{unix_ts})
- Full attribute-preserving clone via clone_directory()
- Post-clone verification via IntegrityChecker

A backup is only returned once it has been verified. Any failure
raises FilesystemError so the caller never reaches the repair step.

Author: StoreFix Project
License: GNU GPL v3
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from .cloner import clone_directory, create_if_not_exists
from .integrity_checker import IntegrityChecker
from ..errors import FilesystemError


BACKUP_SUFFIX = "_corrupted_backup"


def default_backup_path(store_dir: str, timestamp: float) -> Path:
    """
    Generate backup location next to the store.

    Args:
        store_dir: Store directory (trailing separators ignored)
        timestamp: Unix time, truncated to whole seconds

    Example:
        >>> default_backup_path('/var/lib/store/', 1700000000.5)
        PosixPath('/var/lib/store_corrupted_backup_1700000000')
    """
    base = str(store_dir).rstrip(os.sep) or os.sep
    return Path(f"{base}{BACKUP_SUFFIX}_{int(timestamp)}")


class BackupManager:
    """
    Creates verified backups of a store directory.

    Features:
    - Explicit or generated destination
    - Refuses destinations inside the store (would recurse into itself)
    - Merges into an existing destination
    - Verifies structure, ownership, modes and content after copying
    """

    def __init__(self, verify_content: bool = True, clock: Callable[[], float] = time.time):
        """
        Initialize backup manager.

        Args:
            verify_content: Hash file content during verification (default: True)
            clock: Source of Unix time for generated names
        """
        self.checker = IntegrityChecker(compare_content=verify_content)
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def resolve_destination(self, store_dir: str, backup_dir: Optional[str] = None) -> Path:
        """Return backup_dir if given, otherwise a generated timestamped path."""
        if backup_dir:
            return Path(backup_dir)
        return default_backup_path(store_dir, self.clock())

    def create_backup(self, store_dir: str, backup_dir: Optional[str] = None) -> Path:
        """
        Clone store_dir into the backup destination and verify it.

        Args:
            store_dir: Store directory to snapshot
            backup_dir: Explicit destination (None = generated)

        Returns:
            Path to the verified backup

        Raises:
            FilesystemError: On any copy or verification failure
        """
        source = Path(store_dir)
        destination = self.resolve_destination(store_dir, backup_dir)

        source_abs = source.resolve()
        dest_abs = destination.resolve()
        if dest_abs == source_abs or source_abs in dest_abs.parents:
            raise FilesystemError("backup directory must be outside the store:", destination)

        self.logger.info(f"Creating backup from {source} to {destination}")

        try:
            create_if_not_exists(destination, 0o755)
        except FilesystemError as e:
            raise FilesystemError("unable to create backup dir", destination, e.cause) from e

        clone_directory(source, destination)

        result = self.checker.verify_backup(source, destination)
        if not result.passed:
            self.logger.error(str(result))
            summary = "; ".join(result.errors[:3])
            raise FilesystemError("backup verification failed for", destination, summary)

        return destination
