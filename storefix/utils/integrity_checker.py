"""
StoreFix Integrity Checker

Verifies that a backup is an exact clone of the store it was taken from.

Checks, for every entry under the source:
- Entry exists in the backup with the same type
- Regular files have the same size (and SHA-256 when content checks are on)
- Non-symlink entries have the same permission bits
- All entries have the same uid/gid
- Symlinks point at the same target

Extra entries present only in the backup are allowed (merge into an
existing directory) and reported as info.

Author: StoreFix Project
License: GNU GPL v3
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Iterator, Tuple

from ..models import EntryType, FileAttributes


HASH_CHUNK_SIZE = 1024 * 1024


class IntegrityCheckResult:
    """Result of an integrity check operation."""

    def __init__(self, check_name: str):
        self.check_name = check_name
        self.passed = True
        self.errors = []
        self.warnings = []
        self.info = []

    def add_error(self, message: str):
        """Add an error (integrity violation)."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str):
        """Add a warning (potential issue)."""
        self.warnings.append(message)

    def add_info(self, message: str):
        """Add informational message."""
        self.info.append(message)

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"{status} - {self.check_name}"]

        if self.errors:
            lines.append(f"  Errors ({len(self.errors)}):")
            for err in self.errors[:5]:
                lines.append(f"    • {err}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more errors")

        if self.warnings:
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings[:3]:
                lines.append(f"    WARNING: {warn}")
            if len(self.warnings) > 3:
                lines.append(f"    ... and {len(self.warnings) - 3} more warnings")

        for info_msg in self.info:
            lines.append(f"  ℹ {info_msg}")

        return '\n'.join(lines)


def _walk(root: Path, relative: Path = Path('.')) -> Iterator[Tuple[Path, FileAttributes]]:
    """Yield (relative_path, attributes) for every entry below root, pre-order."""
    current = root / relative
    for name in sorted(os.listdir(current)):
        rel = relative / name
        attrs = FileAttributes.from_path(root / rel)
        yield rel, attrs
        if attrs.type == EntryType.DIRECTORY:
            yield from _walk(root, rel)


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest()


class IntegrityChecker:
    """
    Compares a backup tree against its source.

    Usage:
        checker = IntegrityChecker(compare_content=True)
        result = checker.verify_backup(store_dir, backup_dir)
        if not result.passed:
            print(result)
    """

    def __init__(self, compare_content: bool = True):
        """
        Args:
            compare_content: Hash regular files on both sides (default: True)
        """
        self.compare_content = compare_content
        self.logger = logging.getLogger(__name__)

    def verify_backup(self, source, backup) -> IntegrityCheckResult:
        """
        Verify backup is a structural clone of source.

        Args:
            source: Original directory
            backup: Backup directory produced by clone_directory()

        Returns:
            IntegrityCheckResult with findings
        """
        source = Path(source)
        backup = Path(backup)
        result = IntegrityCheckResult(f"Backup: {backup}")

        if not backup.is_dir():
            result.add_error(f"Backup directory does not exist: {backup}")
            return result

        checked = 0
        seen = set()
        try:
            for rel, src_attrs in _walk(source):
                seen.add(rel)
                checked += 1
                self._compare_entry(source / rel, backup / rel, rel, src_attrs, result)
        except OSError as e:
            result.add_error(f"Unable to walk source {source}: {e}")
            return result

        try:
            extra = sum(1 for rel, _ in _walk(backup) if rel not in seen)
        except OSError as e:
            result.add_warning(f"Unable to walk backup {backup}: {e}")
            extra = 0

        result.add_info(f"Checked {checked} entries")
        if extra:
            result.add_info(f"{extra} entries exist only in backup (merged)")

        if result.passed:
            self.logger.info(f"Backup verified: {checked} entries match in {backup}")
        else:
            self.logger.error(f"Backup verification failed with {len(result.errors)} errors")

        return result

    def _compare_entry(self, src: Path, dst: Path, rel: Path,
                       src_attrs: FileAttributes, result: IntegrityCheckResult):
        if not os.path.lexists(dst):
            result.add_error(f"Missing in backup: {rel}")
            return

        try:
            dst_attrs = FileAttributes.from_path(dst)
        except OSError as e:
            result.add_error(f"Unable to stat backup entry {rel}: {e}")
            return

        if dst_attrs.type != src_attrs.type:
            result.add_error(
                f"Type mismatch for {rel}: {src_attrs.type.value} != {dst_attrs.type.value}"
            )
            return

        if (dst_attrs.uid, dst_attrs.gid) != (src_attrs.uid, src_attrs.gid):
            result.add_error(
                f"Ownership mismatch for {rel}: "
                f"{src_attrs.uid}:{src_attrs.gid} != {dst_attrs.uid}:{dst_attrs.gid}"
            )

        if src_attrs.type == EntryType.SYMLINK:
            if dst_attrs.symlink_target != src_attrs.symlink_target:
                result.add_error(
                    f"Symlink target mismatch for {rel}: "
                    f"{src_attrs.symlink_target} != {dst_attrs.symlink_target}"
                )
            return

        if dst_attrs.mode != src_attrs.mode:
            result.add_error(
                f"Mode mismatch for {rel}: {oct(src_attrs.mode)} != {oct(dst_attrs.mode)}"
            )

        if src_attrs.type == EntryType.REGULAR:
            if dst_attrs.size != src_attrs.size:
                result.add_error(
                    f"Size mismatch for {rel}: {src_attrs.size} != {dst_attrs.size}"
                )
            elif self.compare_content:
                try:
                    if _sha256(src) != _sha256(dst):
                        result.add_error(f"Content mismatch for {rel}")
                except OSError as e:
                    result.add_error(f"Unable to hash {rel}: {e}")
