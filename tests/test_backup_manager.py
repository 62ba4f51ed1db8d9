"""
Backup Manager and Integrity Checker Test Suite

Author: StoreFix Project
License: GNU GPL v3
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from storefix.errors import FilesystemError
from storefix.utils.backup_manager import BackupManager, default_backup_path
from storefix.utils.cloner import clone_directory
from storefix.utils.integrity_checker import IntegrityChecker, IntegrityCheckResult


class BackupTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.store = self.root / "store"
        (self.store / "sub").mkdir(parents=True)
        (self.store / "MANIFEST").write_bytes(b"manifest")
        (self.store / "sub" / "000001.sst").write_bytes(b"table-one")
        os.symlink("sub/000001.sst", self.store / "link")


class TestDefaultBackupPath(unittest.TestCase):

    def test_suffix_and_unix_timestamp(self):
        self.assertEqual(
            default_backup_path("/var/lib/store", 1700000000.9),
            Path("/var/lib/store_corrupted_backup_1700000000"),
        )

    def test_trailing_separator_ignored(self):
        self.assertEqual(
            default_backup_path("/var/lib/store/", 42),
            Path("/var/lib/store_corrupted_backup_42"),
        )


class TestIntegrityChecker(BackupTestCase):

    def setUp(self):
        super().setUp()
        self.backup = self.root / "backup"
        clone_directory(self.store, self.backup)
        self.checker = IntegrityChecker()

    def test_exact_clone_passes(self):
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertTrue(result.passed, str(result))
        self.assertIn("Checked 4 entries", result.info)

    def test_extra_backup_entries_allowed(self):
        (self.backup / "extra").write_bytes(b"")
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertTrue(result.passed)
        self.assertTrue(any("only in backup" in msg for msg in result.info))

    def test_missing_entry(self):
        (self.backup / "MANIFEST").unlink()
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertFalse(result.passed)
        self.assertIn("Missing in backup: MANIFEST", result.errors)

    def test_mode_mismatch(self):
        os.chmod(self.backup / "MANIFEST", 0o600)
        os.chmod(self.store / "MANIFEST", 0o644)
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertFalse(result.passed)
        self.assertTrue(any("Mode mismatch for MANIFEST" in e for e in result.errors))

    def test_content_mismatch_same_size(self):
        (self.backup / "sub" / "000001.sst").write_bytes(b"table-two")
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertFalse(result.passed)
        self.assertTrue(any("Content mismatch" in e for e in result.errors))

    def test_content_check_can_be_disabled(self):
        (self.backup / "sub" / "000001.sst").write_bytes(b"table-two")
        result = IntegrityChecker(compare_content=False).verify_backup(self.store, self.backup)
        self.assertTrue(result.passed)

    def test_symlink_target_mismatch(self):
        (self.backup / "link").unlink()
        os.symlink("elsewhere", self.backup / "link")
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertFalse(result.passed)
        self.assertTrue(any("Symlink target mismatch" in e for e in result.errors))

    def test_type_mismatch(self):
        (self.backup / "link").unlink()
        (self.backup / "link").write_bytes(b"table-one")
        result = self.checker.verify_backup(self.store, self.backup)
        self.assertFalse(result.passed)
        self.assertTrue(any("Type mismatch for link" in e for e in result.errors))

    def test_missing_backup_dir(self):
        result = self.checker.verify_backup(self.store, self.root / "nope")
        self.assertFalse(result.passed)

    def test_report_rendering(self):
        result = IntegrityCheckResult("Backup: x")
        for i in range(7):
            result.add_error(f"problem {i}")
        text = str(result)
        self.assertTrue(text.startswith("FAIL - Backup: x"))
        self.assertIn("... and 2 more errors", text)


class TestBackupManager(BackupTestCase):

    def test_generated_destination(self):
        manager = BackupManager(clock=lambda: 1234.5)
        path = manager.create_backup(str(self.store))
        self.assertEqual(path, Path(f"{self.store}_corrupted_backup_1234"))
        self.assertEqual((path / "sub" / "000001.sst").read_bytes(), b"table-one")

    def test_explicit_destination(self):
        target = self.root / "a" / "b"
        path = BackupManager().create_backup(str(self.store), str(target))
        self.assertEqual(path, target)
        self.assertTrue(os.path.islink(target / "link"))

    def test_verification_failure_raises(self):
        with patch('storefix.utils.backup_manager.clone_directory'):
            with self.assertRaises(FilesystemError) as ctx:
                BackupManager().create_backup(str(self.store), str(self.root / "b"))
        self.assertIn("backup verification failed", str(ctx.exception))

    def test_destination_inside_store_rejected(self):
        with self.assertRaises(FilesystemError):
            BackupManager().create_backup(str(self.store), str(self.store / "sub" / "bk"))
        self.assertFalse((self.store / "sub" / "bk").exists())

    def test_destination_equal_to_store_rejected(self):
        with self.assertRaises(FilesystemError):
            BackupManager().create_backup(str(self.store), str(self.store))


if __name__ == '__main__':
    unittest.main()
