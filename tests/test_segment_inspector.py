"""
Segment Inspector Test Suite

Open-error classification, offending path extraction and the all-zero
table check.

Author: StoreFix Project
License: GNU GPL v3
"""

import tempfile
import unittest
from pathlib import Path

from storefix.engine.base import ChecksumMismatchError
from storefix.errors import FilesystemError
from storefix.models import OutcomeKind
from storefix.utils.segment_inspector import (
    SCAN_CHUNK_SIZE,
    classify_open_error,
    extract_offending_path,
    is_all_zeros,
    is_checksum_error,
)


class TestPathExtraction(unittest.TestCase):

    def test_takes_trimmed_text_after_last_colon(self):
        self.assertEqual(
            extract_offending_path("checksum mismatch: /data/000012.sst"),
            "/data/000012.sst",
        )

    def test_multiple_colons(self):
        message = "while opening tables: checksum mismatch:   /data/000013.sst  \n"
        self.assertEqual(extract_offending_path(message), "/data/000013.sst")

    def test_message_without_colon(self):
        self.assertEqual(extract_offending_path("  checksum  "), "checksum")

    def test_accepts_exception(self):
        err = IOError("failed to initialize table: checksum mismatch: /data/x.sst")
        self.assertEqual(extract_offending_path(err), "/data/x.sst")

    def test_structured_path_preferred(self):
        err = ChecksumMismatchError("/data/odd:name.sst")
        self.assertEqual(extract_offending_path(err), "/data/odd:name.sst")

    def test_empty_structured_path_falls_back(self):
        err = ChecksumMismatchError("")
        err.args = ("checksum mismatch: /data/y.sst",)
        self.assertEqual(extract_offending_path(err), "/data/y.sst")


class TestClassification(unittest.TestCase):

    def test_marker_detection(self):
        self.assertTrue(is_checksum_error("checksum mismatch: /x"))
        self.assertFalse(is_checksum_error("Checksum mismatch: /x"))
        self.assertFalse(is_checksum_error(IOError("file does not exist")))

    def test_non_checksum_error_is_fatal(self):
        err = IOError("manifest has unsupported version: 9")
        outcome = classify_open_error(err)
        self.assertEqual(outcome.kind, OutcomeKind.FATAL)
        self.assertIs(outcome.error, err)
        self.assertIsNone(outcome.offending_path)

    def test_checksum_error_is_corrupted(self):
        err = RuntimeError("checksum mismatch: /data/000012.sst")
        outcome = classify_open_error(err)
        self.assertEqual(outcome.kind, OutcomeKind.CORRUPTED)
        self.assertEqual(outcome.offending_path, "/data/000012.sst")
        self.assertIs(outcome.error, err)


class TestAllZeros(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)

    def write(self, name, data):
        path = self.root / name
        path.write_bytes(data)
        return str(path)

    def test_empty_file(self):
        self.assertTrue(is_all_zeros(self.write("empty.sst", b"")))

    def test_zero_file_spanning_chunks(self):
        self.assertTrue(is_all_zeros(self.write("z.sst", b"\x00" * (SCAN_CHUNK_SIZE * 5 + 3))))

    def test_non_zero_in_last_chunk(self):
        data = b"\x00" * (SCAN_CHUNK_SIZE * 3) + b"\x00\x00\x07"
        self.assertFalse(is_all_zeros(self.write("nz.sst", data)))

    def test_non_zero_first_byte(self):
        self.assertFalse(is_all_zeros(self.write("nz.sst", b"\x01" + b"\x00" * 10)))

    def test_missing_file(self):
        missing = str(self.root / "000099.sst")
        with self.assertRaises(FilesystemError) as ctx:
            is_all_zeros(missing)
        self.assertIn("unable to open table file", str(ctx.exception))
        self.assertIn(missing, str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
