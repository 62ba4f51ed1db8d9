"""
StoreFix Segment Inspector

Classifies store open errors and inspects the table they implicate.

Classification:
- Error text without the "checksum" marker -> fatal (unsupported)
- Error text with the marker -> corrupted, offending path extracted

Path extraction prefers a structured ``path`` attribute on the error
(see engine.ChecksumMismatchError). Otherwise it falls back to taking
the text after the last ':' in the message, e.g.

    "checksum mismatch: /data/000012.sst" -> "/data/000012.sst"

The fallback depends on how the engine formats its errors. A path that
itself contains ':' cannot be recovered this way.

Author: StoreFix Project
License: GNU GPL v3
"""

import logging
import os
from typing import Union

from ..errors import FilesystemError
from ..models import OpenOutcome


logger = logging.getLogger(__name__)

CHECKSUM_MARKER = "checksum"
SCAN_CHUNK_SIZE = 1024


def is_checksum_error(error: Union[BaseException, str]) -> bool:
    """Return True if the error text carries the checksum corruption marker."""
    return CHECKSUM_MARKER in str(error)


def extract_offending_path(error: Union[BaseException, str]) -> str:
    """
    Get the path of the table that failed its checksum.

    Args:
        error: Engine exception or its message

    Returns:
        Path string (may be empty if the message ends with ':')
    """
    structured = getattr(error, 'path', None)
    if isinstance(structured, (str, os.PathLike)) and str(structured):
        return str(structured)

    return str(error).split(':')[-1].strip()


def classify_open_error(error: BaseException) -> OpenOutcome:
    """
    Classify an exception raised by StorageEngine.open().

    Returns:
        OpenOutcome.corrupted(path, error) or OpenOutcome.fatal(error)
    """
    if not is_checksum_error(error):
        logger.debug(f"Open error is not a checksum failure: {error}")
        return OpenOutcome.fatal(error)

    path = extract_offending_path(error)
    logger.debug(f"Checksum failure implicates table: {path}")
    return OpenOutcome.corrupted(path, error)


def is_all_zeros(path: str, chunk_size: int = SCAN_CHUNK_SIZE) -> bool:
    """
    Check whether every byte of a file is zero.

    Reads in fixed-size chunks and stops at the first non-zero byte.
    An empty file counts as all zeros.

    Raises:
        FilesystemError: If the file cannot be opened, statted or read
    """
    try:
        f = open(path, 'rb')
    except OSError as e:
        raise FilesystemError("unable to open table file", path, e) from e

    with f:
        try:
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            raise FilesystemError("unable to stat table file", path, e) from e

        logger.debug(f"Scanning {path} ({size:,} bytes) for non-zero content")

        try:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    return True
                if chunk.count(0) != len(chunk):
                    return False
        except OSError as e:
            raise FilesystemError("unable to read table file", path, e) from e
