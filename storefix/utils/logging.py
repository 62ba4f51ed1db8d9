"""
StoreFix Logging Configuration

Centralized logging setup for the application.

Configures:
- Console output to stdout (status messages are read from here)
- Optional file logging with rotation and gzip compression
- Log level management (INFO/DEBUG)
- Per-entry cloner output silenced outside DEBUG

Author: StoreFix Project
License: GNU GPL v3
"""

import logging
import logging.handlers
import sys
import os
import gzip
import shutil
from pathlib import Path
from typing import Optional


def _gzip_rotator(source, dest):
    """
    Compress the rotated log file with gzip and remove the original.

    Args:
        source: Source log file path
        dest: Destination path for rotated log
    """
    with open(source, 'rb') as f_in:
        with gzip.open(f'{dest}.gz', 'wb') as f_out:
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def setup_logging(level=logging.INFO, log_file: Optional[str] = None,
                  max_bytes: int = 10485760, backup_count: int = 5):
    """
    Configure application-wide logging.

    Sets up:
    - Console handler: stdout
    - Rotating file handler (only when log_file is given), with gzip
      compression of rotated files

    Args:
        level: Logging level (logging.INFO, logging.DEBUG, etc.)
        log_file: Log file path, None for console only
        max_bytes: Rotate after this many bytes (default: 10MB)
        backup_count: Rotated files to keep (default: 5)

    Example:
        >>> setup_logging(level=logging.DEBUG)  # Verbose mode
        >>> setup_logging(log_file='/var/log/storefix.log')
    """
    handlers = [
        logging.StreamHandler(sys.stdout)
    ]

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                str(log_file),
                maxBytes=max_bytes,
                backupCount=backup_count
            )
            file_handler.rotator = _gzip_rotator
            handlers.append(file_handler)
        except (PermissionError, OSError) as e:
            # If file logging fails, just log to console
            print(f"Warning: Could not create log file {log_file}: {e}", file=sys.stderr)
            print("Logging to console only", file=sys.stderr)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # One line per cloned entry is only useful when debugging
    if level != logging.DEBUG:
        logging.getLogger('storefix.utils.cloner').setLevel(logging.WARNING)
