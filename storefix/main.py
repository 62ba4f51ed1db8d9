#!/usr/bin/env python3
"""
StoreFix - Corrupted Table Removal

Main entry point for the store repair command.

Runs one recovery cycle:
- Opens the store and reports if it is healthy
- Recognizes checksum corruption and locates the offending table
- Refuses to continue for non-empty tables unless forced
- Backs up the whole store directory and verifies the copy
- Reopens with corrupted tables dropped from the manifest

Usage:
    storefix --dir /var/lib/store --engine mypkg.adapter:Engine
    storefix --dir /var/lib/store -f /mnt/backup/store    # explicit backup dir
    storefix --dir /var/lib/store -n                      # force non-empty tables

Author: StoreFix Project
License: GNU GPL v3
"""

import argparse
import logging
import sys
import traceback

from pydantic import ValidationError

from storefix.config import load_config
from storefix.engine.loader import load_engine
from storefix.errors import ConfigError, StoreFixError
from storefix.recovery import CorruptionRecoveryWorkflow
from storefix.utils.backup_manager import BackupManager
from storefix.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Command line flags. Unset flags fall through to env/config.conf."""
    parser = argparse.ArgumentParser(description='StoreFix - Removes empty corrupted tables')
    parser.add_argument('--dir', type=str, help='Directory where the store tables are located')
    parser.add_argument('--vlog-dir', type=str, help='Directory where the value log is located (default: --dir)')
    parser.add_argument('--num-versions', type=int,
                        help='Cap on versions to keep; opens the store read-only when > 0')
    parser.add_argument('-f', '--backup-dir', type=str,
                        help='Folder to backup to (default is <dir>_corrupted_backup_<timestamp>)')
    parser.add_argument('-n', '--force-not-empty', action='store_true', default=None,
                        help='Force delete not empty corrupted tables')
    parser.add_argument('--engine', type=str, metavar='MODULE:CLASS',
                        help='Storage engine adapter, e.g. mypkg.adapter:Engine')
    parser.add_argument('--config', type=str, metavar='FILE', help='Path to config.conf')
    parser.add_argument('--log-file', type=str, help='Also log to this file (rotated)')
    parser.add_argument('--verbose', '-v', action='store_true', default=None, help='Enable verbose logging')
    return parser


def main(argv=None) -> int:
    """
    CLI entry point.

    Exit codes:
        0: healthy, fixed, or non-empty table advisory
        1: any error
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            config_file=args.config,
            dir=args.dir,
            value_dir=args.vlog_dir,
            num_versions=args.num_versions,
            backup_dir=args.backup_dir,
            force_not_empty=args.force_not_empty,
            engine=args.engine,
            log_file=args.log_file,
            verbose=args.verbose,
        )
    except (StoreFixError, ValidationError) as e:
        print(f"ERROR: Invalid configuration: {e}", file=sys.stderr)
        return 1

    log_level = logging.DEBUG if config.verbose else logging.INFO
    setup_logging(
        level=log_level,
        log_file=config.log_file,
        max_bytes=config.log_max_bytes,
        backup_count=config.log_backup_count,
    )
    logger = logging.getLogger(__name__)

    try:
        if not config.engine:
            raise ConfigError("No storage engine configured (use --engine or STOREFIX_ENGINE)")

        engine = load_engine(config.engine)
        workflow = CorruptionRecoveryWorkflow(
            engine,
            config.engine_options(),
            config.recovery_options(),
            backup_manager=BackupManager(verify_content=config.verify_backup_content),
        )
        result = workflow.run()

    except StoreFixError as e:
        logger.error(f"ERROR: {e}")
        logger.debug(traceback.format_exc())
        return 1

    if result.backup_dir:
        logger.info(f"Backup kept at {result.backup_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
