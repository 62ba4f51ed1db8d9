"""
StoreFix Corruption Recovery Workflow

Detects checksum corruption in a store, backs it up, and asks the engine
to drop the corrupted tables from its manifest.

State machine:
    PROBING -> HEALTHY
            -> CLASSIFYING -> UNSUPPORTED              (raises UnsupportedError)
                           -> ADVISORY                 (table not empty, no force)
                           -> BACKING_UP -> REPAIRING -> VERIFYING -> FIXED
                                                                   -> FIX_FAILED

The store directory is never opened with the destructive option until a
verified backup exists. Every step runs sequentially and blocks.

Author: StoreFix Project
License: GNU GPL v3
"""

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

from .engine.base import EngineOptions, MAX_VERSIONS_TO_KEEP, StorageEngine
from .errors import (
    InvariantViolation,
    NonEmptySegmentAdvisory,
    RepairFailure,
    StoreCloseError,
    UnsupportedError,
)
from .models import OpenOutcome, OutcomeKind, RecoveryOptions, RecoveryResult, RecoveryState
from .utils.backup_manager import BackupManager
from .utils.segment_inspector import classify_open_error, is_all_zeros


def build_probe_options(store_dir: str, value_dir: Optional[str] = None,
                        num_versions: int = 0) -> EngineOptions:
    """
    Engine options used to diagnose a store.

    Keeps every version so nothing is pruned during diagnosis. A positive
    num_versions caps retention instead and opens the store read-only.
    """
    options = EngineOptions(
        dir=store_dir,
        value_dir=value_dir,
        num_versions_to_keep=MAX_VERSIONS_TO_KEEP,
    )
    if num_versions > 0:
        options.num_versions_to_keep = num_versions
        options.read_only = True
    return options


class CorruptionRecoveryWorkflow:
    """
    Drives one detect/backup/repair run against a storage engine.

    Usage:
        workflow = CorruptionRecoveryWorkflow(
            engine,
            build_probe_options('/var/lib/store'),
            RecoveryOptions(force_delete_non_empty=False),
        )
        result = workflow.run()

    run() returns a RecoveryResult for HEALTHY, ADVISORY and FIXED and
    raises a StoreFixError subclass for every fatal outcome.

    Attributes:
        state: Current RecoveryState (last state reached after run())
        backup_path: Verified backup location once BACKING_UP completed
    """

    def __init__(
        self,
        engine: StorageEngine,
        engine_options: EngineOptions,
        recovery_options: Optional[RecoveryOptions] = None,
        backup_manager: Optional[BackupManager] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.engine_options = engine_options
        self.recovery_options = recovery_options or RecoveryOptions()
        self.backup_manager = backup_manager or BackupManager(clock=clock)
        self.state = RecoveryState.PROBING
        self.backup_path: Optional[Path] = None
        self.logger = logging.getLogger(__name__)

    def _transition(self, state: RecoveryState):
        self.logger.debug(f"Recovery state: {self.state.value} -> {state.value}")
        self.state = state

    def _close(self, handle):
        try:
            handle.close()
        except Exception as e:
            raise StoreCloseError(e) from e

    def probe(self) -> OpenOutcome:
        """Open the store once with the probe options and classify the result."""
        try:
            handle = self.engine.open(self.engine_options)
        except Exception as e:
            return classify_open_error(e)
        return OpenOutcome.healthy(handle)

    def inspect_segment(self, path: str) -> bool:
        """
        Decide whether the implicated table may be discarded.

        Returns:
            True if the table is all zeros

        Raises:
            NonEmptySegmentAdvisory: Table has data and force was not given
            FilesystemError: Table cannot be opened or read
        """
        all_zeros = is_all_zeros(path)
        if not all_zeros and not self.recovery_options.force_delete_non_empty:
            raise NonEmptySegmentAdvisory(path)
        if not all_zeros:
            self.logger.warning(f"Table {path} is not empty, deleting anyway (forced)")
        return all_zeros

    def backup(self) -> Path:
        """Create and verify the backup. Raises FilesystemError on failure."""
        self.backup_path = self.backup_manager.create_backup(
            self.engine_options.dir,
            self.recovery_options.backup_dir,
        )
        return self.backup_path

    def repair(self):
        """
        Open twice with delete_corrupted_tables_from_manifest enabled.

        The first open is expected to fail while the engine rewrites its
        manifest. If it succeeds, the engine healed itself without the
        repair step, which this workflow treats as an ordering bug. The
        second open must succeed.

        Raises:
            InvariantViolation: First destructive open succeeded
            RepairFailure: Second destructive open failed
            StoreCloseError: Engine failed to close the repaired store
        """
        repair_options = replace(self.engine_options, delete_corrupted_tables_from_manifest=True)

        try:
            handle = self.engine.open(repair_options)
        except Exception as e:
            self.logger.debug(f"First repair open failed as expected: {e}")
        else:
            self._transition(RecoveryState.FIX_FAILED)
            message = "problem appear: db fixed before restart"
            try:
                self._close(handle)
            except StoreCloseError as close_error:
                raise InvariantViolation(message) from close_error
            raise InvariantViolation(message)

        self._transition(RecoveryState.VERIFYING)
        try:
            handle = self.engine.open(repair_options)
        except Exception as e:
            self._transition(RecoveryState.FIX_FAILED)
            raise RepairFailure(e) from e
        try:
            self._close(handle)
        except StoreCloseError:
            self._transition(RecoveryState.FIX_FAILED)
            raise

    def run(self) -> RecoveryResult:
        """
        Execute the workflow.

        Returns:
            RecoveryResult in state HEALTHY, ADVISORY or FIXED

        Raises:
            UnsupportedError: Open failed without a checksum marker
            FilesystemError: Inspection or backup failed (store untouched)
            InvariantViolation: Store fixed before restart
            RepairFailure: Store still fails to open after repair
            StoreCloseError: Engine failed to close a handle
        """
        self._transition(RecoveryState.PROBING)
        outcome = self.probe()

        if outcome.kind == OutcomeKind.HEALTHY:
            self._close(outcome.handle)
            self._transition(RecoveryState.HEALTHY)
            self.logger.info("Database is healthy")
            return RecoveryResult(RecoveryState.HEALTHY, "Database is healthy")

        self._transition(RecoveryState.CLASSIFYING)
        if outcome.kind == OutcomeKind.FATAL:
            self._transition(RecoveryState.UNSUPPORTED)
            raise UnsupportedError(outcome.error) from outcome.error

        path = outcome.offending_path
        try:
            self.inspect_segment(path)
        except NonEmptySegmentAdvisory as advisory:
            self._transition(RecoveryState.ADVISORY)
            self.logger.info(str(advisory))
            return RecoveryResult(RecoveryState.ADVISORY, str(advisory), offending_path=path)

        self.logger.info("Database is corrupted. Trying to fix it")

        self._transition(RecoveryState.BACKING_UP)
        backup_path = self.backup()

        self._transition(RecoveryState.REPAIRING)
        self.repair()

        self._transition(RecoveryState.FIXED)
        self.logger.info("Database is fixed")
        return RecoveryResult(
            RecoveryState.FIXED,
            "Database is fixed",
            offending_path=path,
            backup_dir=backup_path,
        )

