"""
StoreFix Data Models

Core data structures used throughout the application.

This module defines:
- RecoveryOptions: Caller-supplied knobs for one workflow run
- FileAttributes: Type, mode and ownership read from a directory entry
- OpenOutcome: Tagged result of a store open attempt
- RecoveryResult: Terminal outcome of a non-raising workflow run
- Enums: EntryType, OutcomeKind, RecoveryState

Author: StoreFix Project
License: GNU GPL v3
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional
import os
import stat


class EntryType(Enum):
    """Directory entry kinds handled by the cloner."""
    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class OutcomeKind(Enum):
    """Classification of an open attempt."""
    HEALTHY = "healthy"
    CORRUPTED = "corrupted"
    FATAL = "fatal"


class RecoveryState(Enum):
    """
    Workflow states.

    Terminal success: HEALTHY, FIXED
    Terminal non-fatal: ADVISORY
    Terminal failure: UNSUPPORTED, FIX_FAILED
    """
    PROBING = "probing"
    HEALTHY = "healthy"
    CLASSIFYING = "classifying"
    UNSUPPORTED = "unsupported"
    ADVISORY = "advisory"
    BACKING_UP = "backing_up"
    REPAIRING = "repairing"
    VERIFYING = "verifying"
    FIXED = "fixed"
    FIX_FAILED = "fix_failed"


@dataclass(frozen=True)
class RecoveryOptions:
    """
    Options for one recovery run.

    Attributes:
        backup_dir: Explicit backup destination (None = generated name)
        force_delete_non_empty: Allow repair when the corrupted table holds data
    """
    backup_dir: Optional[str] = None
    force_delete_non_empty: bool = False


@dataclass
class FileAttributes:
    """Attributes captured from a source entry via lstat()."""
    type: EntryType
    mode: int
    uid: int
    gid: int
    size: int = 0
    symlink_target: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path) -> 'FileAttributes':
        """
        Read attributes without following symlinks.

        Raises:
            OSError: If the entry cannot be statted or the link read
        """
        st = os.lstat(path)
        mode = st.st_mode

        if stat.S_ISLNK(mode):
            entry_type = EntryType.SYMLINK
        elif stat.S_ISDIR(mode):
            entry_type = EntryType.DIRECTORY
        elif stat.S_ISREG(mode):
            entry_type = EntryType.REGULAR
        else:
            entry_type = EntryType.OTHER

        target = os.readlink(path) if entry_type == EntryType.SYMLINK else None

        return cls(
            type=entry_type,
            mode=stat.S_IMODE(mode),
            uid=st.st_uid,
            gid=st.st_gid,
            size=st.st_size,
            symlink_target=target,
        )


@dataclass
class OpenOutcome:
    """
    Result of trying to open the store.

    Exactly one of handle (HEALTHY), offending_path (CORRUPTED) or
    error (FATAL, also kept for CORRUPTED) is meaningful per kind.
    """
    kind: OutcomeKind
    handle: Any = None
    offending_path: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def healthy(cls, handle) -> 'OpenOutcome':
        return cls(kind=OutcomeKind.HEALTHY, handle=handle)

    @classmethod
    def corrupted(cls, offending_path: str, error: BaseException) -> 'OpenOutcome':
        return cls(kind=OutcomeKind.CORRUPTED, offending_path=offending_path, error=error)

    @classmethod
    def fatal(cls, error: BaseException) -> 'OpenOutcome':
        return cls(kind=OutcomeKind.FATAL, error=error)


@dataclass
class RecoveryResult:
    """Terminal outcome of CorruptionRecoveryWorkflow.run()."""
    state: RecoveryState
    message: str
    offending_path: Optional[str] = None
    backup_dir: Optional[Path] = None

    @property
    def ok(self) -> bool:
        """True for HEALTHY, FIXED and ADVISORY (clean exit)."""
        return self.state in (RecoveryState.HEALTHY, RecoveryState.FIXED, RecoveryState.ADVISORY)
