"""
StoreFix Storage Engine Interface

Abstract base classes for the key/value store being repaired.

StoreFix does not implement a storage engine. Any engine that opens a
store directory and can drop corrupted tables from its manifest can be
plugged in by subclassing StorageEngine and StoreHandle.

Author: StoreFix Project
License: GNU GPL v3
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


# Keep every version while diagnosing so nothing is pruned on open
MAX_VERSIONS_TO_KEEP = 2 ** 31 - 1


@dataclass
class EngineOptions:
    """
    Options passed to StorageEngine.open().

    Attributes:
        dir: Directory holding tables and manifest
        value_dir: Directory holding the value log (defaults to dir)
        num_versions_to_keep: Version retention cap
        read_only: Open without taking the write lock
        delete_corrupted_tables_from_manifest: Drop tables failing checksum on open
    """
    dir: str
    value_dir: Optional[str] = None
    num_versions_to_keep: int = 1
    read_only: bool = False
    delete_corrupted_tables_from_manifest: bool = False

    def __post_init__(self):
        if not self.value_dir:
            self.value_dir = self.dir


class ChecksumMismatchError(Exception):
    """
    Structured checksum failure an engine may raise on open.

    Carries the offending table path as a field so callers do not have
    to parse it out of the message.
    """

    def __init__(self, path: str, detail: str = "checksum mismatch"):
        self.path = path
        super().__init__(f"{detail}: {path}")


class StoreHandle(ABC):
    """Open store. Must be closed by whoever acquired it."""

    @abstractmethod
    def close(self) -> None:
        pass


class StorageEngine(ABC):
    """Base class for storage engine adapters"""

    @abstractmethod
    def open(self, options: EngineOptions) -> StoreHandle:
        """
        Open the store described by options.

        Raises:
            Exception: Any engine failure; checksum failures must mention
                "checksum" in their message
        """
        pass
