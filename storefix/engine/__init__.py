"""
StoreFix Storage Engine Adapters

Interface the recovery workflow drives, plus the loader that resolves a
concrete adapter from configuration.

Author: StoreFix Project
License: GNU GPL v3
"""

from .base import (
    StorageEngine,
    StoreHandle,
    EngineOptions,
    ChecksumMismatchError,
    MAX_VERSIONS_TO_KEEP,
)
from .loader import load_engine, resolve_engine_class

__all__ = [
    'StorageEngine',
    'StoreHandle',
    'EngineOptions',
    'ChecksumMismatchError',
    'MAX_VERSIONS_TO_KEEP',
    'load_engine',
    'resolve_engine_class',
]
