"""
StoreFix Exceptions

Error taxonomy for the corruption recovery workflow.

Fatal errors (propagate to the caller, CLI exits 1):
- UnsupportedError: open failed for an unrecognized reason
- FilesystemError: stat/open/read/copy/chmod/chown/mkdir failure
- InvariantViolation: store reported fixed before the repair open
- RepairFailure: final destructive open failed
- EngineLoadError / ConfigError: setup problems

Non-fatal:
- NonEmptySegmentAdvisory: implicated table holds data and no override given

Author: StoreFix Project
License: GNU GPL v3
"""


class StoreFixError(Exception):
    """Base class for all StoreFix errors."""
    pass


class UnsupportedError(StoreFixError):
    """Open failed for a reason other than a checksum mismatch."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"unsupported error: {cause}")


class FilesystemError(StoreFixError):
    """
    Filesystem operation failed during inspection or backup.

    Carries the failed operation and path so the message is actionable
    on its own, e.g. "unable to copy /data/000012.sst: [Errno 28] ...".
    """

    def __init__(self, operation: str, path, cause=None):
        self.operation = operation
        self.path = str(path)
        self.cause = cause
        message = f"{operation} {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NonEmptySegmentAdvisory(StoreFixError):
    """Implicated table contains non-zero bytes and force was not requested."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__("Table is not empty. Use --force-not-empty to delete it")


class InvariantViolation(StoreFixError):
    """Store opened cleanly on the first destructive attempt."""
    pass


class RepairFailure(StoreFixError):
    """Store still fails to open after the repair attempt."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"unable to open database after fix attempt {cause}")


class EngineLoadError(StoreFixError):
    """Configured storage engine could not be imported or is invalid."""
    pass


class ConfigError(StoreFixError):
    """Invalid configuration value."""
    pass


class StoreCloseError(StoreFixError):
    """Engine failed to close a store handle."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"unable to close database: {cause}")
