"""Custom exceptions for stable-storage.

This module defines typed exceptions so callers can tell a rejected request
apart from a filesystem failure during the durability sequence.
"""


class StableStorageError(RuntimeError):
    """Base class for all stable-storage errors."""
    pass


class InvalidArgumentError(StableStorageError, ValueError):
    """Key or value exceeds its size bound (raised before any I/O)."""

    def __init__(self, field: str, length: int, limit: int):
        self.field = field
        self.length = length
        self.limit = limit
        super().__init__(
            f"Invalid {field} length: {length} exceeds the limit of {limit} bytes"
        )


class StorageIOError(StableStorageError, OSError):
    """Filesystem failure while committing a value.

    The underlying ``OSError`` is available as ``__cause__``.
    """

    def __init__(self, operation: str, path, cause: BaseException = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Error {operation} {path}{detail}")


class ConfigError(StableStorageError):
    """Invalid store configuration."""
    pass
