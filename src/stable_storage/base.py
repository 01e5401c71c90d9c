"""Base protocol for stable storage implementations."""

from typing import Optional, Protocol


class StableStorage(Protocol):
    """
    Protocol for durable key-value storage.

    Callers must not run two mutating operations on the same key at once
    unless the implementation documents in-process serialization.
    """

    async def put(self, key: str, value: bytes) -> None:
        """
        Durably store ``value`` under ``key``, replacing any previous value.

        Raises:
            InvalidArgumentError: If key or value exceeds its size bound
            StorageIOError: On any filesystem failure
        """
        ...

    async def get(self, key: str) -> Optional[bytes]:
        """
        Return the value stored under ``key``, or None.

        Read failures are reported as None.
        """
        ...

    async def remove(self, key: str) -> bool:
        """
        Remove ``key`` and its value.

        Returns:
            True if a value was present and removed
        """
        ...
