"""Durable key-value blob store on a plain directory.

Each key maps to two files in the storage root, both named from the key's
digest (see ``hashing.encode_key``):

    <root>/<digest>.data   committed value, raw bytes, no header
    <root>/<digest>.tmp    staging file, exists only during a put

The presence of the data file is the only record that a key exists. Writes go
through ``DurableWriter`` so a crash leaves either the old or the new value,
never a partial one.

Thread Safety:
    Operations on distinct keys are independent. Two concurrent mutating
    calls on the same key share a temp path and must be serialized by the
    caller, unless the store is built with ``serialize_keys=True``.
"""

from __future__ import annotations
import asyncio
import contextlib
import errno
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .config import StoreConfig
from .constants import (
    DATA_SUFFIX,
    KEY_LOCK_STRIPES,
    MAX_KEY_LENGTH,
    MAX_VALUE_LENGTH,
    TEMP_SUFFIX,
)
from .durable import DurableWriter
from .errors import InvalidArgumentError, StorageIOError
from .hashing import encode_key, is_digest, key_bytes

logger = logging.getLogger(__name__)


def _validate_sizes(key: str, value: bytes) -> None:
    """Check size bounds before any I/O.

    Raises:
        InvalidArgumentError: If the UTF-8 key or the value is too long
    """
    key_length = len(key_bytes(key))
    if key_length > MAX_KEY_LENGTH:
        raise InvalidArgumentError("key", key_length, MAX_KEY_LENGTH)
    if len(value) > MAX_VALUE_LENGTH:
        raise InvalidArgumentError("value", len(value), MAX_VALUE_LENGTH)


class DurableBlobStore:
    """Crash-safe blob store keyed by hashed file names.

    Attributes:
        root: Existing, writable storage directory
        serialize_keys: Whether same-key mutations are serialized in-process
    """

    def __init__(self, root: Union[str, Path], serialize_keys: bool = False):
        """Open a store on an existing directory.

        Args:
            root: Storage root; must already exist and is never created
            serialize_keys: Serialize put/remove per key with striped locks

        Raises:
            StorageIOError: If root is not an existing directory
        """
        self.root = Path(root)
        if not self.root.is_dir():
            raise StorageIOError(
                "opening storage root",
                self.root,
                NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(self.root)),
            )
        self.serialize_keys = serialize_keys
        self._writer = DurableWriter(self.root)
        self._locks: List[asyncio.Lock] = (
            [asyncio.Lock() for _ in range(KEY_LOCK_STRIPES)] if serialize_keys else []
        )

    @classmethod
    def from_config(cls, config: StoreConfig) -> "DurableBlobStore":
        """Create a store from a StoreConfig."""
        return cls(config.root, serialize_keys=config.serialize_keys)

    # ---- Path derivation ---------------------------------------------------

    def paths_for(self, key: str) -> Tuple[Path, Path]:
        """Return ``(temp_path, data_path)`` for a key.

        Security:
            Only the digest reaches the filesystem, so keys such as
            ``../../etc/passwd`` cannot escape the root.
        """
        digest = encode_key(key)
        return self.root / f"{digest}{TEMP_SUFFIX}", self.root / f"{digest}{DATA_SUFFIX}"

    def data_path(self, key: str) -> Path:
        """Return the data file path for a key."""
        return self.paths_for(key)[1]

    def _lock_for(self, path: Path):
        if not self.serialize_keys:
            return contextlib.nullcontext()
        return self._locks[hash(path.name) % len(self._locks)]

    # ---- Operations ----------------------------------------------------------

    async def put(self, key: str, value: bytes) -> None:
        """Durably store ``value`` under ``key``.

        Raises:
            InvalidArgumentError: If the key exceeds 255 bytes (UTF-8) or the
                value exceeds 65535 bytes; nothing is written
            StorageIOError: If any step of the durability sequence fails
        """
        _validate_sizes(key, value)
        tmp_path, data_path = self.paths_for(key)

        async with self._lock_for(data_path):
            await asyncio.to_thread(self._writer.commit, tmp_path, data_path, value)
        logger.debug("Committed %d bytes to %s", len(value), data_path.name)

    async def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under ``key``.

        Returns:
            The complete value, or None if the key is absent or unreadable
        """
        data_path = self.data_path(key)
        try:
            return await asyncio.to_thread(data_path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Error reading %s: %s", data_path, e)
            return None

    async def remove(self, key: str) -> bool:
        """Remove ``key`` and its value.

        Returns:
            True if a data file was present and unlinked, False if the key was
            absent or the unlink failed. A failed directory sync after a
            successful unlink is logged and still reports True.
        """
        data_path = self.data_path(key)
        async with self._lock_for(data_path):
            return await asyncio.to_thread(self._remove, data_path)

    def _remove(self, data_path: Path) -> bool:
        try:
            self._writer.delete(data_path)
        except StorageIOError as e:
            # Absent key: the unlink fails before anything is touched
            if not isinstance(e.cause, FileNotFoundError):
                logger.warning("%s", e)
            return False
        return True

    # ---- Maintenance ---------------------------------------------------------

    async def discard_stale_temp_files(self) -> int:
        """Delete temp files left behind by a crash during ``put``.

        Temp files are never read, so this does not change any visible value.
        Only ``.tmp`` files whose stem is a key digest are touched.
        Only call it while no ``put`` is in flight, e.g. right after startup.

        Returns:
            Number of temp files removed

        Raises:
            StorageIOError: If the directory sync after removal fails
        """
        return await asyncio.to_thread(self._discard_stale_temp_files)

    def _discard_stale_temp_files(self) -> int:
        removed = 0
        for tmp_path in self.root.glob(f"*{TEMP_SUFFIX}"):
            # Leave files this store could not have written
            if not is_digest(tmp_path.stem) or not tmp_path.is_file():
                continue
            try:
                tmp_path.unlink()
                removed += 1
                logger.debug("Removed stale temp file: %s", tmp_path)
            except OSError as e:
                logger.warning("Could not remove stale temp file %s: %s", tmp_path, e)

        if removed:
            self._writer.sync_directory()
        return removed


__all__ = ["DurableBlobStore"]
