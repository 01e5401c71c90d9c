"""Crash-safe file commits for the blob store.

A value becomes visible only through this sequence:

1. Write the bytes to a per-key temp file created fresh in the storage root
2. ``fsync`` the temp file so its content is on stable media
3. ``os.replace`` the temp file onto the data file (atomic on POSIX)
4. ``fsync`` the storage root so the new directory entry survives a crash

Skipping step 2 can expose a zero-length or truncated data file after power
loss; skipping step 4 can lose the rename even though the data was durable.
Deletions follow the same rule: unlink, then ``fsync`` the directory, or the
entry may reappear after a crash.

Technical Considerations:
- Temp and data files live in the same directory so the rename never crosses
  a filesystem boundary
- Directory fsync uses ``O_DIRECTORY`` where available (Linux)
- All functions are blocking; the async store runs them in worker threads
"""

from __future__ import annotations
import contextlib
import logging
import os
from pathlib import Path

from .errors import StorageIOError

logger = logging.getLogger(__name__)

# ---- Low-level sync helpers --------------------------------------------------

def _fsync_dir(path: Path) -> None:
    """Fsync a directory so entry creations, renames and unlinks are durable.

    Raises:
        OSError: If the directory cannot be opened or synced
    """
    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    fd = os.open(str(path), flags)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _write_synced(path: Path, data: bytes) -> None:
    """Create ``path`` fresh, write all of ``data`` and fsync it.

    Opening with ``"wb"`` truncates any stale temp file left by a crash.
    """
    with open(path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())

# ---- DurableWriter -----------------------------------------------------------

class DurableWriter:
    """Performs the durability sequence inside one storage directory.

    Attributes:
        directory: Storage root holding both temp and data files
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def commit(self, tmp_path: Path, data_path: Path, value: bytes) -> None:
        """Durably replace the content of ``data_path`` with ``value``.

        Either the previous state of ``data_path`` (old value or absence) or
        the complete new value is observable at every instant.

        Args:
            tmp_path: Staging file, unique per key and distinct from data_path
            data_path: Final location of the value
            value: Bytes to persist

        Raises:
            StorageIOError: On any filesystem failure; chained to the OSError
        """
        try:
            self.write_temp(tmp_path, value)
            self.promote(tmp_path, data_path)
        except StorageIOError:
            # Never leave a half-written staging file behind
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise
        self.sync_directory()

    def write_temp(self, tmp_path: Path, value: bytes) -> None:
        """Write and fsync the staging file."""
        try:
            _write_synced(tmp_path, value)
        except OSError as e:
            raise StorageIOError("writing temp file", tmp_path, e) from e

    def promote(self, tmp_path: Path, data_path: Path) -> None:
        """Atomically rename the staging file onto the data file."""
        try:
            os.replace(str(tmp_path), str(data_path))
        except OSError as e:
            raise StorageIOError("renaming temp file to", data_path, e) from e

    def sync_directory(self) -> None:
        """Fsync the storage directory.

        Raises:
            StorageIOError: If the directory cannot be opened or synced
        """
        try:
            _fsync_dir(self.directory)
        except OSError as e:
            raise StorageIOError("syncing directory", self.directory, e) from e

    def delete(self, data_path: Path) -> None:
        """Unlink ``data_path`` and make the removal durable.

        The unlink is attempted exactly once. Once it succeeds the entry is
        gone from the namespace, so a failed directory sync is logged rather
        than raised.

        Raises:
            StorageIOError: If the unlink fails
        """
        try:
            data_path.unlink()
        except OSError as e:
            raise StorageIOError("removing", data_path, e) from e

        try:
            self.sync_directory()
        except StorageIOError as e:
            logger.warning("Removed %s but directory sync failed: %s", data_path, e)
            return

        logger.debug("Removed %s", data_path)


__all__ = ["DurableWriter"]
