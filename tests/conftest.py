"""Shared test fixtures and utilities."""

import pytest

from stable_storage.store import DurableBlobStore


@pytest.fixture
def storage_root(tmp_path):
    """Create an existing, empty storage root."""
    root = tmp_path / "store"
    root.mkdir()
    return root


@pytest.fixture
def store(storage_root):
    """Create a DurableBlobStore on the storage root."""
    return DurableBlobStore(storage_root)


@pytest.fixture
def root_files(storage_root):
    """Factory fixture listing file names currently in the storage root."""
    def _list():
        return sorted(p.name for p in storage_root.iterdir())
    return _list
