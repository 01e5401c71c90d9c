"""Factory for creating stable storage instances."""

from pathlib import Path
from typing import Optional, Union

from .base import StableStorage
from .config import StoreConfig
from .store import DurableBlobStore


async def build_stable_storage(
    root: Union[str, Path, None] = None,
    config: Optional[StoreConfig] = None,
) -> StableStorage:
    """
    Create a durable store on an existing directory.

    Args:
        root: Storage root directory
        config: Full configuration; takes precedence over ``root``

    Returns:
        StableStorage backed by the directory

    Raises:
        ValueError: If neither root nor config is given
        StorageIOError: If the root is not an existing directory
    """
    if config is None:
        if root is None:
            raise ValueError("build_stable_storage requires a root or a config")
        config = StoreConfig(root=root)
    return DurableBlobStore.from_config(config)
