"""Crash-safe key-value blob storage on a plain directory."""

from .base import StableStorage
from .config import StoreConfig, config_from_env, load_store_config
from .errors import ConfigError, InvalidArgumentError, StableStorageError, StorageIOError
from .factory import build_stable_storage
from .hashing import encode_key
from .store import DurableBlobStore

__all__ = [
    "ConfigError",
    "DurableBlobStore",
    "InvalidArgumentError",
    "StableStorage",
    "StableStorageError",
    "StorageIOError",
    "StoreConfig",
    "build_stable_storage",
    "config_from_env",
    "encode_key",
    "load_store_config",
]
