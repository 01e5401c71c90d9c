"""Store configuration helpers."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .constants import ROOT_ENV_VAR, SERIALIZE_KEYS_ENV_VAR
from .errors import ConfigError

CONFIG_SECTION = "stable_storage"


class StoreConfig(BaseModel):
    """Configuration for a DurableBlobStore.

    The root directory must already exist; it is never created here.
    """

    root: Path
    serialize_keys: bool = False  # serialize same-key mutations in-process

    @field_validator("root", mode="before")
    @classmethod
    def validate_root(cls, v):
        """Reject an empty root path."""
        if v is None or not str(v).strip():
            raise ValueError("root must be a non-empty path")
        return Path(v).expanduser()


def _build(data: dict, source: str) -> StoreConfig:
    try:
        return StoreConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid store configuration in {source}: {e}") from e


def load_store_config(path: Path) -> StoreConfig:
    """Load store configuration from a YAML file.

    Accepts either a flat mapping or one nested under ``stable_storage:``.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read store configuration {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Store configuration {path} must be a mapping")

    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' in {path} must be a mapping")
    return _build(section, str(path))


def config_from_env(root: Optional[Path] = None) -> StoreConfig:
    """Build configuration from the environment.

    Args:
        root: Explicit root overriding STABLE_STORAGE_ROOT

    Raises:
        ConfigError: If no root is given and STABLE_STORAGE_ROOT is unset
    """
    if root is None:
        env_root = os.environ.get(ROOT_ENV_VAR)
        if not env_root:
            raise ConfigError(f"No storage root given; set {ROOT_ENV_VAR} or pass --root")
        root = Path(env_root)

    serialize = os.environ.get(SERIALIZE_KEYS_ENV_VAR, "false").lower()
    return _build(
        {"root": root, "serialize_keys": serialize in ("true", "1", "yes")},
        "environment",
    )
