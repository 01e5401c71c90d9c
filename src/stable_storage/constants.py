"""Constants for stable-storage."""

# Size bounds (bytes); keys are measured in their UTF-8 encoding
MAX_KEY_LENGTH = 255
MAX_VALUE_LENGTH = 65535

# File name suffixes inside the storage root
DATA_SUFFIX = ".data"
TEMP_SUFFIX = ".tmp"

# Environment variables read by config_from_env()
ROOT_ENV_VAR = "STABLE_STORAGE_ROOT"
SERIALIZE_KEYS_ENV_VAR = "STABLE_STORAGE_SERIALIZE_KEYS"

# Number of striped locks used when serialize_keys is enabled
KEY_LOCK_STRIPES = 64
