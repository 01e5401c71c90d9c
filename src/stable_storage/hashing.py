"""Key hashing for file name derivation.

Keys are never used as file names. Each key is hashed with SHA-256, base64
encoded and stripped of characters that cannot appear in a file name, which
gives a short, flat stem no matter what the key contains.
"""

import base64
import hashlib
import re

# "/" is the only base64 character that is illegal in a file name; NUL can
# never appear in base64 output but is listed with it for completeness.
_ILLEGAL_NAME_CHARS = str.maketrans("", "", "/\x00")

# A 32-byte digest encodes to 43 base64 characters plus one "=" of padding;
# stripping "/" can only shorten the body.
_DIGEST_STEM = re.compile(r"^[A-Za-z0-9+]{1,43}=$")


def key_bytes(key: str) -> bytes:
    """Encode a key to UTF-8 for hashing and length checks.

    Lone surrogates (e.g. from ``surrogateescape`` decoding) are passed
    through instead of raising, so every ``str`` has a byte form.
    """
    return key.encode("utf-8", "surrogatepass")


def is_digest(stem: str) -> bool:
    """Check whether a file name stem could have come from ``encode_key``."""
    return _DIGEST_STEM.fullmatch(stem) is not None


def encode_key(key: str) -> str:
    """Derive a filesystem-safe digest from a key.

    Pure and deterministic. Distinct keys map to the same digest only with
    negligible probability; the digest is never reversed.

    Args:
        key: Arbitrary key string

    Returns:
        Base64 SHA-256 digest with path separators removed (at most 44 chars)

    Example:
        >>> encode_key("a/b") == encode_key("a/b")
        True
        >>> "/" in encode_key("../../etc/passwd")
        False
    """
    raw = hashlib.sha256(key_bytes(key)).digest()
    encoded = base64.standard_b64encode(raw).decode("ascii")
    return encoded.translate(_ILLEGAL_NAME_CHARS)


__all__ = ["encode_key", "is_digest", "key_bytes"]
