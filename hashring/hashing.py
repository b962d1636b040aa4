import hashlib

from .exceptions import HashAlgorithmUnavailableError

HASH_ALGORITHM = "sha1"
POSITION_BYTES = 8
MAX_POSITION = 2 ** (POSITION_BYTES * 8) - 1


def ensure_digest_available():
    """Fail fast if the digest used for ring positions is missing."""
    try:
        hashlib.new(HASH_ALGORITHM)
    except ValueError as e:
        raise HashAlgorithmUnavailableError(
            f"hash algorithm not available: {HASH_ALGORITHM}"
        ) from e


def hash_key(key: str) -> int:
    """Map a string onto the ring.

    The position is the first 8 bytes of the SHA-1 digest of the UTF-8 key,
    read as a big-endian unsigned integer.
    """
    digest = hashlib.sha1(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:POSITION_BYTES], "big")


def virtual_key(node_id: str, index: int) -> str:
    return f"{node_id}#{index}"
