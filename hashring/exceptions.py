class RingError(Exception):
    """Base class for hash ring errors."""


class InvalidKeyError(RingError, ValueError):
    """Raised when a lookup is attempted with a ``None`` key."""


class HashAlgorithmUnavailableError(RingError, RuntimeError):
    """Raised when the runtime cannot provide the SHA-1 digest."""
