"""Exception taxonomy for vault operations.

Every error derives from ``ValueError`` so host code can keep a single
``except ValueError`` around load/save calls.
"""

from __future__ import annotations


class VaultError(ValueError):
    """Base class for recoverable vault failures."""


class InvalidSaltLength(VaultError):
    """Key derivation was called with a salt of the wrong size."""

    def __init__(self, length: int, expected: int):
        super().__init__(f"Salt must be {expected} bytes, got {length}")
        self.length = length
        self.expected = expected


class MalformedEnvelope(VaultError):
    """The container is structurally invalid (bad JSON, fields or lengths)."""


class AuthenticationFailure(VaultError):
    """Decryption failed: wrong passphrase or corrupted data."""

    def __init__(self, message: str = "Wrong passphrase or corrupted vault"):
        super().__init__(message)


class SerializationError(VaultError):
    """Vault bytes do not parse as the expected document structure."""


class RateLimited(VaultError):
    """Too many failed unlock attempts; retry after *retry_after* seconds."""

    def __init__(self, retry_after: float):
        super().__init__(f"Too many failed attempts. Try again in {retry_after:.0f}s.")
        self.retry_after = retry_after
