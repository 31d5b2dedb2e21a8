"""Passphrase key derivation (PBKDF2-HMAC-SHA256) and the non-extractable KeyHandle."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from jsonvault.crypto.formats import KEY_SIZE, PBKDF2_ITERATIONS, SALT_SIZE
from jsonvault.errors import InvalidSaltLength
from jsonvault.util.memory import KeyObfuscator, SecureMemory, TimedExposure

logger = logging.getLogger("jsonvault.crypto")


class KeyHandle:
    """A derived AES key kept obfuscated in locked memory.

    The raw bytes are only revealed inside the crypto package, for the
    duration of a single seal/open call.
    """

    __slots__ = ("_ko",)

    def __init__(self, key: SecureMemory):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        self._ko = KeyObfuscator(key)
        self._ko.obfuscate()

    @contextmanager
    def _reveal(self) -> Iterator[bytes]:
        with TimedExposure(self._ko) as sm:
            yield sm.get_bytes()

    def clear(self) -> None:
        self._ko.clear()

    def __repr__(self) -> str:
        return "<KeyHandle AES-256>"


def derive_key(passphrase: str, salt: bytes) -> KeyHandle:
    """Stretch *passphrase* with *salt* into a 256-bit AES key.

    An empty passphrase is accepted here; deciding whether to encrypt at
    all happens in the envelope layer.
    """
    if len(salt) != SALT_SIZE:
        raise InvalidSaltLength(len(salt), SALT_SIZE)

    pw = SecureMemory(passphrase.encode("utf-8"))
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=bytes(salt),
            iterations=PBKDF2_ITERATIONS,
        )
        return KeyHandle(SecureMemory(kdf.derive(pw.get_bytes() if len(pw) else b"")))
    finally:
        pw.clear()
