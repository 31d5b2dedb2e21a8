"""AeadCodec: AES-256-GCM seal/open over a KeyHandle."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from jsonvault.crypto.formats import NONCE_SIZE, SALT_SIZE
from jsonvault.crypto.kdf import KeyHandle
from jsonvault.errors import AuthenticationFailure

logger = logging.getLogger("jsonvault.crypto")


class AeadCodec:
    """AES-GCM with a 256-bit key, 96-bit nonce and 128-bit tag.

    The algorithm is fixed; vault metadata never selects it. Callers own
    nonce uniqueness: a (key, nonce) pair must seal at most one plaintext.
    """

    @staticmethod
    def seal(
        key: KeyHandle,
        nonce: bytes,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        _check_nonce(nonce)
        with key._reveal() as raw:
            return AESGCM(raw).encrypt(nonce, plaintext, aad)

    @staticmethod
    def open(
        key: KeyHandle,
        nonce: bytes,
        ciphertext: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        _check_nonce(nonce)
        try:
            with key._reveal() as raw:
                return AESGCM(raw).decrypt(nonce, ciphertext, aad)
        except InvalidTag:
            logger.warning("AEAD tag verification failed")
            raise AuthenticationFailure() from None

    # ------------------------------------------------------------------
    @staticmethod
    def generate_nonce() -> bytes:
        return secrets.token_bytes(NONCE_SIZE)

    @staticmethod
    def generate_salt() -> bytes:
        return secrets.token_bytes(SALT_SIZE)


def _check_nonce(nonce: bytes) -> None:
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
