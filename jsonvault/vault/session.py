"""VaultSession: live vault, key-material lifecycle, encrypt-on-save / decrypt-on-load."""

from __future__ import annotations

import copy
import hmac
import logging
import threading
from typing import Optional, Tuple

from jsonvault.crypto.engine import AeadCodec
from jsonvault.crypto.formats import (
    EncryptedEnvelope,
    envelope_from_bytes,
    envelope_to_bytes,
)
from jsonvault.errors import AuthenticationFailure
from jsonvault.util.memory import SecureMemory
from jsonvault.util.rate_limit import RateLimiter
from jsonvault.vault.envelope import EnvelopeFormat
from jsonvault.vault.models import Entry, PlainVault, SessionKeyMaterial, VaultMetadata

logger = logging.getLogger("jsonvault.vault")


class VaultSession:
    """One open vault.

    Every encrypted save draws a fresh nonce. The salt is kept for as long
    as the passphrase stays the same, and regenerated when it changes.
    """

    def __init__(self, rate_limiter: Optional[RateLimiter] = None):
        self._lock = threading.RLock()
        self._vault = PlainVault()
        self._key_material = SessionKeyMaterial()
        self._passphrase: Optional[SecureMemory] = None
        self._salt_passphrase: Optional[SecureMemory] = None
        self.rate_limiter = rate_limiter or RateLimiter()

    # ------------------------------------------------------------------
    #  Lifecycle
    # ------------------------------------------------------------------
    def create_new(self, initial_metadata: VaultMetadata, passphrase: str = "") -> None:
        with self._lock:
            self._vault = PlainVault(metadata=copy.copy(initial_metadata), entries=[])
            self._key_material.clear()
            self._set_passphrase(passphrase)
            self._forget_salt_passphrase()
            self.rate_limiter.reset()
            logger.info(
                "New vault created (%s)", "encrypted" if passphrase else "plaintext"
            )

    def load(self, data: bytes, passphrase: str = "") -> None:
        """Replace the live vault with the one stored in *data*.

        On any failure the session is left unchanged. Only wrong passphrases
        count against the rate limiter.
        """
        with self._lock:
            envelope = envelope_from_bytes(data)
            if isinstance(envelope, EncryptedEnvelope):
                self.rate_limiter.check()
                try:
                    vault = EnvelopeFormat.decode(envelope, passphrase)
                except AuthenticationFailure:
                    self.rate_limiter.record_failure()
                    raise
                self.rate_limiter.reset()
            else:
                vault = EnvelopeFormat.decode(envelope, passphrase)

            self._vault = vault
            if isinstance(envelope, EncryptedEnvelope):
                self._key_material.salt = envelope.salt
                self._key_material.nonce = envelope.nonce
                self._forget_salt_passphrase()
                self._salt_passphrase = SecureMemory(passphrase)
            else:
                self._key_material.clear()
                self._forget_salt_passphrase()
            self._set_passphrase(passphrase)
            logger.info(
                "Vault loaded (%s): %d entries", envelope.mode, len(vault.entries)
            )

    def save(self, passphrase: Optional[str] = None) -> bytes:
        """Serialise the live vault, encrypting unless the passphrase is empty."""
        with self._lock:
            if passphrase is None:
                passphrase = self._current_passphrase()

            if passphrase == "":
                self._key_material.clear()
                self._forget_salt_passphrase()
            else:
                if self._key_material.salt is None or not self._salt_matches(passphrase):
                    self._key_material.salt = AeadCodec.generate_salt()
                    self._forget_salt_passphrase()
                    self._salt_passphrase = SecureMemory(passphrase)
                # never reuse a nonce, even for unchanged content
                self._key_material.nonce = AeadCodec.generate_nonce()

            envelope = EnvelopeFormat.encode(self._vault, passphrase, self._key_material)
            self._set_passphrase(passphrase)
            logger.info(
                "Vault saved (%s): %d entries", envelope.mode, len(self._vault.entries)
            )
            return envelope_to_bytes(envelope)

    def close(self) -> None:
        with self._lock:
            self._vault = PlainVault()
            self._key_material.clear()
            if self._passphrase is not None:
                self._passphrase.clear()
                self._passphrase = None
            self._forget_salt_passphrase()

    # ------------------------------------------------------------------
    #  Entries
    # ------------------------------------------------------------------
    def add_entry(self, entry: Entry) -> None:
        for name in ("site", "username", "secret", "note"):
            if not isinstance(getattr(entry, name, None), str):
                raise TypeError(f"Entry field '{name}' must be a string")
        with self._lock:
            self._vault.entries.append(copy.copy(entry))

    @property
    def entries(self) -> Tuple[Entry, ...]:
        with self._lock:
            return tuple(copy.copy(e) for e in self._vault.entries)

    @property
    def metadata(self) -> VaultMetadata:
        with self._lock:
            return copy.copy(self._vault.metadata)

    @property
    def vault(self) -> PlainVault:
        with self._lock:
            return copy.deepcopy(self._vault)

    @property
    def key_material(self) -> SessionKeyMaterial:
        with self._lock:
            return copy.copy(self._key_material)

    @property
    def is_encrypted(self) -> bool:
        """Whether the next save without an explicit passphrase will encrypt."""
        with self._lock:
            return self._current_passphrase() != ""

    # ------------------------------------------------------------------
    #  Passphrase bookkeeping
    # ------------------------------------------------------------------
    def _set_passphrase(self, passphrase: str) -> None:
        if self._passphrase is not None:
            self._passphrase.clear()
        self._passphrase = SecureMemory(passphrase)

    def _current_passphrase(self) -> str:
        if self._passphrase is None or len(self._passphrase) == 0:
            return ""
        return self._passphrase.get_bytes().decode("utf-8")

    def _salt_matches(self, passphrase: str) -> bool:
        if self._salt_passphrase is None or len(self._salt_passphrase) == 0:
            return False
        return hmac.compare_digest(
            self._salt_passphrase.get_bytes(), passphrase.encode("utf-8")
        )

    def _forget_salt_passphrase(self) -> None:
        if self._salt_passphrase is not None:
            self._salt_passphrase.clear()
            self._salt_passphrase = None
