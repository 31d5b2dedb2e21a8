"""EnvelopeFormat: PlainVault <-> Envelope, with the plaintext escape for empty passphrases."""

from __future__ import annotations

import logging

from jsonvault.crypto.engine import AeadCodec
from jsonvault.crypto.formats import EncryptedEnvelope, Envelope, PlaintextEnvelope
from jsonvault.crypto.kdf import derive_key
from jsonvault.vault.models import PlainVault, SessionKeyMaterial

logger = logging.getLogger("jsonvault.envelope")


class EnvelopeFormat:
    """Encodes a vault into an envelope and back.

    An empty passphrase produces a :class:`PlaintextEnvelope`: the vault is
    stored unencrypted and unauthenticated.
    """

    @staticmethod
    def encode(
        vault: PlainVault, passphrase: str, key_material: SessionKeyMaterial
    ) -> Envelope:
        payload = vault.to_bytes()
        if passphrase == "":
            logger.warning("Empty passphrase: vault will be stored unencrypted")
            return PlaintextEnvelope(payload=payload)

        salt = key_material.salt or AeadCodec.generate_salt()
        nonce = key_material.nonce or AeadCodec.generate_nonce()

        key = derive_key(passphrase, salt)
        try:
            ciphertext = AeadCodec.seal(key, nonce, payload)
        finally:
            key.clear()
        logger.info("Vault sealed: %d entries", len(vault.entries))
        return EncryptedEnvelope(salt=salt, nonce=nonce, payload=ciphertext)

    @staticmethod
    def decode(envelope: Envelope, passphrase: str) -> PlainVault:
        if isinstance(envelope, PlaintextEnvelope):
            return PlainVault.from_bytes(envelope.payload)
        if not isinstance(envelope, EncryptedEnvelope):
            raise TypeError(f"Not an envelope: {type(envelope).__name__}")

        key = derive_key(passphrase, envelope.salt)
        try:
            plaintext = AeadCodec.open(key, envelope.nonce, envelope.payload)
        finally:
            key.clear()
        return PlainVault.from_bytes(plaintext)
