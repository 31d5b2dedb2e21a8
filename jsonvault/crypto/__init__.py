"""jsonvault cryptographic modules."""

from jsonvault.crypto.engine import AeadCodec
from jsonvault.crypto.formats import (
    KEY_SIZE,
    NONCE_SIZE,
    SALT_SIZE,
    EncryptedEnvelope,
    Envelope,
    PlaintextEnvelope,
    envelope_from_bytes,
    envelope_to_bytes,
    probe,
)
from jsonvault.crypto.kdf import KeyHandle, derive_key

__all__ = [
    "AeadCodec",
    "KeyHandle",
    "derive_key",
    "KEY_SIZE",
    "NONCE_SIZE",
    "SALT_SIZE",
    "Envelope",
    "PlaintextEnvelope",
    "EncryptedEnvelope",
    "envelope_from_bytes",
    "envelope_to_bytes",
    "probe",
]
