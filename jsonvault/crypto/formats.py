"""Envelope container (plaintext / encrypted), protocol constants, and the JSON wire codec."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Union

from jsonvault.errors import MalformedEnvelope

# ============================================================================
#  Protocol constants
# ============================================================================
SALT_SIZE = 16  # 128 bits
NONCE_SIZE = 12  # 96 bits (AES-GCM)
KEY_SIZE = 32  # 256 bits
TAG_SIZE = 16  # 128 bits
PBKDF2_ITERATIONS = 100_000

# Wire field names
FIELD_NONCE = "iv"
FIELD_SALT = "salt"
FIELD_DATA = "data"

MODE_PLAINTEXT = "plaintext"
MODE_ENCRYPTED = "encrypted"


# ============================================================================
#  Envelope variants
# ============================================================================
@dataclass(frozen=True)
class PlaintextEnvelope:
    """Unencrypted container: *payload* is the vault JSON itself."""

    payload: bytes

    mode = MODE_PLAINTEXT


@dataclass(frozen=True)
class EncryptedEnvelope:
    """AES-GCM container: *payload* is ciphertext followed by the 16-byte tag."""

    salt: bytes
    nonce: bytes
    payload: bytes

    mode = MODE_ENCRYPTED

    def __post_init__(self):
        if len(self.salt) != SALT_SIZE:
            raise MalformedEnvelope(
                f"Salt must be {SALT_SIZE} bytes, got {len(self.salt)}"
            )
        if len(self.nonce) != NONCE_SIZE:
            raise MalformedEnvelope(
                f"Nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}"
            )
        if len(self.payload) < TAG_SIZE:
            raise MalformedEnvelope("Ciphertext shorter than the authentication tag")


Envelope = Union[PlaintextEnvelope, EncryptedEnvelope]


# ============================================================================
#  Wire codec
# ============================================================================
def envelope_to_bytes(envelope: Envelope) -> bytes:
    """Serialise *envelope* to the ``{"iv", "salt", "data"}`` JSON document."""
    if isinstance(envelope, EncryptedEnvelope):
        doc = {
            FIELD_NONCE: _b64encode(envelope.nonce),
            FIELD_SALT: _b64encode(envelope.salt),
            FIELD_DATA: _b64encode(envelope.payload),
        }
    elif isinstance(envelope, PlaintextEnvelope):
        try:
            text = envelope.payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedEnvelope("Plaintext payload is not valid UTF-8") from exc
        doc = {FIELD_NONCE: "", FIELD_SALT: "", FIELD_DATA: text}
    else:
        raise TypeError(f"Not an envelope: {type(envelope).__name__}")
    return json.dumps(doc, indent=2).encode("utf-8")


def envelope_from_bytes(data: bytes) -> Envelope:
    """Parse raw file bytes into an envelope.

    Structural problems (invalid JSON, missing or non-string fields, bad
    base64, only one of iv/salt present, wrong lengths) raise
    :class:`MalformedEnvelope`. No cryptography happens here.
    """
    try:
        doc = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise MalformedEnvelope("File is not a JSON document") from exc

    if not isinstance(doc, dict):
        raise MalformedEnvelope("Envelope must be a JSON object")

    fields = {}
    for name in (FIELD_NONCE, FIELD_SALT, FIELD_DATA):
        if name not in doc:
            raise MalformedEnvelope(f"Missing field '{name}'")
        if not isinstance(doc[name], str):
            raise MalformedEnvelope(f"Field '{name}' must be a string")
        fields[name] = doc[name]

    iv_text, salt_text, data_text = (
        fields[FIELD_NONCE],
        fields[FIELD_SALT],
        fields[FIELD_DATA],
    )

    if not iv_text and not salt_text:
        return PlaintextEnvelope(payload=data_text.encode("utf-8"))
    if not iv_text or not salt_text:
        raise MalformedEnvelope("Envelope has a salt without a nonce or vice versa")

    return EncryptedEnvelope(
        salt=_b64decode(salt_text, FIELD_SALT),
        nonce=_b64decode(iv_text, FIELD_NONCE),
        payload=_b64decode(data_text, FIELD_DATA),
    )


def probe(data: bytes) -> str:
    """Return the envelope mode of *data* without decrypting anything."""
    return envelope_from_bytes(data).mode


# -- helpers ----------------------------------------------------------------
def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str, field: str) -> bytes:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise MalformedEnvelope(f"Field '{field}' is not valid base64") from exc
