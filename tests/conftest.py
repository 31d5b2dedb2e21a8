"""Shared test fixtures."""

from __future__ import annotations

import base64
import json
import secrets

import pytest

from jsonvault.crypto.formats import NONCE_SIZE, PBKDF2_ITERATIONS, SALT_SIZE
from jsonvault.util.rate_limit import RateLimiter
from jsonvault.vault.models import Entry, PlainVault, VaultMetadata
from jsonvault.vault.session import VaultSession

PASSPHRASE = "hunter2"


@pytest.fixture
def passphrase():
    return PASSPHRASE


@pytest.fixture
def sample_entry():
    return Entry(site="example.com", username="alice", secret="s3cr3t", note="")


@pytest.fixture
def sample_vault(sample_entry):
    return PlainVault(
        metadata=VaultMetadata("AES-GCM", "256-bit"),
        entries=[
            sample_entry,
            Entry("github.com", "octocat", "gh_pat_123", "work account"),
            Entry("mail.example.org", "", "pässwörd ✓", "unicode note"),
        ],
    )


@pytest.fixture
def no_sleep_limiter():
    return RateLimiter(max_attempts=50, delay_base=2, sleep=lambda _: None)


@pytest.fixture
def session(no_sleep_limiter):
    s = VaultSession(rate_limiter=no_sleep_limiter)
    yield s
    s.close()


def build_web_vault(passphrase: str, document: dict) -> bytes:
    """Helper: build a vault file byte-for-byte the way the browser tool writes it.

    Uses the ``cryptography`` primitives directly so the codec under test
    is checked against an independent writer.
    """
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM
    from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

    plain = json.dumps(document)
    if not passphrase:
        return json.dumps({"iv": "", "salt": "", "data": plain}, indent=2).encode()

    salt = secrets.token_bytes(SALT_SIZE)
    iv = secrets.token_bytes(NONCE_SIZE)
    key = PBKDF2HMAC(
        algorithm=hashes.SHA256(), length=32, salt=salt, iterations=PBKDF2_ITERATIONS
    ).derive(passphrase.encode())
    ct = AESGCM(key).encrypt(iv, plain.encode(), None)
    store = {
        "iv": base64.b64encode(iv).decode(),
        "salt": base64.b64encode(salt).decode(),
        "data": base64.b64encode(ct).decode(),
    }
    return json.dumps(store, indent=2).encode()
