"""Vault document model: Entry, VaultMetadata, PlainVault, SessionKeyMaterial."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jsonvault.errors import SerializationError

DEFAULT_ALGORITHM_LABEL = "AES-GCM"
DEFAULT_SECURITY_LEVEL = "256-bit"


@dataclass
class Entry:
    """One credential record. Identity is its position in the vault."""

    site: str
    username: str
    secret: str
    note: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "website": self.site,
            "username": self.username,
            "password": self.secret,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> Entry:
        if not isinstance(data, dict):
            raise SerializationError("Entry must be a JSON object")
        try:
            site = data["website"]
            secret = data["password"]
        except KeyError as exc:
            raise SerializationError(f"Entry is missing field {exc}") from None
        values = (site, data.get("username", ""), secret, data.get("note", ""))
        if not all(isinstance(v, str) for v in values):
            raise SerializationError("Entry fields must be strings")
        return cls(*values)

    def __repr__(self) -> str:
        return f"Entry(site={self.site!r}, username={self.username!r}, secret='***')"


@dataclass
class VaultMetadata:
    """Descriptive labels stored with the vault. They never pick the cipher."""

    algorithm_label: str = DEFAULT_ALGORITHM_LABEL
    security_level: str = DEFAULT_SECURITY_LEVEL

    def to_dict(self) -> Dict[str, str]:
        return {"algorithm": self.algorithm_label, "securityLevel": self.security_level}

    @classmethod
    def from_dict(cls, data: Dict) -> VaultMetadata:
        if not isinstance(data, dict):
            raise SerializationError("Metadata must be a JSON object")
        meta = cls(
            data.get("algorithm", DEFAULT_ALGORITHM_LABEL),
            data.get("securityLevel", DEFAULT_SECURITY_LEVEL),
        )
        if not isinstance(meta.algorithm_label, str) or not isinstance(
            meta.security_level, str
        ):
            raise SerializationError("Metadata fields must be strings")
        return meta


@dataclass
class PlainVault:
    """Logical vault content: metadata plus ordered entries."""

    metadata: VaultMetadata = field(default_factory=VaultMetadata)
    entries: List[Entry] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "metadata": self.metadata.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> PlainVault:
        if not isinstance(data, dict):
            raise SerializationError("Vault document must be a JSON object")
        raw_meta = data.get("metadata")
        metadata = VaultMetadata() if raw_meta is None else VaultMetadata.from_dict(raw_meta)
        raw_entries = data.get("entries", [])
        if not isinstance(raw_entries, list):
            raise SerializationError("'entries' must be a list")
        return cls(metadata, [Entry.from_dict(e) for e in raw_entries])

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> PlainVault:
        try:
            doc = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
            raise SerializationError("Vault content is not valid JSON") from exc
        return cls.from_dict(doc)


@dataclass
class SessionKeyMaterial:
    """Salt and nonce last used (or loaded) by a session."""

    salt: Optional[bytes] = None
    nonce: Optional[bytes] = None

    @property
    def is_empty(self) -> bool:
        return self.salt is None and self.nonce is None

    def clear(self) -> None:
        self.salt = None
        self.nonce = None
