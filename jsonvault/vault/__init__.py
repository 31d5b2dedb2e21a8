"""jsonvault vault modules."""

from jsonvault.vault.envelope import EnvelopeFormat
from jsonvault.vault.models import Entry, PlainVault, SessionKeyMaterial, VaultMetadata
from jsonvault.vault.session import VaultSession

__all__ = [
    "EnvelopeFormat",
    "Entry",
    "PlainVault",
    "SessionKeyMaterial",
    "VaultMetadata",
    "VaultSession",
]
