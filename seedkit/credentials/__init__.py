"""Credential seeding: catalog resolution, encryption and reconciliation."""

from seedkit.credentials.encryption import CredentialEncryption, get_encryption
from seedkit.credentials.resolver import CredentialResolver, normalize_entries
from seedkit.credentials.upserter import CredentialUpserter, build_field_data

__all__ = [
    "CredentialEncryption",
    "CredentialResolver",
    "CredentialUpserter",
    "build_field_data",
    "get_encryption",
    "normalize_entries",
]
