# Vault Module - Application Password
#
# PBKDF2 verifier derivation, the protected secret store that holds the
# verifier and salt, and the manager that ties them to the setup flag.

from .credentials import Credential, CredentialManager
from .key_derivation import DERIVATION_ROUNDS, KeyDerivation, derive
from .secure_store import (
    EncryptedFileBackend,
    KeyringBackend,
    MemoryBackend,
    SecureCredentialStore,
)

__all__ = [
    "Credential",
    "CredentialManager",
    "DERIVATION_ROUNDS",
    "KeyDerivation",
    "derive",
    "EncryptedFileBackend",
    "KeyringBackend",
    "MemoryBackend",
    "SecureCredentialStore",
]
