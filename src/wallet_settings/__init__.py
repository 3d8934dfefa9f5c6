# Wallet Settings - Main Package
#
# Application-local credential and server registry manager:
# - application password verifier (PBKDF2) in a protected secret store
# - server endpoints with an active server pointer and bundled defaults
# - plain persisted application settings

__version__ = "0.3.0"
__author__ = "Wallet Settings Team"
__description__ = "Application password and server registry manager"

from .core import (
    AddressAlreadyPresent,
    DerivationFailure,
    EmptyRegistry,
    MissingActiveServer,
    SettingsConfig,
    SettingsError,
    TransactionFailure,
)
from .manager import SettingsManager
from .registry import ServerRecord, ServerRegistry, TransactionResult
from .vault import Credential, CredentialManager, SecureCredentialStore

__all__ = [
    "__version__",
    "SettingsManager",
    "SettingsConfig",
    "ServerRecord",
    "ServerRegistry",
    "TransactionResult",
    "Credential",
    "CredentialManager",
    "SecureCredentialStore",
    "SettingsError",
    "AddressAlreadyPresent",
    "TransactionFailure",
    "DerivationFailure",
    "MissingActiveServer",
    "EmptyRegistry",
]
