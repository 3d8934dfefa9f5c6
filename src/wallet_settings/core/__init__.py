# Core Module - Shared Utilities
#
# Shared functionality across the wallet settings modules:
# - Audit logging
# - Configuration
# - Error types
# - SQLite connection helper

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .config import SettingsConfig, NETWORK_MAIN, NETWORK_TEST
from .exceptions import (
    AddressAlreadyPresent,
    DerivationFailure,
    EmptyRegistry,
    InvalidDefaultResource,
    MissingActiveServer,
    SecureStoreError,
    SettingsError,
    TransactionFailure,
)

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    # Configuration
    "SettingsConfig",
    "NETWORK_MAIN",
    "NETWORK_TEST",
    # Errors
    "SettingsError",
    "AddressAlreadyPresent",
    "TransactionFailure",
    "DerivationFailure",
    "MissingActiveServer",
    "EmptyRegistry",
    "InvalidDefaultResource",
    "SecureStoreError",
]
