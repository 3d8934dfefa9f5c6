"""
Wallet Settings Exception Classes
"""

from typing import Optional


class SettingsError(Exception):
    """Base exception for settings, credential and registry operations"""
    pass


class AddressAlreadyPresent(SettingsError):
    """Raised when a server with the given address is already registered"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"A server with address '{address}' is already present")


class TransactionFailure(SettingsError):
    """Reported when a record store transaction fails to commit"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class DerivationFailure(SettingsError):
    """Raised when key derivation rejects its inputs"""
    pass


class MissingActiveServer(SettingsError):
    """Raised when the active server pointer cannot be resolved"""
    pass


class EmptyRegistry(SettingsError):
    """Raised when an operation would leave the server registry empty"""
    pass


class InvalidDefaultResource(SettingsError):
    """Raised when the bundled default server resource is malformed"""
    pass


class SecureStoreError(SettingsError):
    """Raised when the secure credential store cannot be read or written"""
    pass
