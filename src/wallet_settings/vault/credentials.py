# Vault - Credential Manager
#
# Sets and verifies the application password.
#
# Storage:
#   authenticationSalt   hex salt, generated once and reused across changes
#   applicationPassword  hex PBKDF2 verifier of the current password
#
# Setting the password also completes the one-time application setup:
# the setupStatus flag and the existence of a password are one event.

import logging
from dataclasses import dataclass
from typing import Optional

from ..core import EventSeverity, EventType, get_audit_logger
from ..core.exceptions import DerivationFailure
from ..settings.facade import SettingsFacade
from .key_derivation import DERIVATION_ROUNDS, KeyDerivation, from_hex, to_hex
from .secure_store import SecureCredentialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Stored password verifier and the salt it was derived with."""
    salt_hex: str
    verifier_hex: str


class CredentialManager:
    """
    Manages the application password.

    Security:
    - Password never stored (only the PBKDF2 verifier)
    - Salt persisted only after a successful derivation
    - Audit logging for every password change and check
    """

    def __init__(
        self,
        secure_store: SecureCredentialStore,
        settings: SettingsFacade,
        rounds: int = DERIVATION_ROUNDS,
    ):
        self.secure_store = secure_store
        self.settings = settings
        self.rounds = rounds
        self.audit = get_audit_logger()

    def set_application_password(self, password: str) -> Credential:
        """
        Derive and store the verifier for a new application password.

        Reuses the stored salt when present, otherwise generates a new
        32-byte salt. On success the setup status flag is set to True.

        Args:
            password: The new application password

        Returns:
            The stored Credential

        Raises:
            DerivationFailure: If derivation fails. Nothing is written.
        """
        salt_hex = self.secure_store.authentication_salt()
        generated = not salt_hex
        if generated:
            salt = KeyDerivation.generate_salt()
        else:
            try:
                salt = from_hex(salt_hex)
            except ValueError as exc:
                self._log_failure("Stored authentication salt is not valid hex")
                raise DerivationFailure("Stored authentication salt is not valid hex") from exc

        try:
            verifier = KeyDerivation.derive(password, salt, self.rounds)
        except DerivationFailure as exc:
            self._log_failure(f"Password derivation failed: {exc}")
            raise

        credential = Credential(salt_hex=to_hex(salt), verifier_hex=to_hex(verifier))

        if generated:
            self.secure_store.set_authentication_salt(credential.salt_hex)
            self.audit.log_event(
                event_type=EventType.SALT_GENERATED,
                severity=EventSeverity.INFO,
                message="Generated new authentication salt",
            )
        self.secure_store.set_application_password_hash(credential.verifier_hex)
        first_setup = not self.settings.setup_status()
        self.settings.set_setup_status(True)
        if first_setup:
            self.audit.log_event(
                event_type=EventType.SETUP_COMPLETED,
                severity=EventSeverity.INFO,
                message="Application setup completed",
            )

        self.audit.log_event(
            event_type=EventType.PASSWORD_SET,
            severity=EventSeverity.INFO,
            message="Application password set",
            details={"salt_reused": not generated, "rounds": self.rounds},
        )
        logger.info("Application password set (salt %s)", "generated" if generated else "reused")
        return credential

    def verify_application_password(self, password: str) -> bool:
        """
        Check a password against the stored verifier.

        Returns:
            True if the password matches, False if it does not or if no
            password was ever set.

        Raises:
            DerivationFailure: If the stored credential cannot be used.
        """
        credential = self.credential()
        if credential is None:
            return False

        try:
            salt = from_hex(credential.salt_hex)
            verifier = from_hex(credential.verifier_hex)
        except ValueError as exc:
            self._log_failure("Stored credential is not valid hex")
            raise DerivationFailure("Stored credential is not valid hex") from exc

        matches = KeyDerivation.verify(password, salt, verifier, self.rounds)
        self.audit.log_event(
            event_type=EventType.PASSWORD_VERIFIED if matches else EventType.PASSWORD_REJECTED,
            severity=EventSeverity.INFO if matches else EventSeverity.WARNING,
            message="Application password verified" if matches else "Application password rejected",
        )
        return matches

    def credential(self) -> Optional[Credential]:
        """Return the stored credential, or None if no password was set."""
        verifier_hex = self.secure_store.application_password()
        salt_hex = self.secure_store.authentication_salt()
        if not verifier_hex or not salt_hex:
            return None
        return Credential(salt_hex=salt_hex, verifier_hex=verifier_hex)

    def has_application_password(self) -> bool:
        return bool(self.secure_store.application_password())

    def _log_failure(self, message: str) -> None:
        self.audit.log_event(
            event_type=EventType.CREDENTIAL_ERROR,
            severity=EventSeverity.CRITICAL,
            message=message,
        )
