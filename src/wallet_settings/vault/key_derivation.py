# Vault - Key Derivation
#
# Application password → verifier (PBKDF2-HMAC-SHA256)
# The verifier is what gets stored; the password never is.
# Same (password, salt, rounds) always yields the same verifier, which is
# how later logins are checked.

import hmac
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..core.exceptions import DerivationFailure

DERIVATION_ROUNDS = 2000  # Application policy, shared by every installation
KEY_LENGTH = 32  # 256-bit verifier
SALT_LENGTH = 32  # 256-bit salt


class KeyDerivation:
    """
    Derives password verifiers.

    Flow:
    1. Salt is read from the secure store (or generated once)
    2. PBKDF2 derives a 256-bit verifier from password + salt
    3. The hex-encoded verifier is stored in the secure store
    4. Login re-derives and compares in constant time
    """

    ROUNDS = DERIVATION_ROUNDS
    KEY_LENGTH = KEY_LENGTH
    SALT_LENGTH = SALT_LENGTH

    @staticmethod
    def derive(password: str, salt: bytes, rounds: int = DERIVATION_ROUNDS) -> bytes:
        """
        Derive a verifier from a password using PBKDF2.

        Args:
            password: The application password
            salt: Installation salt (stored in the secure store)
            rounds: PBKDF2 iteration count

        Returns:
            32-byte verifier

        Raises:
            DerivationFailure: If the primitive rejects its inputs
        """
        if not isinstance(password, str):
            raise DerivationFailure(
                f"Password must be a string, got {type(password).__name__}"
            )
        if not isinstance(salt, (bytes, bytearray)) or len(salt) == 0:
            raise DerivationFailure("Salt must be a non-empty byte string")
        if not isinstance(rounds, int) or isinstance(rounds, bool) or rounds < 1:
            raise DerivationFailure(f"Round count must be a positive integer, got {rounds!r}")

        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=KEY_LENGTH,
                salt=bytes(salt),
                iterations=rounds,
            )
            return kdf.derive(password.encode('utf-8'))
        except (TypeError, ValueError) as exc:
            raise DerivationFailure(f"Key derivation failed: {exc}") from exc

    @staticmethod
    def verify(
        password: str,
        salt: bytes,
        verifier: bytes,
        rounds: int = DERIVATION_ROUNDS,
    ) -> bool:
        """Check a password against a stored verifier in constant time."""
        candidate = KeyDerivation.derive(password, salt, rounds)
        return hmac.compare_digest(candidate, verifier)

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically random salt."""
        return os.urandom(SALT_LENGTH)


def derive(password: str, salt: bytes, rounds: int = DERIVATION_ROUNDS) -> bytes:
    """Module-level shortcut for KeyDerivation.derive()."""
    return KeyDerivation.derive(password, salt, rounds)


def to_hex(data: bytes) -> str:
    """Encode bytes as lower-case hex for the secure store."""
    return bytes(data).hex()


def from_hex(data: str) -> bytes:
    """Decode a hex string read back from the secure store.

    Raises:
        ValueError: If the string is not valid hex.
    """
    try:
        return bytes.fromhex(data)
    except (TypeError, ValueError):
        raise ValueError("Invalid hex-encoded value") from None
