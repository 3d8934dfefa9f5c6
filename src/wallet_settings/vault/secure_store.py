# Vault - Secure Credential Store
#
# Restart-durable key/value store for secrets (password verifier, salt).
# The protection itself comes from the backend:
#   - EncryptedFileBackend: Fernet-encrypted JSON file, owner-only permissions
#   - KeyringBackend: the OS credential store via `keyring`
#   - MemoryBackend: in-process only (tests, ephemeral shells)
#
# Individual set/get calls are atomic; multi-key sequences are not.

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

import keyring
from cryptography.fernet import Fernet, InvalidToken
from keyring.errors import KeyringError, PasswordDeleteError

from ..core.exceptions import SecureStoreError

logger = logging.getLogger(__name__)

# Well-known secure store keys
KEY_APPLICATION_PASSWORD = "applicationPassword"
KEY_AUTHENTICATION_SALT = "authenticationSalt"


class MemoryBackend:
    """Secrets kept in a process-local dict."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self._values)


class EncryptedFileBackend:
    """Secrets kept in a Fernet-encrypted JSON file.

    The Fernet key is generated on first use and written next to the vault
    file. Both files are restricted to the owner (0600).

    Args:
        vault_path: Encrypted vault file.
        key_path: Fernet key file. Defaults to ``<vault_path>.key``.
    """

    def __init__(self, vault_path: Union[str, Path], key_path: Optional[Union[str, Path]] = None):
        self.vault_path = Path(vault_path)
        self.key_path = Path(key_path) if key_path else self.vault_path.with_suffix(".key")
        self.vault_path.parent.mkdir(parents=True, exist_ok=True)
        self.key_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.cipher = Fernet(self._load_or_create_key())
        except (TypeError, ValueError) as exc:
            raise SecureStoreError(
                f"Secure store key file {self.key_path} is not a valid Fernet key"
            ) from exc
        self._values = self._load_vault()

    def _load_or_create_key(self) -> bytes:
        """Read the Fernet key, creating it on first use."""
        if self.key_path.exists():
            return self.key_path.read_bytes().strip()
        key = Fernet.generate_key()
        self._write_private(self.key_path, key)
        logger.info("Generated secure store key at %s", self.key_path)
        return key

    def _load_vault(self) -> Dict[str, str]:
        """Load existing vault or start an empty one."""
        if not self.vault_path.exists():
            return {}
        encrypted = self.vault_path.read_bytes()
        try:
            decrypted = self.cipher.decrypt(encrypted)
        except InvalidToken as exc:
            raise SecureStoreError(
                f"Failed to decrypt secure store {self.vault_path}: wrong key or corrupted file"
            ) from exc
        try:
            values = json.loads(decrypted.decode("utf-8"))
        except ValueError as exc:
            raise SecureStoreError(f"Secure store {self.vault_path} is not valid JSON") from exc
        if not isinstance(values, dict):
            raise SecureStoreError(f"Secure store {self.vault_path} must contain an object")
        return {str(k): str(v) for k, v in values.items()}

    def _save_vault(self) -> None:
        """Encrypt and atomically replace the vault file."""
        payload = json.dumps(self._values, sort_keys=True).encode("utf-8")
        tmp_path = self.vault_path.with_name(self.vault_path.name + ".tmp")
        self._write_private(tmp_path, self.cipher.encrypt(payload))
        os.replace(tmp_path, self.vault_path)

    @staticmethod
    def _write_private(path: Path, data: bytes) -> None:
        fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(path, 0o600)

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        previous = self._values.get(key)
        self._values[key] = value
        try:
            self._save_vault()
        except OSError as exc:
            if previous is None:
                self._values.pop(key, None)
            else:
                self._values[key] = previous
            raise SecureStoreError(f"Failed to write secure store: {exc}") from exc

    def delete(self, key: str) -> bool:
        if key not in self._values:
            return False
        previous = self._values.pop(key)
        try:
            self._save_vault()
        except OSError as exc:
            self._values[key] = previous
            raise SecureStoreError(f"Failed to write secure store: {exc}") from exc
        return True

    def keys(self) -> List[str]:
        return sorted(self._values)


class KeyringBackend:
    """Secrets kept in the OS credential store through ``keyring``.

    The keyring API cannot enumerate entries, so the stored key names are
    tracked in an index entry under the same service.
    """

    INDEX_KEY = "__wallet_settings_index__"

    def __init__(self, service_name: str):
        if not service_name:
            raise ValueError("Keyring service name cannot be empty")
        self.service_name = service_name

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError as exc:
            raise SecureStoreError(f"Keyring read failed for '{key}': {exc}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            keyring.set_password(self.service_name, key, value)
        except KeyringError as exc:
            raise SecureStoreError(f"Keyring write failed for '{key}': {exc}") from exc
        index = self._read_index()
        if key not in index:
            index.append(key)
            self._write_index(index)

    def delete(self, key: str) -> bool:
        try:
            keyring.delete_password(self.service_name, key)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise SecureStoreError(f"Keyring delete failed for '{key}': {exc}") from exc
        index = self._read_index()
        if key in index:
            index.remove(key)
            self._write_index(index)
        return True

    def keys(self) -> List[str]:
        return sorted(self._read_index())

    def _read_index(self) -> List[str]:
        raw = self.get(self.INDEX_KEY)
        if not raw:
            return []
        try:
            names = json.loads(raw)
        except ValueError:
            logger.warning("Keyring index for %s is corrupted; rebuilding", self.service_name)
            return []
        return [str(n) for n in names] if isinstance(names, list) else []

    def _write_index(self, names: List[str]) -> None:
        try:
            keyring.set_password(self.service_name, self.INDEX_KEY, json.dumps(sorted(names)))
        except KeyringError as exc:
            raise SecureStoreError(f"Keyring index write failed: {exc}") from exc


class SecureCredentialStore:
    """Thread-safe secret store in front of a protected backend.

    Usage::

        store = SecureCredentialStore(EncryptedFileBackend("data/secrets.vault"))
        store.set_authentication_salt(salt_hex)
        store.authentication_salt()      # -> "ab12..." or None
        store.application_password()     # -> "" when never set
    """

    def __init__(self, backend):
        self._backend = backend
        self._lock = threading.Lock()

    @property
    def backend(self):
        return self._backend

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never set."""
        with self._lock:
            return self._backend.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value (overwrites)."""
        if not key:
            raise ValueError("Secure store key cannot be empty")
        if not isinstance(value, str):
            raise TypeError("Secure store values must be strings")
        with self._lock:
            self._backend.set(key, value)
        logger.debug("Secure store set: key=%s", key)

    def delete(self, key: str) -> bool:
        """Remove a value. Returns True if the key existed."""
        with self._lock:
            return self._backend.delete(key)

    def keys(self) -> List[str]:
        """List the stored key names (never values)."""
        with self._lock:
            return self._backend.keys()

    # ── Typed accessors ──────────────────────────────────────────────

    def application_password(self) -> str:
        """Hex verifier of the application password; "" when never set."""
        return self.get(KEY_APPLICATION_PASSWORD) or ""

    def set_application_password_hash(self, verifier_hex: str) -> None:
        self.set(KEY_APPLICATION_PASSWORD, verifier_hex)

    def authentication_salt(self) -> Optional[str]:
        """Hex salt; None when no salt was ever stored."""
        return self.get(KEY_AUTHENTICATION_SALT)

    def set_authentication_salt(self, salt_hex: str) -> None:
        self.set(KEY_AUTHENTICATION_SALT, salt_hex)
