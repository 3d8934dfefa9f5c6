# Settings Manager
#
# Service object tying together the plain settings, the secure credential
# store, the credential manager and the server registry. Built from
# injected handles; `from_config()` wires the default backends.

import logging
from typing import Optional

from .core.audit_log import AuditLogger, set_audit_logger
from .core.config import (
    SECURE_BACKEND_KEYRING,
    SECURE_BACKEND_MEMORY,
    SettingsConfig,
)
from .registry import DefaultServerLoader, RecordStore, ServerRegistry
from .settings import SettingsFacade, SettingsStore
from .vault import (
    CredentialManager,
    EncryptedFileBackend,
    KeyringBackend,
    MemoryBackend,
    SecureCredentialStore,
)

logger = logging.getLogger(__name__)


class SettingsManager:
    """Application settings, credentials and server registry.

    Usage::

        manager = SettingsManager.from_config(SettingsConfig.from_env())
        if not manager.settings.setup_status():
            manager.credentials.set_application_password("correct horse")
        manager.registry.ensure_defaults()
        print(manager.registry.active().url)
        manager.close()
    """

    def __init__(
        self,
        settings: SettingsFacade,
        secure_store: SecureCredentialStore,
        record_store: RecordStore,
        defaults_loader: Optional[DefaultServerLoader] = None,
    ):
        self.settings = settings
        self.secure_store = secure_store
        self.record_store = record_store
        self.credentials = CredentialManager(secure_store, settings)
        self.registry = ServerRegistry(record_store, settings, defaults_loader)

    @classmethod
    def from_config(cls, config: SettingsConfig) -> "SettingsManager":
        """Build a manager with the backends named by `config`."""
        config.data_dir.mkdir(parents=True, exist_ok=True)
        set_audit_logger(AuditLogger(log_dir=config.audit_log_dir))

        if config.secure_backend == SECURE_BACKEND_KEYRING:
            backend = KeyringBackend(config.keyring_service)
        elif config.secure_backend == SECURE_BACKEND_MEMORY:
            backend = MemoryBackend()
        else:
            backend = EncryptedFileBackend(config.secrets_path, config.secrets_key_path)

        manager = cls(
            settings=SettingsFacade(SettingsStore(config.settings_db_path)),
            secure_store=SecureCredentialStore(backend),
            record_store=RecordStore(config.servers_db_path),
            defaults_loader=DefaultServerLoader(config.network, config.defaults_path),
        )
        logger.info(
            "Settings manager ready (network=%s, secure backend=%s)",
            config.network, config.secure_backend,
        )
        return manager

    def close(self) -> None:
        """Wait for pending transactions and stop the record store worker."""
        self.record_store.close()

    def __enter__(self) -> "SettingsManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
