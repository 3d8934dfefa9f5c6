# Wallet Settings Configuration
#
# Values come from the environment (optionally seeded from a .env file):
#
#   WALLET_SETTINGS_DATA_DIR         directory for settings.db / servers.db / secrets
#   WALLET_SETTINGS_NETWORK          "mainnet" | "testnet"
#   WALLET_SETTINGS_SECURE_BACKEND   "file" | "keyring" | "memory"
#   WALLET_SETTINGS_KEYRING_SERVICE  service name used in the OS keyring
#   WALLET_SETTINGS_AUDIT_DIR        directory for the daily audit log files
#   WALLET_SETTINGS_DEFAULTS_PATH    override for the bundled default servers
#
# Never put secret material in the environment: the password verifier and
# salt only ever live in the secure store.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "WALLET_SETTINGS_"

NETWORK_MAIN = "mainnet"
NETWORK_TEST = "testnet"
NETWORKS = (NETWORK_MAIN, NETWORK_TEST)

SECURE_BACKEND_FILE = "file"
SECURE_BACKEND_KEYRING = "keyring"
SECURE_BACKEND_MEMORY = "memory"
SECURE_BACKENDS = (SECURE_BACKEND_FILE, SECURE_BACKEND_KEYRING, SECURE_BACKEND_MEMORY)

DEFAULT_KEYRING_SERVICE = "wallet-settings"


@dataclass(frozen=True)
class SettingsConfig:
    """Validated wallet settings configuration."""

    data_dir: Path = Path("data")
    network: str = NETWORK_MAIN
    secure_backend: str = SECURE_BACKEND_FILE
    keyring_service: str = DEFAULT_KEYRING_SERVICE
    audit_dir: Optional[Path] = None
    defaults_path: Optional[Path] = None

    def __post_init__(self):
        if self.network not in NETWORKS:
            raise ValueError(
                f"Unsupported network: {self.network!r} (expected one of {NETWORKS})"
            )
        if self.secure_backend not in SECURE_BACKENDS:
            raise ValueError(
                f"Unsupported secure backend: {self.secure_backend!r} "
                f"(expected one of {SECURE_BACKENDS})"
            )
        if not self.keyring_service:
            raise ValueError("keyring_service cannot be empty")

    @property
    def is_test_network(self) -> bool:
        return self.network == NETWORK_TEST

    @property
    def settings_db_path(self) -> Path:
        return self.data_dir / "settings.db"

    @property
    def servers_db_path(self) -> Path:
        return self.data_dir / "servers.db"

    @property
    def secrets_path(self) -> Path:
        return self.data_dir / "secrets.vault"

    @property
    def secrets_key_path(self) -> Path:
        return self.data_dir / "secrets.key"

    @property
    def audit_log_dir(self) -> Path:
        return self.audit_dir or self.data_dir / "audit_logs"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "SettingsConfig":
        """Create a SettingsConfig from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (no .env loading
                happens when a mapping is given).
            dotenv_path: Explicit .env file; defaults to searching upward
                from the working directory.

        Returns:
            Populated SettingsConfig instance.

        Raises:
            ValueError: If a value is not supported.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        def _get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return default
            return value.strip()

        data_dir = Path(_get("DATA_DIR", "data"))
        audit_dir = _get("AUDIT_DIR")
        defaults_path = _get("DEFAULTS_PATH")

        config = cls(
            data_dir=data_dir,
            network=_get("NETWORK", NETWORK_MAIN).lower(),
            secure_backend=_get("SECURE_BACKEND", SECURE_BACKEND_FILE).lower(),
            keyring_service=_get("KEYRING_SERVICE", DEFAULT_KEYRING_SERVICE),
            audit_dir=Path(audit_dir) if audit_dir else None,
            defaults_path=Path(defaults_path) if defaults_path else None,
        )
        logger.debug(
            "Loaded settings config: data_dir=%s network=%s secure_backend=%s",
            config.data_dir, config.network, config.secure_backend,
        )
        return config
