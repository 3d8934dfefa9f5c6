# Settings Module - Plain Application Settings
#
# SQLite key/value store plus the named accessors for the persisted keys
# (setup status, invoice messages, active server, ...).

from .facade import SettingsFacade
from .store import SettingsStore

__all__ = ["SettingsFacade", "SettingsStore"]
