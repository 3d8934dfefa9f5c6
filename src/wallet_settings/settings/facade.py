# Settings Facade
# Named accessors for the persisted plain settings the application shell
# and the server registry share. Pure passthrough to SettingsStore.

from typing import Optional

from .store import SettingsStore

# Well-known setting keys
SETUP_STATUS = "setupStatus"
DEFAULT_SERVER_STATUS = "defaultServerStatus"
INVOICE_MESSAGE_PREFIX = "invoiceMessagePrefix"
INVOICE_MESSAGE_POSTFIX = "invoiceMessagePostfix"
INVOICE_DEFAULT_MESSAGE = "invoiceDefaultMessage"
AUTHENTICATION_TOUCH_ID_STATUS = "authenticationTouchIDStatus"
ACTIVE_SERVER = "activeServer"
NOTIFICATION_UPDATE_INTERVAL = "notificationUpdateInterval"


class SettingsFacade:
    """Typed view over the plain settings store.

    Missing strings read as "", missing flags as False and missing
    integers as 0.
    """

    def __init__(self, store: SettingsStore):
        self._store = store

    @property
    def store(self) -> SettingsStore:
        return self._store

    # ── Setup ────────────────────────────────────────────────────────

    def setup_status(self) -> bool:
        return self._store.get_bool(SETUP_STATUS)

    def set_setup_status(self, setup_done: bool) -> None:
        self._store.set_bool(SETUP_STATUS, setup_done)

    def default_server_status(self) -> bool:
        return self._store.get_bool(DEFAULT_SERVER_STATUS)

    def set_default_server_status(self, created_default_servers: bool) -> None:
        self._store.set_bool(DEFAULT_SERVER_STATUS, created_default_servers)

    # ── Invoice messages ─────────────────────────────────────────────

    def invoice_message_prefix(self) -> str:
        return self._store.get_str(INVOICE_MESSAGE_PREFIX)

    def set_invoice_message_prefix(self, prefix: str) -> None:
        self._store.set_str(INVOICE_MESSAGE_PREFIX, prefix)

    def invoice_message_postfix(self) -> str:
        return self._store.get_str(INVOICE_MESSAGE_POSTFIX)

    def set_invoice_message_postfix(self, postfix: str) -> None:
        self._store.set_str(INVOICE_MESSAGE_POSTFIX, postfix)

    def invoice_default_message(self) -> str:
        return self._store.get_str(INVOICE_DEFAULT_MESSAGE)

    def set_invoice_default_message(self, message: str) -> None:
        self._store.set_str(INVOICE_DEFAULT_MESSAGE, message)

    # ── Authentication ───────────────────────────────────────────────

    def authentication_touch_id_status(self) -> bool:
        return self._store.get_bool(AUTHENTICATION_TOUCH_ID_STATUS)

    def set_authentication_touch_id_status(self, enabled: bool) -> None:
        self._store.set_bool(AUTHENTICATION_TOUCH_ID_STATUS, enabled)

    # ── Active server pointer ────────────────────────────────────────

    def active_server(self) -> str:
        """Address of the active server; "" when never set."""
        return self._store.get_str(ACTIVE_SERVER)

    def active_server_address(self) -> Optional[str]:
        """Address of the active server; None when never set."""
        value = self._store.get(ACTIVE_SERVER)
        return value if value else None

    def set_active_server(self, address: str) -> None:
        self._store.set_str(ACTIVE_SERVER, address)

    # ── Notifications ────────────────────────────────────────────────

    def notification_update_interval(self) -> int:
        return self._store.get_int(NOTIFICATION_UPDATE_INTERVAL)

    def set_notification_update_interval(self, interval: int) -> None:
        self._store.set_int(NOTIFICATION_UPDATE_INTERVAL, interval)
