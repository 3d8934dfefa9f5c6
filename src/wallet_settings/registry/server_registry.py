# Server Registry
#
# CRUD over the endpoints the application may talk to, plus:
#   - the active server pointer (an address kept in the plain settings)
#   - the one-time bootstrap of the bundled default servers
#
# Invariants:
#   - no two records share an address (UNIQUE inside the record store)
#   - once bootstrapped the registry never becomes empty; deleting the last
#     record raises EmptyRegistry
#   - a non-empty registry's pointer references an existing record; deleting
#     the active record moves the pointer to the first remaining record
#     as seen by the delete transaction itself
#
# Mutations are two-phase: the record transaction commits first, then the
# derived pointer/flag writes run. The second phase only ever overwrites the
# same values, so re-running it after an interruption is safe.

import logging
from concurrent.futures import Future
from typing import List, Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger
from ..core.exceptions import AddressAlreadyPresent, EmptyRegistry, MissingActiveServer
from ..settings.facade import SettingsFacade
from .defaults import DefaultServerLoader
from .models import ServerRecord, TransactionResult
from .record_store import CompletionHandler, RecordStore, Transaction

logger = logging.getLogger(__name__)


class ServerRegistry:
    """Endpoint registry with an active server pointer.

    Reads are synchronous snapshots. Mutations return a Future and call the
    optional completion handler exactly once with a TransactionResult.

    Usage::

        registry = ServerRegistry(RecordStore(), settings, DefaultServerLoader())
        registry.ensure_defaults()
        registry.validate_uniqueness("node.example.org")
        registry.create("node.example.org", "https", "7891").result()
        registry.set_active("node.example.org")
        registry.active().url
    """

    def __init__(
        self,
        record_store: RecordStore,
        settings: SettingsFacade,
        defaults_loader: Optional[DefaultServerLoader] = None,
    ):
        self._store = record_store
        self._settings = settings
        self._defaults_loader = defaults_loader or DefaultServerLoader()
        self.audit = get_audit_logger()

    # ── Reads ────────────────────────────────────────────────────────

    def list_servers(self) -> List[ServerRecord]:
        """All records, in insertion order."""
        return self._store.fetch_all()

    def get(self, address: str) -> Optional[ServerRecord]:
        return self._store.fetch(address)

    def default_servers(self) -> List[ServerRecord]:
        return [s for s in self.list_servers() if s.is_default]

    def validate_uniqueness(self, address: str) -> bool:
        """Check that no registered server uses `address`.

        Call before create(). The record store also rejects duplicates at
        commit time, which covers two creates racing past this check.

        Raises:
            AddressAlreadyPresent: On the first record with that address.
        """
        for server in self.list_servers():
            if server.address == address:
                raise AddressAlreadyPresent(server.address)
        return True

    # ── Active server ────────────────────────────────────────────────

    def set_active(self, server: Union[ServerRecord, str]) -> None:
        """Point the active server at a record or address (no existence check)."""
        address = server.address if isinstance(server, ServerRecord) else server
        self._settings.set_active_server(address)
        self.audit.log_server_event(EventType.ACTIVE_SERVER_CHANGED, address)
        logger.info("Active server set to %s", address)

    def active(self) -> ServerRecord:
        """Resolve the active server pointer.

        Raises:
            MissingActiveServer: If no pointer was set or it references an
                address that is not in the registry.
        """
        address = self._settings.active_server_address()
        if address is None:
            raise MissingActiveServer("No active server has been set")
        server = self._store.fetch(address)
        if server is None:
            raise MissingActiveServer(f"Active server '{address}' is not in the registry")
        return server

    def active_or_none(self) -> Optional[ServerRecord]:
        try:
            return self.active()
        except MissingActiveServer:
            return None

    def is_active(self, server: Union[ServerRecord, str]) -> bool:
        address = server.address if isinstance(server, ServerRecord) else server
        return self._settings.active_server_address() == address

    # ── Mutations ────────────────────────────────────────────────────

    def create(
        self,
        address: str,
        protocol_type: str,
        port: str,
        completion: Optional[CompletionHandler] = None,
    ) -> "Future[TransactionResult]":
        """Insert one non-default server.

        Does not pre-check the address; call validate_uniqueness() first.
        A duplicate still fails the transaction with AddressAlreadyPresent
        as the cause.
        """
        record = ServerRecord(
            address=address,
            protocol_type=protocol_type,
            port=port,
            is_default=False,
        )

        def work(tx: Transaction) -> None:
            tx.create(record)

        return self._store.begin(
            work,
            completion=self._reporting(
                completion, EventType.SERVER_CREATED, address, details=record.to_dict()
            ),
        )

    def create_defaults(
        self,
        completion: Optional[CompletionHandler] = None,
    ) -> "Future[TransactionResult]":
        """Install the bundled default servers in one transaction.

        On commit the first inserted default becomes active and the
        defaultServerStatus flag is set. On failure nothing changes.
        """
        inserted: List[ServerRecord] = []

        def work(tx: Transaction) -> None:
            for default in self._defaults_loader.load():
                inserted.append(tx.create(default.to_record()))

        def after_commit() -> None:
            self._finish_defaults(inserted[0])

        return self._store.begin(
            work,
            completion=self._reporting(
                completion,
                EventType.DEFAULT_SERVERS_CREATED,
                self._defaults_loader.network,
                details={"network": self._defaults_loader.network},
            ),
            after_commit=after_commit,
        )

    def ensure_defaults(
        self,
        completion: Optional[CompletionHandler] = None,
    ) -> Optional["Future[TransactionResult]"]:
        """Bootstrap default servers unless that already happened.

        Returns None (and does not call `completion`) when no transaction
        is needed. If defaults were committed but the follow-up writes never
        ran, those writes are completed here instead of re-inserting.
        """
        if self._settings.default_server_status():
            return None

        defaults = self.default_servers()
        if defaults:
            logger.info("Default servers present without status flag; finishing bootstrap")
            self._finish_defaults(defaults[0])
            return None

        return self.create_defaults(completion)

    def delete(
        self,
        server: ServerRecord,
        completion: Optional[CompletionHandler] = None,
    ) -> "Future[TransactionResult]":
        """Delete a server.

        If it is the active server, the pointer moves to the first server
        remaining after the commit, before any later transaction runs.

        The last-server check is repeated inside the transaction, so deletes
        queued back to back cannot empty the registry: the one that would
        fails with EmptyRegistry as the cause.

        Raises:
            EmptyRegistry: If it is the last remaining server. Nothing changes.
        """
        address = server.address
        servers = self.list_servers()
        if [s.address for s in servers] == [address]:
            raise EmptyRegistry(f"Cannot delete '{address}': it is the last remaining server")

        successor: List[ServerRecord] = []

        def work(tx: Transaction) -> None:
            current = tx.fetch_all()
            remaining = [s for s in current if s.address != address]
            if len(remaining) == len(current):
                raise KeyError(f"No server with address '{address}'")
            if not remaining:
                raise EmptyRegistry(
                    f"Cannot delete '{address}': it is the last remaining server"
                )
            tx.delete(address)
            successor.append(remaining[0])

        def after_commit() -> None:
            if self.is_active(address):
                self.set_active(successor[0])

        return self._store.begin(
            work,
            completion=self._reporting(completion, EventType.SERVER_DELETED, address),
            after_commit=after_commit,
        )

    def update(
        self,
        server: ServerRecord,
        protocol_type: str,
        address: str,
        port: str,
        completion: Optional[CompletionHandler] = None,
    ) -> "Future[TransactionResult]":
        """Change protocol type, address and port of a server.

        If the server is active and its address changes, the pointer follows
        the new address after the transaction commits.
        """
        old_address = server.address

        def work(tx: Transaction) -> None:
            tx.edit(old_address, protocol_type, address, port)

        def after_commit() -> None:
            if address != old_address and self.is_active(old_address):
                self.set_active(address)

        return self._store.begin(
            work,
            completion=self._reporting(
                completion,
                EventType.SERVER_UPDATED,
                old_address,
                details={"new_address": address},
            ),
            after_commit=after_commit,
        )

    # ── Internal ─────────────────────────────────────────────────────

    def _finish_defaults(self, first: ServerRecord) -> None:
        """Second bootstrap phase: point at the first default, raise the flag."""
        self.set_active(first)
        self._settings.set_default_server_status(True)

    def _reporting(
        self,
        completion: Optional[CompletionHandler],
        event_type: EventType,
        subject: str,
        details: Optional[dict] = None,
    ) -> CompletionHandler:
        """Wrap a completion handler with audit logging of the outcome."""

        def _complete(result: TransactionResult) -> None:
            try:
                if result.succeeded:
                    self.audit.log_server_event(event_type, subject, details=details)
                else:
                    failure_details = dict(details or {})
                    failure_details["operation"] = event_type.value
                    failure_details["error"] = str(result.error)
                    self.audit.log_server_event(
                        EventType.TRANSACTION_FAILED,
                        subject,
                        severity=EventSeverity.WARNING,
                        details=failure_details,
                    )
            finally:
                if completion is not None:
                    completion(result)

        return _complete
