# Server Registry - Transactional Record Store
#
# SQLite-backed store for ServerRecords with asynchronous transactions.
#
#   - begin(work, completion) runs `work(transaction)` on a single worker
#     thread and commits atomically (all-or-nothing)
#   - the completion handler is called exactly once per transaction with a
#     TransactionResult, after the initiating call has returned
#   - fetch_all()/fetch() are synchronous reads on the caller's thread and
#     are NOT sequenced against in-flight transactions
#
# Records keep their insertion order (autoincrement id), which is the
# registry's deterministic "first record" order. The address column is
# UNIQUE, so duplicate addresses are rejected inside the transaction.

import logging
import sqlite3
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..core.db import connect as db_connect
from ..core.exceptions import AddressAlreadyPresent, TransactionFailure
from .models import ServerRecord, TransactionResult

logger = logging.getLogger(__name__)

CompletionHandler = Callable[[TransactionResult], None]


class Transaction:
    """Write access to the record store inside one atomic transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def create(self, record: ServerRecord) -> ServerRecord:
        """Insert a record.

        Raises:
            AddressAlreadyPresent: If the address is already stored.
        """
        try:
            self._conn.execute(
                """INSERT INTO servers (address, protocol_type, port, is_default)
                   VALUES (?, ?, ?, ?)""",
                (record.address, record.protocol_type, record.port, int(record.is_default)),
            )
        except sqlite3.IntegrityError as exc:
            raise AddressAlreadyPresent(record.address) from exc
        return record

    def edit(
        self,
        address: str,
        protocol_type: str,
        new_address: str,
        port: str,
    ) -> ServerRecord:
        """Change the mutable fields of the record stored under `address`.

        Raises:
            KeyError: If no record has that address.
            AddressAlreadyPresent: If `new_address` belongs to another record.
        """
        try:
            cursor = self._conn.execute(
                """UPDATE servers SET protocol_type = ?, address = ?, port = ?
                   WHERE address = ?""",
                (protocol_type, new_address, port, address),
            )
        except sqlite3.IntegrityError as exc:
            raise AddressAlreadyPresent(new_address) from exc
        if cursor.rowcount == 0:
            raise KeyError(f"No server with address '{address}'")
        return self.fetch(new_address)

    def delete(self, address: str) -> bool:
        """Delete the record stored under `address`. Returns True if it existed."""
        cursor = self._conn.execute("DELETE FROM servers WHERE address = ?", (address,))
        return cursor.rowcount > 0

    def fetch(self, address: str) -> Optional[ServerRecord]:
        row = self._conn.execute(
            "SELECT * FROM servers WHERE address = ?", (address,)
        ).fetchone()
        return ServerRecord.from_row(row) if row else None

    def fetch_all(self) -> List[ServerRecord]:
        rows = self._conn.execute("SELECT * FROM servers ORDER BY id ASC").fetchall()
        return [ServerRecord.from_row(r) for r in rows]


class RecordStore:
    """SQLite record store with one-transaction-at-a-time async commits.

    Usage::

        store = RecordStore("data/servers.db")
        future = store.begin(lambda tx: tx.create(record), completion=on_done)
        result = future.result()      # TransactionResult
        store.close()
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/servers.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-store")
        self._closed = False
        self._lock = threading.Lock()
        self._init_database()

    def _init_database(self):
        """Create tables if they don't exist."""
        conn = db_connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS servers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    address TEXT NOT NULL UNIQUE,
                    protocol_type TEXT NOT NULL,
                    port TEXT NOT NULL,
                    is_default INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.commit()
        finally:
            conn.close()

    # ── Transactions ─────────────────────────────────────────────────

    def begin(
        self,
        work: Callable[[Transaction], None],
        completion: Optional[CompletionHandler] = None,
        after_commit: Optional[Callable[[], None]] = None,
    ) -> "Future[TransactionResult]":
        """Run `work` inside one transaction on the worker thread.

        Args:
            work: Receives a Transaction; raising rolls everything back.
            completion: Called exactly once with the TransactionResult.
            after_commit: Follow-up step run after a successful commit and
                before `completion`. If it raises, the result is a failure
                even though the records were committed.

        Returns:
            Future resolving to the same TransactionResult the completion
            handler receives.

        Raises:
            RuntimeError: If the store has been closed.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Record store is closed")
            return self._executor.submit(self._run, work, completion, after_commit)

    def _run(
        self,
        work: Callable[[Transaction], None],
        completion: Optional[CompletionHandler],
        after_commit: Optional[Callable[[], None]],
    ) -> TransactionResult:
        result = self._execute(work)

        if result.succeeded and after_commit is not None:
            try:
                after_commit()
            except Exception as exc:
                logger.error("Post-commit step failed: %s", exc)
                result = TransactionResult.failure(
                    TransactionFailure(f"Committed, but post-commit step failed: {exc}", cause=exc)
                )

        if completion is not None:
            try:
                completion(result)
            except Exception:
                logger.exception("Transaction completion handler raised")
        return result

    def _execute(self, work: Callable[[Transaction], None]) -> TransactionResult:
        """Run `work` and commit, or roll back on any error.

        Failing to open the database is reported like any other failure.
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = db_connect(self.db_path, row_factory=True)
            conn.execute("BEGIN IMMEDIATE")
            work(Transaction(conn))
            conn.commit()
            return TransactionResult.success()
        except Exception as exc:
            if conn is not None and conn.in_transaction:
                conn.rollback()
            if isinstance(exc, TransactionFailure):
                failure = exc
            else:
                failure = TransactionFailure(f"Transaction rolled back: {exc}", cause=exc)
            logger.warning("Record store transaction failed: %s", exc)
            return TransactionResult.failure(failure)
        finally:
            if conn is not None:
                conn.close()

    # ── Reads ────────────────────────────────────────────────────────

    def fetch_all(self) -> List[ServerRecord]:
        """Snapshot of every record, in insertion order."""
        conn = db_connect(self.db_path, row_factory=True)
        try:
            return Transaction(conn).fetch_all()
        finally:
            conn.close()

    def fetch(self, address: str) -> Optional[ServerRecord]:
        conn = db_connect(self.db_path, row_factory=True)
        try:
            return Transaction(conn).fetch(address)
        finally:
            conn.close()

    # ── Lifecycle ────────────────────────────────────────────────────

    def close(self, wait: bool = True) -> None:
        """Stop accepting transactions; by default wait for pending ones."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
