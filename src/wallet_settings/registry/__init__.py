# Registry Module - Server Endpoints
#
# Transactional SQLite record store, bundled default servers, and the
# registry that keeps the active server pointer consistent.

from .defaults import DefaultServer, DefaultServerLoader
from .models import ServerRecord, TransactionResult, TransactionStatus
from .record_store import RecordStore, Transaction
from .server_registry import ServerRegistry

__all__ = [
    "DefaultServer",
    "DefaultServerLoader",
    "RecordStore",
    "ServerRecord",
    "ServerRegistry",
    "Transaction",
    "TransactionResult",
    "TransactionStatus",
]
