# Core Module - SQLite Connection Helper
#
# settings.db and servers.db are opened per call (the record store worker
# and synchronous readers never share a connection). Every connection gets
# the PRAGMAs below; WAL lets readers see the last commit while the worker
# holds a write transaction.

import sqlite3
from pathlib import Path
from typing import Tuple, Union

BUSY_TIMEOUT_MS = 5000

PRAGMAS: Tuple[str, ...] = (
    "journal_mode=WAL",
    f"busy_timeout={BUSY_TIMEOUT_MS}",
    "foreign_keys=ON",
)


def connect(db_path: Union[str, Path], *, row_factory: bool = False) -> sqlite3.Connection:
    """Open a store database with the shared PRAGMAs applied.

    The connection is closed again if a PRAGMA cannot be applied, and the
    sqlite3 error propagates.
    """
    conn = sqlite3.connect(str(db_path))
    try:
        for pragma in PRAGMAS:
            conn.execute(f"PRAGMA {pragma}")
    except sqlite3.Error:
        conn.close()
        raise
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn
