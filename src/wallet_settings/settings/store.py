# Settings Store
# SQLite-backed key/value store for plain application settings.
# Values are stored as text; typed reads fall back to "" / False / 0.

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from ..core.db import connect as db_connect

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class SettingsStore:
    """SQLite key/value store for plain settings.

    Thread-safe: one connection per call, serialized by a lock.

    Args:
        db_path: Path to SQLite file. Defaults to data/settings.db.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/settings.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_database()

    def _init_database(self):
        with db_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        conn.close()

    def _connect(self) -> sqlite3.Connection:
        return db_connect(self.db_path, row_factory=True)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a setting value by key. Returns default if not found."""
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT value FROM settings WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        if row is None:
            return default
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Set a setting value (upsert)."""
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            conn = self._connect()
            try:
                conn.execute(
                    """INSERT INTO settings (key, value, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, value, now),
                )
                conn.commit()
            finally:
                conn.close()

    def delete(self, key: str) -> bool:
        """Delete a setting. Returns True if the key existed."""
        with self._lock:
            conn = self._connect()
            try:
                cur = conn.execute("DELETE FROM settings WHERE key = ?", (key,))
                conn.commit()
                return cur.rowcount > 0
            finally:
                conn.close()

    def get_all(self) -> Dict[str, str]:
        """Return all settings as a dict."""
        with self._lock:
            conn = self._connect()
            try:
                rows = conn.execute(
                    "SELECT key, value FROM settings ORDER BY key"
                ).fetchall()
            finally:
                conn.close()
        return {row["key"]: row["value"] for row in rows}

    # ── Typed access ─────────────────────────────────────────────────

    def get_str(self, key: str) -> str:
        return self.get(key) or ""

    def set_str(self, key: str, value: str) -> None:
        self.set(key, value)

    def get_bool(self, key: str) -> bool:
        value = self.get(key)
        if value is None:
            return False
        return value.strip().lower() in _TRUE_VALUES

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")

    def get_int(self, key: str) -> int:
        value = self.get(key)
        if value is None:
            return 0
        try:
            return int(value)
        except ValueError:
            logger.warning("Setting %s holds a non-integer value; using 0", key)
            return 0

    def set_int(self, key: str, value: int) -> None:
        self.set(key, str(int(value)))
