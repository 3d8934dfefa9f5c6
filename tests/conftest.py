"""
Shared pytest fixtures for the wallet settings test suite.

Autouse fixtures below isolate tests from the live application data:
  - Audit logger -> temp directory (prevents test events in data/audit_logs)
"""

import pytest

from wallet_settings.registry import DefaultServerLoader, RecordStore, ServerRegistry
from wallet_settings.settings import SettingsFacade, SettingsStore
from wallet_settings.vault import MemoryBackend, SecureCredentialStore


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./data/audit_logs/`` directory.
    """
    import wallet_settings.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture
def settings(tmp_path):
    """SettingsFacade over a temporary SQLite store."""
    return SettingsFacade(SettingsStore(db_path=tmp_path / "settings.db"))


@pytest.fixture
def secure_store():
    """SecureCredentialStore with an in-memory backend."""
    return SecureCredentialStore(MemoryBackend())


@pytest.fixture
def record_store(tmp_path):
    """RecordStore with a temporary database; worker drained on teardown."""
    store = RecordStore(db_path=tmp_path / "servers.db")
    yield store
    store.close()


@pytest.fixture
def defaults_file(tmp_path):
    """Default server resource with three entries, in a known order."""
    path = tmp_path / "defaults.json"
    path.write_text(
        '{"first": ["http", "alpha.example.org", "7890"],'
        ' "second": ["https", "bravo.example.org", "7891"],'
        ' "third": ["http", "charlie.example.org", "7890"]}',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def registry(record_store, settings, defaults_file):
    """ServerRegistry backed by temporary stores and the 3-entry resource."""
    loader = DefaultServerLoader(path=defaults_file)
    return ServerRegistry(record_store, settings, loader)
