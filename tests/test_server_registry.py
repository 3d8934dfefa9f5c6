# Tests for the server registry
#
# Coverage:
#   - default bootstrap: all defaults inserted, first becomes active, flag set
#   - bootstrap failure leaves registry empty and flag unset
#   - ensure_defaults idempotence and interrupted-bootstrap recovery
#   - create / validate_uniqueness / duplicate rejected at commit time
#   - delete: active pointer reassignment, EmptyRegistry on the last record
#   - update: active pointer follows an address change
#   - active(): MissingActiveServer when unset or dangling
#   - audit events for mutations

import json
import threading

import pytest

from wallet_settings.core.exceptions import (
    AddressAlreadyPresent,
    EmptyRegistry,
    InvalidDefaultResource,
    MissingActiveServer,
    TransactionFailure,
)
from wallet_settings.registry import DefaultServerLoader, ServerRecord, ServerRegistry

DEFAULT_ADDRESSES = ["alpha.example.org", "bravo.example.org", "charlie.example.org"]


def _addresses(registry):
    return [s.address for s in registry.list_servers()]


@pytest.fixture
def bootstrapped(registry):
    """Registry with the three test defaults installed."""
    assert registry.ensure_defaults().result(timeout=5).succeeded
    return registry


def _write_defaults(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ── Bootstrap ───────────────────────────────────────────────────────


class TestCreateDefaults:
    def test_inserts_all_defaults_in_order(self, bootstrapped):
        servers = bootstrapped.list_servers()
        assert [s.address for s in servers] == DEFAULT_ADDRESSES
        assert all(s.is_default for s in servers)
        assert servers[1] == ServerRecord("bravo.example.org", "https", "7891", True)

    def test_first_default_becomes_active(self, bootstrapped):
        assert bootstrapped.active().address == "alpha.example.org"

    def test_sets_default_server_status(self, bootstrapped, settings):
        assert settings.default_server_status() is True

    def test_default_servers(self, bootstrapped):
        assert [s.address for s in bootstrapped.default_servers()] == DEFAULT_ADDRESSES

    def test_completion_called_once(self, registry):
        results = []
        future = registry.create_defaults(results.append)
        result = future.result(timeout=5)
        assert results == [result]
        assert result.succeeded

    def test_duplicate_in_resource_rolls_back(self, record_store, settings, tmp_path):
        path = _write_defaults(tmp_path / "dup.json", {
            "one": ["http", "same.example.org", "7890"],
            "two": ["http", "other.example.org", "7890"],
            "three": ["https", "same.example.org", "7891"],
        })
        registry = ServerRegistry(record_store, settings, DefaultServerLoader(path=path))
        results = []
        result = registry.create_defaults(results.append).result(timeout=5)

        assert not result.succeeded
        assert results == [result]
        assert isinstance(result.error, TransactionFailure)
        assert isinstance(result.error.cause, AddressAlreadyPresent)
        assert registry.list_servers() == []
        assert settings.default_server_status() is False
        assert registry.active_or_none() is None

    def test_malformed_resource_reported_as_failure(self, record_store, settings, tmp_path):
        path = _write_defaults(tmp_path / "bad.json", {"one": ["http", "x.example.org"]})
        registry = ServerRegistry(record_store, settings, DefaultServerLoader(path=path))
        result = registry.create_defaults().result(timeout=5)
        assert not result.succeeded
        assert isinstance(result.error.cause, InvalidDefaultResource)
        assert registry.list_servers() == []
        assert settings.default_server_status() is False

    def test_bundled_mainnet_defaults(self, record_store, settings):
        registry = ServerRegistry(record_store, settings, DefaultServerLoader("mainnet"))
        assert registry.create_defaults().result(timeout=5).succeeded
        assert len(registry.list_servers()) == 5
        assert registry.active().url == "http://alice2.nem.ninja:7890"


class TestEnsureDefaults:
    def test_second_call_is_noop(self, bootstrapped):
        assert bootstrapped.ensure_defaults() is None
        assert _addresses(bootstrapped) == DEFAULT_ADDRESSES

    def test_noop_when_flag_set(self, registry, settings):
        settings.set_default_server_status(True)
        assert registry.ensure_defaults() is None
        assert registry.list_servers() == []

    def test_finishes_interrupted_bootstrap(self, registry, record_store, settings):
        def work(tx):
            tx.create(ServerRecord("alpha.example.org", "http", "7890", True))
            tx.create(ServerRecord("bravo.example.org", "https", "7891", True))

        record_store.begin(work).result(timeout=5)
        assert settings.default_server_status() is False

        assert registry.ensure_defaults() is None
        assert settings.default_server_status() is True
        assert registry.active().address == "alpha.example.org"
        assert _addresses(registry) == ["alpha.example.org", "bravo.example.org"]

    def test_retry_after_failed_bootstrap(self, record_store, settings, tmp_path):
        path = _write_defaults(tmp_path / "defaults.json", {
            "one": ["http", "same.example.org", "7890"],
            "two": ["http", "same.example.org", "7890"],
        })
        registry = ServerRegistry(record_store, settings, DefaultServerLoader(path=path))
        assert not registry.ensure_defaults().result(timeout=5).succeeded

        _write_defaults(path, {"one": ["http", "same.example.org", "7890"]})
        assert registry.ensure_defaults().result(timeout=5).succeeded
        assert registry.active().address == "same.example.org"


# ── Create / uniqueness ─────────────────────────────────────────────


class TestCreate:
    def test_create(self, bootstrapped):
        results = []
        result = bootstrapped.create("delta.example.org", "https", "443", results.append)
        assert result.result(timeout=5).succeeded
        assert len(results) == 1
        created = bootstrapped.get("delta.example.org")
        assert created == ServerRecord("delta.example.org", "https", "443", False)
        assert _addresses(bootstrapped)[-1] == "delta.example.org"

    def test_create_does_not_change_active(self, bootstrapped):
        bootstrapped.create("delta.example.org", "https", "443").result(timeout=5)
        assert bootstrapped.active().address == "alpha.example.org"

    def test_create_on_empty_registry(self, registry):
        assert registry.create("solo.example.org", "http", "1").result(timeout=5).succeeded
        assert _addresses(registry) == ["solo.example.org"]
        with pytest.raises(MissingActiveServer):
            registry.active()

    def test_validate_uniqueness_free(self, bootstrapped):
        assert bootstrapped.validate_uniqueness("new.example.org") is True

    def test_validate_uniqueness_taken(self, bootstrapped):
        with pytest.raises(AddressAlreadyPresent) as exc_info:
            bootstrapped.validate_uniqueness("bravo.example.org")
        assert exc_info.value.address == "bravo.example.org"

    def test_validate_uniqueness_is_exact_match(self, bootstrapped):
        assert bootstrapped.validate_uniqueness("BRAVO.example.org") is True

    def test_duplicate_create_fails_at_commit(self, bootstrapped):
        results = []
        result = bootstrapped.create("bravo.example.org", "http", "1", results.append).result(timeout=5)
        assert not result.succeeded
        assert results == [result]
        assert isinstance(result.error.cause, AddressAlreadyPresent)
        assert _addresses(bootstrapped).count("bravo.example.org") == 1

    def test_racing_creates_only_one_wins(self, bootstrapped):
        # Both pass the synchronous check before either commits
        bootstrapped.validate_uniqueness("race.example.org")
        bootstrapped.validate_uniqueness("race.example.org")
        first = bootstrapped.create("race.example.org", "http", "1")
        second = bootstrapped.create("race.example.org", "https", "2")
        outcomes = [first.result(timeout=5).succeeded, second.result(timeout=5).succeeded]
        assert sorted(outcomes) == [False, True]
        assert _addresses(bootstrapped).count("race.example.org") == 1


# ── Delete ──────────────────────────────────────────────────────────


class TestDelete:
    def test_delete_active_moves_pointer_to_first_remaining(self, bootstrapped):
        active = bootstrapped.active()
        assert bootstrapped.delete(active).result(timeout=5).succeeded
        assert bootstrapped.active().address == "bravo.example.org"
        assert _addresses(bootstrapped) == ["bravo.example.org", "charlie.example.org"]

    def test_delete_non_active_keeps_pointer(self, bootstrapped):
        charlie = bootstrapped.get("charlie.example.org")
        assert bootstrapped.delete(charlie).result(timeout=5).succeeded
        assert bootstrapped.active().address == "alpha.example.org"

    def test_delete_active_in_middle(self, bootstrapped):
        bootstrapped.set_active("bravo.example.org")
        bootstrapped.delete(bootstrapped.get("bravo.example.org")).result(timeout=5)
        assert bootstrapped.active().address == "alpha.example.org"

    def test_delete_last_raises_empty_registry(self, bootstrapped):
        for address in ("alpha.example.org", "bravo.example.org"):
            bootstrapped.delete(bootstrapped.get(address)).result(timeout=5)
        last = bootstrapped.get("charlie.example.org")
        with pytest.raises(EmptyRegistry):
            bootstrapped.delete(last)
        assert _addresses(bootstrapped) == ["charlie.example.org"]
        assert bootstrapped.active().address == "charlie.example.org"

    def test_delete_missing_reports_failure(self, bootstrapped):
        ghost = ServerRecord("ghost.example.org", "http", "1")
        results = []
        result = bootstrapped.delete(ghost, results.append).result(timeout=5)
        assert not result.succeeded
        assert results == [result]
        assert isinstance(result.error.cause, KeyError)
        assert _addresses(bootstrapped) == DEFAULT_ADDRESSES

    def test_queued_deletes_keep_pointer_valid(self, bootstrapped, record_store):
        gate = threading.Event()
        blocker = record_store.begin(lambda tx: gate.wait(timeout=5))
        alpha = bootstrapped.get("alpha.example.org")
        bravo = bootstrapped.get("bravo.example.org")
        first = bootstrapped.delete(alpha)
        second = bootstrapped.delete(bravo)
        gate.set()

        assert blocker.result(timeout=5).succeeded
        assert first.result(timeout=5).succeeded
        assert second.result(timeout=5).succeeded
        assert _addresses(bootstrapped) == ["charlie.example.org"]
        assert bootstrapped.active().address == "charlie.example.org"

    def test_queued_deletes_cannot_empty_registry(self, bootstrapped, record_store):
        bootstrapped.delete(bootstrapped.get("charlie.example.org")).result(timeout=5)
        gate = threading.Event()
        record_store.begin(lambda tx: gate.wait(timeout=5))
        first = bootstrapped.delete(bootstrapped.get("alpha.example.org"))
        second = bootstrapped.delete(bootstrapped.get("bravo.example.org"))
        gate.set()

        assert first.result(timeout=5).succeeded
        result = second.result(timeout=5)
        assert not result.succeeded
        assert isinstance(result.error.cause, EmptyRegistry)
        assert _addresses(bootstrapped) == ["bravo.example.org"]
        assert bootstrapped.active().address == "bravo.example.org"

    def test_delete_leaves_registry_non_empty(self, bootstrapped):
        for server in bootstrapped.list_servers()[:-1]:
            bootstrapped.delete(server).result(timeout=5)
        assert len(bootstrapped.list_servers()) == 1
        assert bootstrapped.active_or_none() is not None


# ── Update ──────────────────────────────────────────────────────────


class TestUpdate:
    def test_update_fields(self, bootstrapped):
        bravo = bootstrapped.get("bravo.example.org")
        assert bootstrapped.update(bravo, "http", "bravo2.example.org", "80").result(timeout=5).succeeded
        assert bootstrapped.get("bravo.example.org") is None
        updated = bootstrapped.get("bravo2.example.org")
        assert (updated.protocol_type, updated.port) == ("http", "80")
        assert _addresses(bootstrapped)[1] == "bravo2.example.org"

    def test_update_active_address_moves_pointer(self, bootstrapped):
        alpha = bootstrapped.active()
        bootstrapped.update(alpha, "https", "alpha2.example.org", "443").result(timeout=5)
        assert bootstrapped.active().address == "alpha2.example.org"
        assert bootstrapped.active().url == "https://alpha2.example.org:443"

    def test_update_active_same_address(self, bootstrapped):
        alpha = bootstrapped.active()
        bootstrapped.update(alpha, "https", alpha.address, "443").result(timeout=5)
        assert bootstrapped.active().url == "https://alpha.example.org:443"

    def test_update_non_active_keeps_pointer(self, bootstrapped):
        charlie = bootstrapped.get("charlie.example.org")
        bootstrapped.update(charlie, "http", "charlie2.example.org", "1").result(timeout=5)
        assert bootstrapped.active().address == "alpha.example.org"

    def test_update_collision_fails(self, bootstrapped):
        alpha = bootstrapped.active()
        results = []
        result = bootstrapped.update(
            alpha, "http", "bravo.example.org", "7890", results.append
        ).result(timeout=5)
        assert not result.succeeded
        assert results == [result]
        assert isinstance(result.error.cause, AddressAlreadyPresent)
        assert bootstrapped.active().address == "alpha.example.org"
        assert _addresses(bootstrapped) == DEFAULT_ADDRESSES

    def test_update_missing_fails(self, bootstrapped):
        ghost = ServerRecord("ghost.example.org", "http", "1")
        result = bootstrapped.update(ghost, "http", "ghost2.example.org", "1").result(timeout=5)
        assert not result.succeeded
        assert isinstance(result.error.cause, KeyError)


# ── Active server ───────────────────────────────────────────────────


class TestActive:
    def test_unset_raises(self, registry):
        with pytest.raises(MissingActiveServer):
            registry.active()
        assert registry.active_or_none() is None

    def test_dangling_pointer_raises(self, bootstrapped):
        bootstrapped.set_active("nowhere.example.org")
        with pytest.raises(MissingActiveServer, match="nowhere.example.org"):
            bootstrapped.active()

    def test_set_active_by_record(self, bootstrapped, settings):
        charlie = bootstrapped.get("charlie.example.org")
        bootstrapped.set_active(charlie)
        assert settings.active_server() == "charlie.example.org"
        assert bootstrapped.active() == charlie
        assert bootstrapped.is_active(charlie)
        assert not bootstrapped.is_active("alpha.example.org")


# ── Audit trail ─────────────────────────────────────────────────────


def _audit_events(tmp_path):
    events = []
    for log_file in sorted((tmp_path / "audit_logs").glob("audit_*.log")):
        for line in log_file.read_text(encoding="utf-8").splitlines():
            events.append(json.loads(line))
    return events


class TestAuditTrail:
    def test_mutations_are_logged(self, bootstrapped, tmp_path):
        bootstrapped.create("delta.example.org", "http", "1").result(timeout=5)
        bootstrapped.create("delta.example.org", "http", "1").result(timeout=5)
        types = [e["event_type"] for e in _audit_events(tmp_path)]
        assert "server.defaults.created" in types
        assert "server.active.changed" in types
        assert "server.created" in types
        assert "server.transaction.failed" in types

    def test_created_event_describes_record(self, bootstrapped, tmp_path):
        bootstrapped.create("delta.example.org", "https", "443").result(timeout=5)
        (created,) = [
            e for e in _audit_events(tmp_path) if e["event_type"] == "server.created"
        ]
        assert created["details"] == {
            "address": "delta.example.org",
            "protocol_type": "https",
            "port": "443",
            "is_default": False,
        }

    def test_failure_event_details(self, bootstrapped, tmp_path):
        bootstrapped.create("alpha.example.org", "http", "1").result(timeout=5)
        failed = [
            e for e in _audit_events(tmp_path)
            if e["event_type"] == "server.transaction.failed"
        ]
        assert len(failed) == 1
        assert failed[0]["severity"] == "warning"
        assert failed[0]["details"]["operation"] == "server.created"
        assert failed[0]["details"]["address"] == "alpha.example.org"
