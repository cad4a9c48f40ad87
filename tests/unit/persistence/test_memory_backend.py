"""Unit tests for MemoryOperationStore."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from sheetwise.core.config import OperationsConfig
from sheetwise.models.operation import Operation, OperationStatus
from sheetwise.persistence import create_persistence
from sheetwise.persistence.memory_backend import MemoryOperationStore
from tests.fakes import make_context

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def _operation(op_id: str, status: OperationStatus = OperationStatus.PENDING,
               age: timedelta = timedelta(0)) -> Operation:
    return Operation(
        operation_id=op_id,
        status=status,
        created_at=NOW - age,
        filename="data.csv",
        context=make_context("name"),
    )


@pytest.fixture
def store():
    return MemoryOperationStore()


class TestCrud:
    def test_get_returns_none_on_miss(self, store):
        assert store.get("op_missing") is None

    def test_create_then_get(self, store):
        store.create(_operation("op_1"))
        assert store.get("op_1").filename == "data.csv"
        assert store.has("op_1")

    def test_update_merges_fields(self, store):
        store.create(_operation("op_1"))
        updated = store.update("op_1", status=OperationStatus.PROCESSING, started_at=NOW)
        assert updated.status == OperationStatus.PROCESSING
        assert updated.started_at == NOW
        assert updated.filename == "data.csv"

    def test_update_missing_returns_none(self, store):
        assert store.update("op_missing", status=OperationStatus.FAILED) is None

    def test_delete(self, store):
        store.create(_operation("op_1"))
        assert store.delete("op_1") is True
        assert store.delete("op_1") is False
        assert not store.has("op_1")

    def test_get_all_and_clear(self, store):
        store.create(_operation("op_1"))
        store.create(_operation("op_2"))
        assert {op.operation_id for op in store.get_all()} == {"op_1", "op_2"}
        store.clear()
        assert store.get_all() == []


class TestCounts:
    def test_every_status_present(self, store):
        counts = store.get_count_by_status()
        assert set(counts) == set(OperationStatus)
        assert all(count == 0 for count in counts.values())

    def test_counts_by_status(self, store):
        store.create(_operation("op_1"))
        store.create(_operation("op_2", OperationStatus.COMPLETED))
        store.create(_operation("op_3", OperationStatus.COMPLETED))
        counts = store.get_count_by_status()
        assert counts[OperationStatus.PENDING] == 1
        assert counts[OperationStatus.COMPLETED] == 2
        assert counts[OperationStatus.FAILED] == 0


class TestCleanupExpired:
    def test_pending_past_ttl_is_removed(self, store):
        store.create(_operation("op_old", age=timedelta(minutes=31)))
        store.create(_operation("op_new", age=timedelta(minutes=10)))
        assert store.cleanup_expired(now=NOW) == 1
        assert not store.has("op_old")
        assert store.has("op_new")

    def test_ttl_depends_on_status(self, store):
        store.create(_operation("op_done", OperationStatus.COMPLETED, age=timedelta(hours=2)))
        store.create(_operation("op_cancelled", OperationStatus.CANCELLED, age=timedelta(hours=2)))
        assert store.cleanup_expired(now=NOW) == 1
        assert store.has("op_done")
        assert not store.has("op_cancelled")

    def test_custom_ttls(self):
        store = MemoryOperationStore(OperationsConfig(failed_ttl=60))
        store.create(_operation("op_failed", OperationStatus.FAILED, age=timedelta(minutes=2)))
        assert store.cleanup_expired(now=NOW) == 1


class TestPeriodicSweep:
    async def test_start_and_stop(self):
        store = MemoryOperationStore(OperationsConfig(cleanup_interval_seconds=0.01))
        store.create(_operation("op_old", age=timedelta(days=30)))
        store.start_cleanup()
        assert store.cleanup_running
        for _ in range(50):
            if not store.has("op_old"):
                break
            await asyncio.sleep(0.01)
        await store.stop_cleanup()
        assert not store.cleanup_running
        assert not store.has("op_old")

    async def test_stop_without_start_is_noop(self, store):
        await store.stop_cleanup()
        assert not store.cleanup_running


def test_create_persistence_uses_operations_config():
    from sheetwise.core.config import AppSettings

    settings = AppSettings(operations=OperationsConfig(pending_ttl=5))
    store = create_persistence(settings)
    store.create(_operation("op_1", age=timedelta(seconds=10)))
    assert store.cleanup_expired(now=NOW) == 1


def test_satisfies_operation_store_protocol(store):
    from sheetwise.core.protocols import IOperationStore

    assert isinstance(store, IOperationStore)
