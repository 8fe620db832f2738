"""History store tests — retention, ordering, concurrency and failure handling."""
from __future__ import annotations

import asyncio
import json
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from pricecam.core.errors import StorageError
from pricecam.models import ConversionRecord
from pricecam.storage.history import HistoryStore

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _record(minutes: int = 0, price: int = 1000) -> ConversionRecord:
    return ConversionRecord(
        original_price=Decimal(price),
        converted_amount=Decimal(price) * Decimal("0.22"),
        foreign_currency="JPY",
        local_currency="TWD",
        exchange_rate=Decimal("0.22"),
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def store(tmp_path) -> HistoryStore:
    return HistoryStore(tmp_path / "history.json")


# ---------------------------------------------------------------------------
# Basic operations
# ---------------------------------------------------------------------------

def test_empty_when_no_file(store: HistoryStore) -> None:
    assert store.load_history() == []


def test_add_and_load(store: HistoryStore) -> None:
    record = _record()
    store.add_record(record)
    assert store.load_history() == [record]


def test_load_sorted_newest_first(store: HistoryStore) -> None:
    for minutes in (5, 1, 9, 3):
        store.add_record(_record(minutes))
    stamps = [r.timestamp for r in store.load_history()]
    assert stamps == sorted(stamps, reverse=True)


def test_persisted_file_is_sorted_json_array(store: HistoryStore) -> None:
    store.add_record(_record(1))
    store.add_record(_record(2))
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert data[0]["timestamp"] > data[1]["timestamp"]
    assert data[0]["exchange_rate"] == "0.22"


def test_clear_history(store: HistoryStore) -> None:
    store.add_record(_record())
    store.clear_history()
    assert store.load_history() == []


def test_clear_history_when_empty(store: HistoryStore) -> None:
    store.clear_history()
    assert store.load_history() == []


def test_invalid_limit(tmp_path) -> None:
    with pytest.raises(ValueError):
        HistoryStore(tmp_path / "h.json", limit=0)


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

def test_retention_keeps_50_newest(store: HistoryStore) -> None:
    records = [_record(minutes=i) for i in range(55)]
    for record in records:
        store.add_record(record)

    history = store.load_history()
    assert len(history) == 50
    assert history[0] == records[54]
    assert history[-1] == records[5]
    kept_ids = {r.id for r in history}
    assert not kept_ids & {r.id for r in records[:5]}


def test_retention_drops_oldest_even_when_added_last(store: HistoryStore) -> None:
    for i in range(1, 51):
        store.add_record(_record(minutes=i))
    old = _record(minutes=0)
    store.add_record(old)

    history = store.load_history()
    assert len(history) == 50
    assert old.id not in {r.id for r in history}


def test_custom_limit(tmp_path) -> None:
    store = HistoryStore(tmp_path / "h.json", limit=3)
    for i in range(5):
        store.add_record(_record(minutes=i))
    assert [r.timestamp.minute for r in store.load_history()] == [4, 3, 2]


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

def test_concurrent_threads_lose_no_updates(store: HistoryStore) -> None:
    records = [_record(minutes=i) for i in range(10)]
    barrier = threading.Barrier(len(records))

    def worker(record: ConversionRecord) -> None:
        barrier.wait()
        store.add_record(record)

    threads = [threading.Thread(target=worker, args=(r,)) for r in records]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    history = store.load_history()
    assert len(history) == 10
    assert {r.id for r in history} == {r.id for r in records}


@pytest.mark.asyncio
async def test_concurrent_async_callers(store: HistoryStore) -> None:
    records = [_record(minutes=i) for i in range(10)]
    await asyncio.gather(*(store.aadd_record(r) for r in records))

    history = await store.aload_history()
    assert len(history) == 10
    assert len({r.id for r in history}) == 10


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------

def test_corrupt_file_reads_as_empty(store: HistoryStore) -> None:
    store.path.write_text("[{ broken", encoding="utf-8")
    assert store.load_history() == []


def test_wrong_shape_reads_as_empty(store: HistoryStore) -> None:
    store.path.write_text(json.dumps({"records": []}), encoding="utf-8")
    assert store.load_history() == []


def test_add_after_corruption_starts_fresh(store: HistoryStore) -> None:
    store.path.write_text("garbage", encoding="utf-8")
    record = _record()
    store.add_record(record)
    assert store.load_history() == [record]


def test_write_failure_is_surfaced(store: HistoryStore) -> None:
    store.add_record(_record(1))
    before = store.path.read_bytes()

    with patch("pricecam.storage.history.atomic_write_bytes", side_effect=OSError("disk full")):
        with pytest.raises(StorageError):
            store.add_record(_record(2))

    # Previous contents untouched
    assert store.path.read_bytes() == before
    assert len(store.load_history()) == 1


def test_failed_replace_leaves_no_partial_file(store: HistoryStore) -> None:
    store.add_record(_record(1))
    before = store.path.read_bytes()

    with patch("pricecam.storage.files.os.replace", side_effect=OSError("rename failed")):
        with pytest.raises(StorageError):
            store.add_record(_record(2))

    assert store.path.read_bytes() == before
    assert sorted(p.name for p in store.path.parent.iterdir()) == ["history.json"]


@pytest.mark.asyncio
async def test_async_clear(store: HistoryStore) -> None:
    await store.aadd_record(_record())
    await store.aclear_history()
    assert await store.aload_history() == []
