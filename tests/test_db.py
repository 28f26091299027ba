import sqlite3
import threading
from datetime import datetime

import pytest

from echotrace import db
from echotrace.db import StatsStore, StorageError

MORNING = datetime(2026, 3, 10, 9, 30)


def test_new_store_is_empty_and_disabled(store):
    snapshot = store.query()
    assert snapshot.daily_stats == {}
    assert snapshot.total_by_domain == {}
    assert snapshot.total_by_category == {}
    assert snapshot.enabled is False


def test_accumulate_updates_all_three_mappings(store):
    store.accumulate("x.com", 30, MORNING)
    store.accumulate("github.com", 45, MORNING)
    store.accumulate("x.com", 15, datetime(2026, 3, 11, 8, 0))

    snapshot = store.query()
    assert snapshot.daily_stats == {
        "2026-03-10": {"social": 30, "productivity": 45},
        "2026-03-11": {"social": 15},
    }
    assert snapshot.total_by_domain == {"x.com": 45, "github.com": 45}
    assert snapshot.total_by_category == {"social": 45, "productivity": 45}


@pytest.mark.parametrize("seconds", [0, -5])
def test_accumulate_non_positive_is_noop(store, seconds):
    store.accumulate("x.com", seconds, MORNING)
    snapshot = store.query()
    assert snapshot.daily_stats == {}
    assert snapshot.total_by_domain == {}
    assert snapshot.total_by_category == {}


@pytest.mark.parametrize("enabled", [True, False])
def test_reset_clears_totals_and_keeps_enabled(store, enabled):
    store.set_enabled(enabled)
    store.accumulate("bbc.com", 120, MORNING)
    store.reset()

    snapshot = store.query()
    assert snapshot.daily_stats == {}
    assert snapshot.total_by_domain == {}
    assert snapshot.total_by_category == {}
    assert snapshot.enabled is enabled


def test_enabled_survives_reopen(tmp_path):
    path = tmp_path / "stats.sqlite3"
    StatsStore(path).set_enabled(True)
    assert StatsStore(path).is_enabled() is True


def test_query_is_idempotent(store):
    store.accumulate("youtube.com", 90, MORNING)
    assert store.query() == store.query()


def test_snapshot_keeps_insertion_order(store):
    for domain in ("youtube.com", "x.com", "github.com"):
        store.accumulate(domain, 10, MORNING)
    assert list(store.query().total_by_domain) == ["youtube.com", "x.com", "github.com"]


def test_concurrent_accumulate_loses_no_updates(tmp_path):
    path = tmp_path / "stats.sqlite3"
    stores = [StatsStore(path), StatsStore(path)]

    def worker(target: StatsStore) -> None:
        for _ in range(25):
            target.accumulate("reddit.com", 2, MORNING)

    threads = [threading.Thread(target=worker, args=(stores[i % 2],)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = stores[0].query()
    assert snapshot.total_by_domain == {"reddit.com": 200}
    assert snapshot.total_by_category == {"social": 200}
    assert snapshot.daily_stats == {"2026-03-10": {"social": 200}}


def test_storage_failures_are_wrapped_and_rolled_back(store, monkeypatch):
    real_add_seconds = db.add_seconds

    def failing(conn, day, domain, category, seconds):
        real_add_seconds(conn, day, domain, category, seconds)
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(db, "add_seconds", failing)
    with pytest.raises(StorageError):
        store.accumulate("x.com", 10, MORNING)
    monkeypatch.undo()

    snapshot = store.query()
    assert snapshot.daily_stats == {}
    assert snapshot.total_by_domain == {}
    assert snapshot.total_by_category == {}


def test_unwritable_location_raises_storage_error(tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    with pytest.raises(StorageError):
        StatsStore(blocker / "stats.sqlite3")


def test_reset_interleaved_with_accumulate_keeps_mappings_consistent(tmp_path):
    path = tmp_path / "stats.sqlite3"
    writer, resetter = StatsStore(path), StatsStore(path)
    start = threading.Barrier(3)
    writers_done = threading.Event()

    def write(worker: int) -> None:
        start.wait()
        for n in range(60):
            writer.accumulate(f"w{worker}-{n}.test", 1, MORNING)

    def reset() -> None:
        start.wait()
        while not writers_done.is_set():
            resetter.reset()

    writers = [threading.Thread(target=write, args=(worker,)) for worker in range(2)]
    reset_thread = threading.Thread(target=reset)
    for thread in [*writers, reset_thread]:
        thread.start()
    for thread in writers:
        thread.join()
    writers_done.set()
    reset_thread.join()

    snapshot = writer.query()
    survivors = len(snapshot.total_by_domain)
    assert set(snapshot.total_by_domain.values()) <= {1}
    assert sum(snapshot.total_by_category.values()) == survivors
    assert sum(
        seconds for day in snapshot.daily_stats.values() for seconds in day.values()
    ) == survivors

    # Each worker's writes are sequential, so whatever outlived the last
    # reset is an unbroken tail of its sequence.
    for worker in range(2):
        kept = sorted(
            int(domain.split("-")[1].split(".")[0])
            for domain in snapshot.total_by_domain
            if domain.startswith(f"w{worker}-")
        )
        assert kept == list(range(60 - len(kept), 60))
