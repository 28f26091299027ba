from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from echotrace.accumulator import SessionAccumulator
from echotrace.db import StatsStore


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 9, 0, 0))


@pytest.fixture
def store(tmp_path: Path) -> StatsStore:
    return StatsStore(tmp_path / "stats.sqlite3")


@pytest.fixture
def accumulator(store: StatsStore, clock: FakeClock) -> SessionAccumulator:
    return SessionAccumulator(store, clock=clock)


@pytest.fixture
def enabled_accumulator(accumulator: SessionAccumulator) -> SessionAccumulator:
    accumulator.set_enabled(True)
    return accumulator
