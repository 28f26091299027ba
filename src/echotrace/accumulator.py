"""Session accumulator: turns browser events into committed per-domain time."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Optional

from .categories import extract_domain
from .db import StatsStore, StorageError
from .models import StatsSnapshot, TrackingState, local_now, whole_seconds

logger = logging.getLogger(__name__)

IDLE_STATES = frozenset({"idle", "locked"})
ACTIVE_STATE = "active"

Clock = Callable[[], datetime]


class SessionAccumulator:
    """Owns the tracking state and is the only writer of accumulated time.

    Every handler holds one lock from start to finish, including the store
    write, so two flushes can never interleave. A handler commits to the
    store before touching the state: when the store rejects the write, the
    exception propagates and the state is left as it was, so the next event
    or tick flushes the same interval again.
    """

    def __init__(self, store: StatsStore, *, clock: Clock = local_now) -> None:
        self.store = store
        self._clock = clock
        self._lock = threading.Lock()
        self._state = TrackingState(enabled=store.is_enabled())
        logger.info("Accumulator ready; tracking enabled=%s", self._state.enabled)

    @property
    def state(self) -> TrackingState:
        """Copy of the current tracking state."""
        with self._lock:
            return replace(self._state)

    def set_enabled(self, enabled: bool) -> None:
        with self._lock:
            now = self._clock()
            self._flush_locked(now)
            self.store.set_enabled(enabled)
            self._state.enabled = enabled
            self._reopen_locked(now)
            logger.info("Tracking %s", "enabled" if enabled else "disabled")

    def tab_activated(self, tab_id: int, url: Optional[str]) -> None:
        with self._lock:
            if not self._state.enabled:
                return
            now = self._clock()
            self._flush_locked(now)
            self._state.active_tab_id = tab_id
            self._state.active_domain = extract_domain(url)
            self._reopen_locked(now)
            logger.debug("Tab %s activated: %s", tab_id, self._state.active_domain)

    def tab_updated(self, tab_id: int, url: Optional[str]) -> None:
        with self._lock:
            if not self._state.enabled or self._state.active_tab_id != tab_id:
                return
            now = self._clock()
            self._flush_locked(now)
            self._state.active_domain = extract_domain(url)
            self._reopen_locked(now)
            logger.debug("Tab %s navigated: %s", tab_id, self._state.active_domain)

    def tab_removed(self, tab_id: int) -> None:
        with self._lock:
            if not self._state.enabled or self._state.active_tab_id != tab_id:
                return
            self._flush_locked(self._clock())
            self._state.active_tab_id = None
            self._state.active_domain = None
            self._state.session_start = None
            logger.debug("Tracked tab %s closed", tab_id)

    def idle_state_changed(self, new_state: str) -> None:
        if new_state not in IDLE_STATES and new_state != ACTIVE_STATE:
            raise ValueError(f"Unknown idle state: {new_state!r}")
        with self._lock:
            # Recorded even while disabled; no session opens while idle.
            if new_state in IDLE_STATES:
                if self._state.enabled:
                    self._flush_locked(self._clock())
                    self._state.session_start = None
                self._state.idle = True
            else:
                self._state.idle = False
                if self._state.enabled and not self._state.is_tracking:
                    # Nothing accrued while idle; start a fresh window.
                    self._reopen_locked(self._clock())
            logger.debug("System is %s", new_state)

    def tick(self) -> None:
        """Periodic wake: commit the open session and keep it running."""
        with self._lock:
            if not self._state.enabled or not self._state.is_tracking:
                return
            now = self._clock()
            self._flush_locked(now)
            self._reopen_locked(now)

    def shutdown(self) -> None:
        """Commit whatever the open session has accrued; the state is kept."""
        with self._lock:
            self._flush_locked(self._clock())

    def _flush_locked(self, now: datetime) -> None:
        """Commit the open session up to ``now`` and restart it at ``now``."""
        start = self._state.session_start
        domain = self._state.active_domain
        if start is None or domain is None:
            return
        elapsed = whole_seconds(now - start)
        if elapsed > 0:
            self.store.accumulate(domain, elapsed, now)
            logger.debug("Flushed %ds for %s", elapsed, domain)
        self._state.session_start = now

    def _reopen_locked(self, now: datetime) -> None:
        self._state.session_start = now if self._state.can_open_session else None


def toggle_tracking(accumulator: SessionAccumulator, enabled: bool) -> dict[str, Any]:
    try:
        accumulator.set_enabled(enabled)
    except StorageError as exc:
        logger.exception("Failed to toggle tracking")
        return {"success": False, "enabled": accumulator.state.enabled, "error": str(exc)}
    return {"success": True, "enabled": enabled}


def get_stats(accumulator: SessionAccumulator) -> dict[str, Any]:
    try:
        snapshot: StatsSnapshot = accumulator.store.query()
    except StorageError as exc:
        logger.exception("Failed to read stats")
        return {"success": False, "error": str(exc)}
    return snapshot.to_payload()


def reset_data(accumulator: SessionAccumulator) -> dict[str, Any]:
    try:
        accumulator.store.reset()
    except StorageError as exc:
        logger.exception("Failed to reset stats")
        return {"success": False, "error": str(exc)}
    return {"success": True}
