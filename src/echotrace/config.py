"""Configuration models and helpers for EchoTrace."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765
DEFAULT_SERVICE_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the tracking service and its views."""

    tick_interval: timedelta = timedelta(minutes=5)
    poll_interval: timedelta = timedelta(seconds=5)

    @classmethod
    def from_intervals(
        cls,
        tick_minutes: float = 5.0,
        poll_seconds: float | None = None,
    ) -> "TrackerSettings":
        poll = poll_seconds if poll_seconds is not None else 5.0
        return cls(
            tick_interval=timedelta(minutes=tick_minutes),
            poll_interval=timedelta(seconds=poll),
        )
