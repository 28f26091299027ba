"""Domain models for tracked browsing time."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass(slots=True)
class TrackingState:
    """In-memory view of what the accumulator is currently attributing time to."""

    enabled: bool = False
    active_tab_id: Optional[int] = None
    active_domain: Optional[str] = None
    session_start: Optional[datetime] = None
    idle: bool = False

    @property
    def is_tracking(self) -> bool:
        return self.session_start is not None

    @property
    def can_open_session(self) -> bool:
        return self.enabled and self.active_domain is not None and not self.idle

    def to_payload(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "active_tab_id": self.active_tab_id,
            "active_domain": self.active_domain,
            "session_start": self.session_start.isoformat() if self.session_start else None,
            "idle": self.idle,
        }


@dataclass(slots=True)
class StatsSnapshot:
    """Read-only copy of the persisted stats document."""

    daily_stats: dict[str, dict[str, int]] = field(default_factory=dict)
    total_by_domain: dict[str, int] = field(default_factory=dict)
    total_by_category: dict[str, int] = field(default_factory=dict)
    enabled: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "dailyStats": {day: dict(values) for day, values in self.daily_stats.items()},
            "totalByDomain": dict(self.total_by_domain),
            "totalByCategory": dict(self.total_by_category),
            "enabled": self.enabled,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StatsSnapshot":
        return cls(
            daily_stats={
                day: {category: int(seconds) for category, seconds in values.items()}
                for day, values in (payload.get("dailyStats") or {}).items()
            },
            total_by_domain={
                domain: int(seconds)
                for domain, seconds in (payload.get("totalByDomain") or {}).items()
            },
            total_by_category={
                category: int(seconds)
                for category, seconds in (payload.get("totalByCategory") or {}).items()
            },
            enabled=payload.get("enabled") is True,
        )


def whole_seconds(elapsed: timedelta) -> int:
    """Round an interval to whole seconds, halves rounding up."""
    return math.floor(elapsed.total_seconds() + 0.5)


def local_now() -> datetime:
    """Current time with the local UTC offset attached.

    Differences between two aware values are real elapsed time, including
    across daylight-saving changes, while ``date()`` stays the local day.
    """
    return datetime.now().astimezone()
