"""Derived statistics and console views computed from a stats snapshot."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from .categories import ENTERTAINMENT, PRODUCTIVITY, SOCIAL
from .db import DAY_FMT
from .models import StatsSnapshot

OBSERVED_DAYS = 7
PROJECTION_DAYS = 90
# Extra focus lost to context switching for every hour of social media.
CONTEXT_SWITCH_MULTIPLIER = 1.5


@dataclass(slots=True)
class Projection:
    """One line of the dashboard's forward-looking summary."""

    label: str
    daily_hours: float
    message: str
    sentiment: str


@dataclass(slots=True)
class CategoryProjection:
    category: str
    total_seconds: int
    daily_average_seconds: float
    projected_seconds: float


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def day_key(day: date) -> str:
    return day.strftime(DAY_FMT)


def day_total(snapshot: StatsSnapshot, day: date) -> int:
    return sum(snapshot.daily_stats.get(day_key(day), {}).values())


def today_total(snapshot: StatsSnapshot, today: date) -> int:
    return day_total(snapshot, today)


def week_total(snapshot: StatsSnapshot, today: date, days: int = OBSERVED_DAYS) -> int:
    """Seconds tracked today and on the ``days - 1`` days before it."""
    return sum(day_total(snapshot, today - timedelta(days=offset)) for offset in range(days))


def _top(totals: dict[str, int]) -> Optional[str]:
    if not totals:
        return None
    # max() keeps the first of equal values, so ties follow snapshot order.
    return max(totals, key=lambda key: totals[key])


def top_category(snapshot: StatsSnapshot) -> Optional[str]:
    return _top(snapshot.total_by_category)


def top_domain(snapshot: StatsSnapshot) -> Optional[str]:
    return _top(snapshot.total_by_domain)


def top_sites(snapshot: StatsSnapshot, limit: int = 10) -> list[tuple[str, int]]:
    return sorted(snapshot.total_by_domain.items(), key=lambda item: item[1], reverse=True)[
        :limit
    ]


def weekly_breakdown(
    snapshot: StatsSnapshot, today: date, days: int = OBSERVED_DAYS
) -> list[tuple[date, int]]:
    """Whole hours per day, oldest day first."""
    return [
        (day, _round(day_total(snapshot, day) / 3600))
        for day in (today - timedelta(days=offset) for offset in range(days - 1, -1, -1))
    ]


def today_by_category(snapshot: StatsSnapshot, today: date) -> dict[str, int]:
    """Whole minutes per category for ``today``."""
    return {
        category: _round(seconds / 60)
        for category, seconds in snapshot.daily_stats.get(day_key(today), {}).items()
    }


def category_projections(
    snapshot: StatsSnapshot,
    observed_days: int = OBSERVED_DAYS,
    projection_days: int = PROJECTION_DAYS,
) -> list[CategoryProjection]:
    """Linear projection of each category's all-time total over ``projection_days``."""
    projections = []
    for category, seconds in snapshot.total_by_category.items():
        daily_average = seconds / observed_days
        projections.append(
            CategoryProjection(
                category=category,
                total_seconds=seconds,
                daily_average_seconds=daily_average,
                projected_seconds=daily_average * projection_days,
            )
        )
    return projections


def _category_daily_hours(snapshot: StatsSnapshot, category: str) -> float:
    return snapshot.total_by_category.get(category, 0) / 3600 / OBSERVED_DAYS


def quick_echo(snapshot: StatsSnapshot, today: date) -> str:
    """One-line nudge shown in the popup view."""
    total = week_total(snapshot, today)
    if total == 0:
        return "Start tracking to see your habits"

    daily_average = _round(total / OBSERVED_DAYS / 3600 * 10) / 10
    social_daily = _category_daily_hours(snapshot, SOCIAL)
    if social_daily > 2:
        return (
            f"High social media usage ({social_daily:.1f}h/day). "
            "Try setting daily limits!"
        )
    if daily_average < 3:
        return f"Great balance! Keep maintaining {daily_average}h/day."
    if daily_average < 6:
        return (
            f"Moderate usage: {daily_average}h/day. "
            "Consider a 25-min focus block next."
        )
    return f"{daily_average}h/day average. Time to reset habits?"


def future_echo(
    snapshot: StatsSnapshot, today: date, projection_days: int = PROJECTION_DAYS
) -> list[Projection]:
    """Dashboard projections of where current habits lead."""
    daily_average_hours = _round(week_total(snapshot, today) / OBSERVED_DAYS) / 3600
    projections: list[Projection] = []

    social_daily = _category_daily_hours(snapshot, SOCIAL)
    if social_daily > 1:
        lost_focus = _round((social_daily - 1) * projection_days * CONTEXT_SWITCH_MULTIPLIER)
        projections.append(
            Projection(
                label="Social Media",
                daily_hours=social_daily,
                message=(
                    f"In {projection_days} days, at current pace, you could lose "
                    f"~{lost_focus} focus hours ({_round(lost_focus / 8)} workdays lost "
                    "to distractions)."
                ),
                sentiment="warning",
            )
        )

    entertainment_daily = _category_daily_hours(snapshot, ENTERTAINMENT)
    if entertainment_daily > 2:
        projected = _round(entertainment_daily * projection_days)
        projections.append(
            Projection(
                label="Entertainment",
                daily_hours=entertainment_daily,
                message=(
                    f"{projected} hours of entertainment in {projection_days} days. "
                    f"That's {_round(projected / 24)} full days!"
                ),
                sentiment="neutral",
            )
        )

    productivity_daily = _category_daily_hours(snapshot, PRODUCTIVITY)
    if productivity_daily > 2:
        projections.append(
            Projection(
                label="Productivity",
                daily_hours=productivity_daily,
                message=(
                    f"{_round(productivity_daily * projection_days)} productive hours "
                    "projected. Keep it up!"
                ),
                sentiment="positive",
            )
        )

    free_hours = _round((24 - daily_average_hours) * projection_days)
    if daily_average_hours < 4:
        message = (
            f"Time well spent! At {daily_average_hours:.1f}h/day, you'll have "
            f"{free_hours} hours for meaningful activities in {projection_days} days."
        )
        sentiment = "positive"
    elif daily_average_hours < 8:
        message = (
            f"Balanced habits: {daily_average_hours:.1f}h/day screen time. "
            f"You have {free_hours} hours for other pursuits."
        )
        sentiment = "neutral"
    else:
        reclaim = _round((daily_average_hours - 4) * projection_days)
        message = (
            f"High screen time: {daily_average_hours:.1f}h/day. Consider setting daily "
            f"goals to reclaim {reclaim} hours in {projection_days} days."
        )
        sentiment = "warning"
    projections.append(
        Projection(
            label="Overall Balance",
            daily_hours=daily_average_hours,
            message=message,
            sentiment=sentiment,
        )
    )
    return projections


def format_time(seconds: float) -> str:
    """Compact popup-style duration: ``45s``, ``12m`` or ``1.5h``."""
    if seconds < 60:
        return f"{_round(seconds)}s"
    if seconds < 3600:
        return f"{_round(seconds / 60)}m"
    return f"{seconds / 3600:.1f}h"


def format_duration(seconds: float) -> str:
    total_seconds = _round(seconds)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, snapshot: StatsSnapshot) -> None:
        self.snapshot = snapshot

    def print_popup(self, today: date) -> None:
        snapshot = self.snapshot
        print(f"Today:         {format_time(today_total(snapshot, today))}")
        print(f"Top category:  {top_category(snapshot) or '-'}")
        print(f"Top site:      {top_domain(snapshot) or '-'}")
        print(f"Tracking:      {'on' if snapshot.enabled else 'off'}")
        print()
        print(quick_echo(snapshot, today))

    def print_dashboard(self, today: date) -> None:
        snapshot = self.snapshot
        print(f"Dashboard for {day_key(today)}")
        print("-" * 40)
        print(f"Today:         {format_time(today_total(snapshot, today))}")
        print(f"This week:     {format_time(week_total(snapshot, today))}")
        print(f"Top category:  {top_category(snapshot) or 'N/A'}")
        print(f"Top domain:    {top_domain(snapshot) or 'N/A'}")
        print()

        sites = top_sites(snapshot)
        print("Top sites:")
        if not sites:
            print("  No data yet. Enable tracking to get started!")
        for domain, seconds in sites:
            print(f"  {domain:<30} {format_duration(seconds)}")

        categories = today_by_category(snapshot, today)
        if categories:
            print()
            print("Today by category (minutes):")
            for category, minutes in categories.items():
                print(f"  {category:<15} {minutes}")

        print()
        print("Last 7 days (hours):")
        for day, hours in weekly_breakdown(snapshot, today):
            print(f"  {day.strftime('%a %b %d'):<12} {hours}")

        projections = category_projections(snapshot)
        if projections:
            print()
            print(f"Next {PROJECTION_DAYS} days by category:")
            for item in projections:
                print(
                    f"  {item.category:<15} {format_time(item.daily_average_seconds)}/day"
                    f" -> {format_time(item.projected_seconds)}"
                )

        print()
        print("Future echo:")
        if not snapshot.enabled or not snapshot.daily_stats:
            print("  Enable tracking to see future projections")
            return
        for projection in future_echo(snapshot, today):
            print(f"  [{projection.sentiment}] {projection.label} "
                  f"({projection.daily_hours:.1f}h/day avg)")
            print(f"    {projection.message}")
