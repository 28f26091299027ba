from datetime import date

import pytest

from echotrace.models import StatsSnapshot
from echotrace.reporting import (
    SummaryPrinter,
    category_projections,
    format_duration,
    format_time,
    future_echo,
    quick_echo,
    today_by_category,
    today_total,
    top_category,
    top_domain,
    top_sites,
    week_total,
    weekly_breakdown,
)

TODAY = date(2026, 3, 10)
HOUR = 3600


def make_snapshot() -> StatsSnapshot:
    return StatsSnapshot(
        daily_stats={
            "2026-03-02": {"social": 5 * HOUR},
            "2026-03-04": {"social": HOUR, "news": 1800},
            "2026-03-09": {"productivity": 2 * HOUR},
            "2026-03-10": {"social": 1200, "entertainment": 600},
        },
        total_by_domain={
            "x.com": 5 * HOUR + 2400,
            "github.com": 2 * HOUR,
            "bbc.com": 1800,
            "youtube.com": 600,
        },
        total_by_category={
            "social": 5 * HOUR + 2400,
            "news": 1800,
            "productivity": 2 * HOUR,
            "entertainment": 600,
        },
        enabled=True,
    )


def test_today_and_week_totals():
    snapshot = make_snapshot()
    assert today_total(snapshot, TODAY) == 1800
    # 2026-03-02 is eight days back and falls outside the window.
    assert week_total(snapshot, TODAY) == HOUR + 1800 + 2 * HOUR + 1800


def test_top_entries():
    snapshot = make_snapshot()
    assert top_category(snapshot) == "social"
    assert top_domain(snapshot) == "x.com"
    assert top_sites(snapshot, limit=2) == [("x.com", 5 * HOUR + 2400), ("github.com", 2 * HOUR)]


def test_top_entries_on_empty_snapshot():
    snapshot = StatsSnapshot()
    assert top_category(snapshot) is None
    assert top_domain(snapshot) is None
    assert top_sites(snapshot) == []


def test_top_domain_ties_follow_snapshot_order():
    snapshot = StatsSnapshot(total_by_domain={"b.com": 10, "a.com": 10})
    assert top_domain(snapshot) == "b.com"


def test_weekly_breakdown_is_oldest_first():
    breakdown = weekly_breakdown(make_snapshot(), TODAY)
    assert [day for day, _ in breakdown][0] == date(2026, 3, 4)
    assert [day for day, _ in breakdown][-1] == TODAY
    assert dict(breakdown)[date(2026, 3, 9)] == 2
    assert dict(breakdown)[date(2026, 3, 4)] == 2


def test_today_by_category_in_minutes():
    assert today_by_category(make_snapshot(), TODAY) == {"social": 20, "entertainment": 10}


def test_category_projections_use_seven_observed_days():
    snapshot = StatsSnapshot(total_by_category={"social": 7 * HOUR})
    [projection] = category_projections(snapshot)
    assert projection.category == "social"
    assert projection.daily_average_seconds == HOUR
    assert projection.projected_seconds == 90 * HOUR


def test_quick_echo_messages():
    assert quick_echo(StatsSnapshot(), TODAY) == "Start tracking to see your habits"

    light = StatsSnapshot(daily_stats={"2026-03-10": {"news": 7 * HOUR}})
    assert quick_echo(light, TODAY) == "Great balance! Keep maintaining 1.0h/day."

    social = StatsSnapshot(
        daily_stats={"2026-03-10": {"social": 21 * HOUR}},
        total_by_category={"social": 21 * HOUR},
    )
    assert quick_echo(social, TODAY).startswith("High social media usage (3.0h/day)")

    moderate = StatsSnapshot(daily_stats={"2026-03-10": {"other": 28 * HOUR}})
    assert quick_echo(moderate, TODAY).startswith("Moderate usage: 4.0h/day.")

    heavy = StatsSnapshot(daily_stats={"2026-03-10": {"other": 49 * HOUR}})
    assert quick_echo(heavy, TODAY) == "7.0h/day average. Time to reset habits?"


def test_future_echo_projections():
    snapshot = StatsSnapshot(
        daily_stats={"2026-03-10": {"social": 14 * HOUR}},
        total_by_category={
            "social": 14 * HOUR,
            "entertainment": 21 * HOUR,
            "productivity": 7 * HOUR,
        },
        enabled=True,
    )
    projections = future_echo(snapshot, TODAY)
    labels = [projection.label for projection in projections]
    assert labels == ["Social Media", "Entertainment", "Overall Balance"]

    social, entertainment, overall = projections
    # (2h - 1h) * 90 days * 1.5 = 135 hours, about 17 workdays.
    assert "~135 focus hours (17 workdays" in social.message
    assert social.sentiment == "warning"
    assert entertainment.message.startswith("270 hours of entertainment in 90 days")
    assert overall.daily_hours == pytest.approx(2.0)
    assert overall.sentiment == "positive"


def test_future_echo_overall_bands():
    heavy = StatsSnapshot(daily_stats={"2026-03-10": {"other": 70 * HOUR}})
    [overall] = future_echo(heavy, TODAY)
    assert overall.sentiment == "warning"
    assert "reclaim 540 hours" in overall.message

    balanced = StatsSnapshot(daily_stats={"2026-03-10": {"other": 35 * HOUR}})
    [overall] = future_echo(balanced, TODAY)
    assert overall.sentiment == "neutral"


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0s"), (45, "45s"), (59.5, "60s"), (60, "1m"), (150, "3m"), (3600, "1.0h"), (5400, "1.5h")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_format_duration():
    assert format_duration(3725) == "01:02:05"


def test_printers_render_without_data(capsys):
    printer = SummaryPrinter(StatsSnapshot())
    printer.print_popup(TODAY)
    printer.print_dashboard(TODAY)
    out = capsys.readouterr().out
    assert "Start tracking to see your habits" in out
    assert "No data yet" in out
    assert "Enable tracking to see future projections" in out


def test_dashboard_lists_top_sites(capsys):
    SummaryPrinter(make_snapshot()).print_dashboard(TODAY)
    out = capsys.readouterr().out
    assert "x.com" in out
    assert "Next 90 days by category:" in out
    assert "Overall Balance" in out
