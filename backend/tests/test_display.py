from datetime import datetime, timedelta, timezone

from campusbell.services.display import (
    badge_label,
    format_relative_time,
    is_urgent,
    notification_icon,
    priority_color,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_relative_time_buckets():
    assert format_relative_time(NOW - timedelta(seconds=30), NOW) == "Just now"
    assert format_relative_time(NOW - timedelta(minutes=5), NOW) == "5m ago"
    assert format_relative_time(NOW - timedelta(hours=3, minutes=10), NOW) == "3h ago"
    assert format_relative_time(NOW - timedelta(days=2, hours=1), NOW) == "2d ago"


def test_relative_time_falls_back_to_date_after_a_week():
    assert format_relative_time(datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc), NOW) == "Mar 5"
    assert format_relative_time(datetime(2024, 12, 25, 9, 0, tzinfo=timezone.utc), NOW) == "Dec 25, 2024"


def test_relative_time_accepts_naive_utc():
    assert format_relative_time(datetime(2026, 10, 19, 11, 50), NOW) == "10m ago"


def test_icons_and_colors_with_fallbacks():
    assert notification_icon("exam_reminder") == "📚"
    assert notification_icon("something-else") == "📬"
    assert priority_color("urgent") == "#EF4444"
    assert priority_color("low") == "#6B7280"
    assert priority_color("unknown") == "#3B82F6"
    assert is_urgent("urgent") and not is_urgent("high")


def test_badge_label():
    assert badge_label(0) == ""
    assert badge_label(7) == "7"
    assert badge_label(99) == "99"
    assert badge_label(100) == "99+"
