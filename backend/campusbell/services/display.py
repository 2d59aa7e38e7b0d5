"""Presentation helpers for notifications: icon, priority color, relative time, badge label."""
from datetime import datetime, timezone

from campusbell.core.constants import (
    BADGE_MAX_COUNT,
    DEFAULT_NOTIFICATION_ICON,
    DEFAULT_PRIORITY_COLOR,
    NOTIFICATION_ICONS,
    PRIORITY_COLORS,
    PRIORITY_URGENT,
)
from campusbell.services.types import as_utc

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def notification_icon(type_: str) -> str:
    return NOTIFICATION_ICONS.get(type_, DEFAULT_NOTIFICATION_ICON)


def priority_color(priority: str) -> str:
    return PRIORITY_COLORS.get(priority, DEFAULT_PRIORITY_COLOR)


def is_urgent(priority: str) -> bool:
    return priority == PRIORITY_URGENT


def format_relative_time(created_at: datetime, now: datetime | None = None) -> str:
    """
    "Just now" under a minute, then "5m ago", "3h ago", "2d ago" up to a week;
    older: "Mar 5" (same year) or "Mar 5, 2024".
    """
    created_at = as_utc(created_at)
    now = as_utc(now) if now else datetime.now(timezone.utc)
    minutes = int((now - created_at).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    if minutes < 10080:
        return f"{minutes // 1440}d ago"
    label = f"{_MONTHS[created_at.month - 1]} {created_at.day}"
    if created_at.year != now.year:
        label += f", {created_at.year}"
    return label


def badge_label(count: int) -> str:
    """Text for the unread badge: "" when zero, "99+" above the cap."""
    if count <= 0:
        return ""
    if count > BADGE_MAX_COUNT:
        return f"{BADGE_MAX_COUNT}+"
    return str(count)
