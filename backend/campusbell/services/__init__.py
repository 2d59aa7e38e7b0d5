from campusbell.services.notification_fetcher import get_unread_count, load_notifications, mark_all_read, mark_read
from campusbell.services.realtime import ChangeFeed, change_feed
from campusbell.services.types import NotificationItem, PopupNotification

__all__ = [
    "get_unread_count",
    "load_notifications",
    "mark_all_read",
    "mark_read",
    "ChangeFeed",
    "change_feed",
    "NotificationItem",
    "PopupNotification",
]
