from campusbell.client.center import NotificationCenter
from campusbell.client.popups import PopupOverlay
from campusbell.client.store import ApiNotificationStore, NotificationStore, SqlNotificationStore
from campusbell.client.unread_counter import UnreadCounter

__all__ = [
    "NotificationCenter",
    "PopupOverlay",
    "ApiNotificationStore",
    "NotificationStore",
    "SqlNotificationStore",
    "UnreadCounter",
]
