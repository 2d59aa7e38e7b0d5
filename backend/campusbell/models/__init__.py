from campusbell.models.notification import Notification
from campusbell.models.user import User
from campusbell.models.user_notification import UserNotification

__all__ = [
    "Notification",
    "User",
    "UserNotification",
]
