"""
Notification read/write path for one user: list, unread count, mark read, mark all read.

Best-effort by design of the feature: backend errors are logged and collapse to
an empty list, a zero count or False. Callers cannot tell "no data" from "error".
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from campusbell.models.notification import Notification
from campusbell.models.user_notification import UserNotification
from campusbell.services.types import NotificationItem

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def _eligible_filters(now: datetime) -> tuple:
    """Published and unexpired at `now`, evaluated when the query runs."""
    return (
        Notification.is_published.is_(True),
        or_(Notification.expires_at.is_(None), Notification.expires_at > now),
    )


def _to_item(delivery: UserNotification, notification: Notification) -> NotificationItem:
    return NotificationItem(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        priority=notification.priority,
        is_read=bool(delivery.is_read),
        read_at=delivery.read_at,
        created_at=notification.created_at,
        expires_at=notification.expires_at,
        is_published=bool(notification.is_published),
        metadata=notification.payload or {},
    )


def load_notifications(
    db: Session,
    user_id: str,
    limit: int = DEFAULT_LIMIT,
    *,
    now: datetime | None = None,
) -> list[NotificationItem]:
    """
    Eligible notifications delivered to user_id, newest first (by notification created_at), at most limit.
    Returns [] on any backend error.
    """
    now = now or datetime.now(timezone.utc)
    try:
        rows = (
            db.query(UserNotification, Notification)
            .join(Notification, UserNotification.notification_id == Notification.id)
            .filter(UserNotification.user_id == user_id, *_eligible_filters(now))
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .all()
        )
    except Exception as e:
        logger.warning("Error loading notifications for user %s: %s", user_id, e, exc_info=True)
        db.rollback()
        return []
    items = [_to_item(delivery, notification) for delivery, notification in rows]
    # Re-check with the same clock: the SQL comparison may lose tz info on some dialects
    return [item for item in items if item.is_eligible(now)]


def get_unread_count(db: Session, user_id: str, *, now: datetime | None = None) -> int:
    """Count unread, eligible delivery rows for user_id. Returns 0 on any backend error."""
    now = now or datetime.now(timezone.utc)
    try:
        return (
            db.query(UserNotification)
            .join(Notification, UserNotification.notification_id == Notification.id)
            .filter(
                UserNotification.user_id == user_id,
                UserNotification.is_read.is_(False),
                *_eligible_filters(now),
            )
            .count()
        )
    except Exception as e:
        logger.warning("Error getting unread count for user %s: %s", user_id, e, exc_info=True)
        db.rollback()
        return 0


def mark_read(db: Session, notification_id: str, user_id: str) -> bool:
    """Set is_read/read_at on the user's delivery row. Idempotent; False only on backend error."""
    now = datetime.now(timezone.utc)
    try:
        (
            db.query(UserNotification)
            .filter(UserNotification.notification_id == notification_id, UserNotification.user_id == user_id)
            .update({UserNotification.is_read: True, UserNotification.read_at: now}, synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        logger.warning("Error marking notification %s read for user %s: %s", notification_id, user_id, e, exc_info=True)
        db.rollback()
        return False
    return True


def mark_all_read(db: Session, user_id: str, notification_ids: list[str]) -> bool:
    """Bulk mark-read scoped to the given ids. Empty ids: True without touching the database."""
    if not notification_ids:
        return True
    now = datetime.now(timezone.utc)
    try:
        updated = (
            db.query(UserNotification)
            .filter(
                UserNotification.user_id == user_id,
                UserNotification.notification_id.in_(list(notification_ids)),
            )
            .update({UserNotification.is_read: True, UserNotification.read_at: now}, synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        logger.warning("Error marking all notifications read for user %s: %s", user_id, e, exc_info=True)
        db.rollback()
        return False
    logger.debug("Marked %s notifications read for user %s", updated, user_id)
    return True
