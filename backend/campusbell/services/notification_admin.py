"""
Admin side of notifications: create + deliver to targeted students, list, stats, delete, retention.

Targeting: target_all_users (optionally narrowed by branches / semesters / years) or an explicit
list of user ids. Targets are resolved once at send time; one user_notifications row per user.
After commit, every new delivery row is published as an INSERT on the change feed so signed-in
clients can check for new notifications without waiting for their next poll.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from campusbell.core.constants import (
    DEFAULT_NOTIFICATION_TYPE,
    DEFAULT_PRIORITY,
    EVENT_INSERT,
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_TYPES,
    USER_NOTIFICATIONS_TABLE,
)
from campusbell.core.errors import InvalidNotificationError, NotificationNotFoundError
from campusbell.models.notification import Notification
from campusbell.models.user import User
from campusbell.models.user_notification import UserNotification
from campusbell.services.realtime import ChangeFeed, change_feed

logger = logging.getLogger(__name__)


def _resolve_target_user_ids(
    db: Session,
    *,
    target_all_users: bool,
    target_branches: list[str] | None,
    target_semesters: list[int] | None,
    target_years: list[int] | None,
    target_specific_users: list[str] | None,
) -> list[str]:
    if target_all_users:
        q = db.query(User.id)
        if target_branches:
            q = q.filter(User.branch_id.in_(target_branches))
        if target_semesters:
            q = q.filter(User.semester.in_(target_semesters))
        if target_years:
            q = q.filter(User.year.in_(target_years))
        return [row.id for row in q.all()]
    if target_specific_users:
        wanted = list(dict.fromkeys(target_specific_users))
        known = {row.id for row in db.query(User.id).filter(User.id.in_(wanted)).all()}
        missing = [uid for uid in wanted if uid not in known]
        if missing:
            logger.info("Skipping %s unknown target users: %s", len(missing), missing[:5])
        return [uid for uid in wanted if uid in known]
    return []


def create_and_deliver_notification(
    db: Session,
    *,
    title: str,
    message: str,
    type: str = DEFAULT_NOTIFICATION_TYPE,
    priority: str = DEFAULT_PRIORITY,
    target_all_users: bool = False,
    target_branches: list[str] | None = None,
    target_semesters: list[int] | None = None,
    target_years: list[int] | None = None,
    target_specific_users: list[str] | None = None,
    expires_at: datetime | None = None,
    metadata: dict[str, Any] | None = None,
    created_by: str | None = None,
    is_published: bool = True,
    feed: ChangeFeed | None = None,
) -> dict[str, Any]:
    """
    Insert a notification and its delivery rows. Returns {"id", "send_count"}.
    Raises InvalidNotificationError on empty title/message, unknown type/priority or no targeting.
    """
    title = (title or "").strip()
    message = (message or "").strip()
    if not title or not message:
        raise InvalidNotificationError("title and message are required")
    if type not in NOTIFICATION_TYPES:
        raise InvalidNotificationError(f"unknown notification type: {type}")
    if priority not in NOTIFICATION_PRIORITIES:
        raise InvalidNotificationError(f"unknown priority: {priority}")
    if not target_all_users and not target_specific_users:
        raise InvalidNotificationError("choose target_all_users or target_specific_users")

    user_ids = _resolve_target_user_ids(
        db,
        target_all_users=target_all_users,
        target_branches=target_branches,
        target_semesters=target_semesters,
        target_years=target_years,
        target_specific_users=target_specific_users,
    )
    notification = Notification(
        title=title,
        message=message,
        type=type,
        priority=priority,
        target_all_users=target_all_users,
        target_branches=target_branches,
        target_semesters=target_semesters,
        target_years=target_years,
        target_specific_users=target_specific_users,
        expires_at=expires_at,
        payload=metadata,
        created_by=created_by,
        is_published=is_published,
    )
    db.add(notification)
    db.flush()
    deliveries = [UserNotification(notification_id=notification.id, user_id=uid) for uid in user_ids]
    db.add_all(deliveries)
    notification.send_count = len(deliveries)
    notification.is_sent = bool(deliveries)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Notification %s (%s/%s) delivered to %s users", notification.id, type, priority, len(deliveries))

    feed = feed or change_feed
    for row in deliveries:
        feed.publish(
            USER_NOTIFICATIONS_TABLE,
            EVENT_INSERT,
            {"id": row.id, "notification_id": row.notification_id, "user_id": row.user_id, "is_read": False},
        )
    return {"id": notification.id, "send_count": len(deliveries)}


def _to_admin_dict(n: Notification) -> dict[str, Any]:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "priority": n.priority,
        "target_all_users": n.target_all_users,
        "is_published": n.is_published,
        "is_sent": n.is_sent,
        "send_count": n.send_count,
        "expires_at": n.expires_at.isoformat() if n.expires_at else None,
        "created_at": n.created_at.isoformat() if n.created_at else None,
        "created_by": n.created_by,
        "metadata": n.payload or {},
    }


def list_notifications(db: Session, limit: int = 100) -> list[dict[str, Any]]:
    """All notifications newest first (admin view, no eligibility filter)."""
    rows = db.query(Notification).order_by(Notification.created_at.desc()).limit(limit).all()
    return [_to_admin_dict(n) for n in rows]


def notification_stats(db: Session) -> dict[str, int]:
    """Dashboard counters: total, sent, pending, deliveries (sum of send_count)."""
    rows = db.query(Notification.is_sent, Notification.send_count).all()
    sent = sum(1 for is_sent, _ in rows if is_sent)
    return {
        "total": len(rows),
        "sent": sent,
        "pending": len(rows) - sent,
        "deliveries": sum(count or 0 for _, count in rows),
    }


def delete_notification(db: Session, notification_id: str) -> int:
    """Delete a notification and its delivery rows. Returns deleted delivery count."""
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotificationNotFoundError(f"notification {notification_id} not found")
    # Explicit child delete: SQLite does not enforce ON DELETE CASCADE by default
    deliveries = (
        db.query(UserNotification)
        .filter(UserNotification.notification_id == notification_id)
        .delete(synchronize_session=False)
    )
    db.delete(notification)
    db.commit()
    logger.info("Deleted notification %s and %s delivery rows", notification_id, deliveries)
    return deliveries


def prune_expired_notifications(db: Session, retention_days: int, *, now: datetime | None = None) -> int:
    """Delete notifications whose expires_at is older than retention_days. Returns notifications deleted."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=retention_days)
    ids = [
        row.id
        for row in db.query(Notification.id)
        .filter(Notification.expires_at.isnot(None), Notification.expires_at < cutoff)
        .all()
    ]
    if not ids:
        return 0
    db.query(UserNotification).filter(UserNotification.notification_id.in_(ids)).delete(synchronize_session=False)
    db.query(Notification).filter(Notification.id.in_(ids)).delete(synchronize_session=False)
    db.commit()
    logger.info("Pruned %s notifications expired before %s", len(ids), cutoff.isoformat())
    return len(ids)
