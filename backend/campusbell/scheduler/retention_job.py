"""Runs daily: delete notifications (and their delivery rows) expired longer than the retention window."""
import logging

from campusbell.config import settings
from campusbell.db.session import SessionLocal
from campusbell.services.notification_admin import prune_expired_notifications

logger = logging.getLogger(__name__)


def run_notification_retention_job() -> None:
    db = SessionLocal()
    try:
        deleted = prune_expired_notifications(db, settings.notifications_retention_days)
        if deleted:
            logger.info("Retention job: pruned %s expired notifications", deleted)
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        db.rollback()
    finally:
        db.close()
