"""Delivery record: one row per (notification, user) with persisted read state.

is_read / read_at: set only by explicit mark-read (single or bulk); clients never delete rows.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint

from campusbell.db.base import Base
from campusbell.models._types import new_id, utcnow


class UserNotification(Base):
    __tablename__ = "user_notifications"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_user_notifications_notification_user"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    notification_id = Column(
        String(36), ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
