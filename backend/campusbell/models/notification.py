"""Notification content written by admins and delivered to targeted students.

type: exam_reminder | event | opportunity | timetable_update | announcement | custom (icon only).
priority: urgent | high | normal | low (color; urgent popups never auto-dismiss).
Visible to students only while is_published and (expires_at is NULL or in the future).
target_*: who the notification was delivered to; resolved once at send time.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from campusbell.db.base import Base
from campusbell.models._types import JsonType, new_id, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default="custom", index=True)
    priority = Column(String(20), nullable=False, default="normal")

    target_all_users = Column(Boolean, nullable=False, default=False)
    target_branches = Column(JsonType, nullable=True)
    target_semesters = Column(JsonType, nullable=True)
    target_years = Column(JsonType, nullable=True)
    target_specific_users = Column(JsonType, nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    payload = Column("metadata", JsonType, nullable=True)  # type-specific data; column name 'metadata' in DB

    is_sent = Column(Boolean, nullable=False, default=False)
    send_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36), nullable=True)
    is_published = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
