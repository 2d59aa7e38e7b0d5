"""Admin notifications API: send (create + deliver), list, stats, delete."""
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from campusbell.core.constants import DEFAULT_NOTIFICATION_TYPE, DEFAULT_PRIORITY
from campusbell.core.errors import CampusbellError, service_error_to_http
from campusbell.db.session import get_db
from campusbell.services import notification_admin

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateNotificationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: str = Field(DEFAULT_NOTIFICATION_TYPE, description="exam_reminder | event | opportunity | timetable_update | announcement | custom")
    priority: str = Field(DEFAULT_PRIORITY, description="urgent | high | normal | low")
    target_all_users: bool = False
    target_branches: list[str] | None = None
    target_semesters: list[int] | None = None
    target_years: list[int] | None = None
    target_specific_users: list[str] | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] | None = None
    created_by: str | None = None
    is_published: bool = True


@router.post("/admin/notifications")
def send_notification(body: CreateNotificationRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Create a notification and deliver it to the targeted students."""
    try:
        result = notification_admin.create_and_deliver_notification(db, **body.model_dump())
    except CampusbellError as e:
        raise service_error_to_http(e) from e
    return {"ok": True, **result}


@router.get("/admin/notifications")
def list_sent_notifications(
    db: Session = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
) -> dict[str, Any]:
    return {"notifications": notification_admin.list_notifications(db, limit)}


@router.get("/admin/notifications/stats")
def stats(db: Session = Depends(get_db)) -> dict[str, int]:
    return notification_admin.notification_stats(db)


@router.delete("/admin/notifications/{notification_id}")
def delete_notification(notification_id: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        deliveries = notification_admin.delete_notification(db, notification_id)
    except CampusbellError as e:
        raise service_error_to_http(e) from e
    return {"ok": True, "id": notification_id, "deliveries_deleted": deliveries}
