"""
Student notifications API: list, unread count, mark one read, mark a set read.

The signed-in student is identified by the X-User-Id header. Only published, unexpired
notifications are returned or counted. Backend errors degrade to empty/zero/ok=false.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from campusbell.core.constants import USER_ID_HEADER
from campusbell.core.errors import MSG_MISSING_USER, STATUS_UNAUTHORIZED
from campusbell.db.session import get_db
from campusbell.services import notification_fetcher

router = APIRouter()
logger = logging.getLogger(__name__)


def _user_id(x_user_id: str | None = Header(None, alias=USER_ID_HEADER)) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=STATUS_UNAUTHORIZED, detail=MSG_MISSING_USER)
    return user_id


# --- List ---


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    user_id: str = Depends(_user_id),
    limit: int = Query(20, ge=1, le=200),
) -> dict[str, Any]:
    """Eligible notifications for the user, newest first."""
    items = notification_fetcher.load_notifications(db, user_id, limit)
    return {"notifications": [n.to_dict() for n in items]}


# --- Unread count ---


@router.get("/notifications/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    user_id: str = Depends(_user_id),
) -> dict[str, Any]:
    return {"unread_count": notification_fetcher.get_unread_count(db, user_id)}


# --- Mark one read ---


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(_user_id),
) -> dict[str, Any]:
    """Mark a single notification as read (idempotent)."""
    return {"ok": notification_fetcher.mark_read(db, notification_id, user_id), "id": notification_id}


# --- Mark a set read ---


class MarkAllReadRequest(BaseModel):
    notification_ids: list[str] = Field(default_factory=list, max_length=500)


@router.post("/notifications/mark-all-read")
def mark_all_read(
    body: MarkAllReadRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(_user_id),
) -> dict[str, Any]:
    """Mark the given notifications read (e.g. 'Mark all as read' on the list screen)."""
    ok = notification_fetcher.mark_all_read(db, user_id, body.notification_ids)
    return {"ok": ok, "count": len(body.notification_ids)}
