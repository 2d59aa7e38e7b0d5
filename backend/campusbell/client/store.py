"""
Notification stores used by the student-app client. Same contract whether the client talks
to the database directly (SqlNotificationStore) or to the HTTP API (ApiNotificationStore).

All methods are synchronous and fail silent: [] / 0 / False on any backend error.
The notification center runs them off the event loop with asyncio.to_thread.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

import httpx
from sqlalchemy.orm import Session

from campusbell.config import settings
from campusbell.core.constants import USER_ID_HEADER
from campusbell.db.session import SessionLocal
from campusbell.services import notification_fetcher
from campusbell.services.types import NotificationItem

logger = logging.getLogger(__name__)


class NotificationStore(Protocol):
    """Read/write contract against the notification backend, keyed by user id."""

    def load_notifications(self, user_id: str, limit: int = 20) -> list[NotificationItem]:
        ...

    def get_unread_count(self, user_id: str) -> int:
        ...

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        ...

    def mark_all_read(self, user_id: str, notification_ids: list[str]) -> bool:
        ...


class SqlNotificationStore:
    """One short-lived session per call, delegating to notification_fetcher."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def load_notifications(self, user_id: str, limit: int = 20) -> list[NotificationItem]:
        db = self._session_factory()
        try:
            return notification_fetcher.load_notifications(db, user_id, limit)
        finally:
            db.close()

    def get_unread_count(self, user_id: str) -> int:
        db = self._session_factory()
        try:
            return notification_fetcher.get_unread_count(db, user_id)
        finally:
            db.close()

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        db = self._session_factory()
        try:
            return notification_fetcher.mark_read(db, notification_id, user_id)
        finally:
            db.close()

    def mark_all_read(self, user_id: str, notification_ids: list[str]) -> bool:
        db = self._session_factory()
        try:
            return notification_fetcher.mark_all_read(db, user_id, notification_ids)
        finally:
            db.close()


class ApiNotificationStore:
    """HTTP client for the /notifications routes. Eligibility is re-checked against the local clock."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._transport = transport

    def _request(self, method: str, path: str, user_id: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {USER_ID_HEADER: user_id}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as c:
                r = c.request(method, url, headers=headers, **kwargs)
        except Exception as e:
            return {"error": str(e)}
        if not r.is_success:
            return {"error": f"API error: {r.status_code}", "detail": (r.text[:500] if r.text else None)}
        try:
            data = r.json() if r.content else {}
        except Exception:
            return {"error": "invalid JSON", "detail": (r.text[:500] if r.text else None)}
        if not isinstance(data, dict):
            return {"error": "unexpected payload", "detail": r.text[:500]}
        return data

    def load_notifications(self, user_id: str, limit: int = 20) -> list[NotificationItem]:
        data = self._request("GET", "/notifications", user_id, params={"limit": limit})
        if data.get("error"):
            logger.warning("Error loading notifications: %s %s", data["error"], data.get("detail") or "")
            return []
        now = datetime.now(timezone.utc)
        items = []
        rows = data.get("notifications") or []
        if not isinstance(rows, list):
            logger.warning("Error loading notifications: unexpected payload %r", rows)
            return []
        for raw in rows:
            try:
                item = NotificationItem.from_dict(raw)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed notification %r: %s", raw, e)
                continue
            if item.is_eligible(now):
                items.append(item)
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items[:limit]

    def get_unread_count(self, user_id: str) -> int:
        data = self._request("GET", "/notifications/unread-count", user_id)
        if data.get("error"):
            logger.warning("Error getting unread count: %s %s", data["error"], data.get("detail") or "")
            return 0
        try:
            return int(data.get("unread_count") or 0)
        except (TypeError, ValueError):
            return 0

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        data = self._request("PATCH", f"/notifications/{notification_id}/read", user_id)
        if data.get("error"):
            logger.warning("Error marking notification as read: %s %s", data["error"], data.get("detail") or "")
            return False
        return bool(data.get("ok"))

    def mark_all_read(self, user_id: str, notification_ids: list[str]) -> bool:
        if not notification_ids:
            return True
        data = self._request(
            "POST", "/notifications/mark-all-read", user_id, json={"notification_ids": list(notification_ids)}
        )
        if data.get("error"):
            logger.warning("Error marking all notifications as read: %s %s", data["error"], data.get("detail") or "")
            return False
        return bool(data.get("ok"))
