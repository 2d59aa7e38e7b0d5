"""Normalized notification types. Same shape whether read from SQL or from the HTTP API."""
from datetime import datetime, timezone
from typing import Any


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite) as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string (API payload) or datetime -> aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def is_eligible(is_published: bool, expires_at: datetime | None, now: datetime) -> bool:
    """Published and not expired at `now` (expiry equal to now counts as expired)."""
    if not is_published:
        return False
    expires_at = as_utc(expires_at)
    if expires_at is not None and expires_at <= now:
        return False
    return True


class NotificationItem:
    """One notification as seen by a user: content joined with that user's delivery record."""

    __slots__ = (
        "id",
        "title",
        "message",
        "type",
        "priority",
        "is_read",
        "read_at",
        "created_at",
        "expires_at",
        "is_published",
        "metadata",
    )

    def __init__(
        self,
        *,
        id: str,
        title: str,
        message: str,
        type: str,
        priority: str,
        is_read: bool,
        created_at: datetime,
        read_at: datetime | None = None,
        expires_at: datetime | None = None,
        is_published: bool = True,
        metadata: dict[str, Any] | None = None,
    ):
        self.id = id
        self.title = title
        self.message = message
        self.type = type
        self.priority = priority
        self.is_read = is_read
        self.read_at = as_utc(read_at)
        self.created_at = as_utc(created_at)
        self.expires_at = as_utc(expires_at)
        self.is_published = is_published
        self.metadata = metadata or {}

    def __repr__(self) -> str:
        return f"NotificationItem(id={self.id!r}, priority={self.priority!r}, is_read={self.is_read!r})"

    def is_eligible(self, now: datetime) -> bool:
        return is_eligible(self.is_published, self.expires_at, now)

    def to_dict(self) -> dict[str, Any]:
        """API payload: timestamps as ISO strings."""
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "priority": self.priority,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_published": self.is_published,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationItem":
        """Build from an API row. Raises ValueError when created_at is missing or unparseable."""
        created_at = parse_timestamp(data.get("created_at"))
        if created_at is None:
            raise ValueError("notification row without created_at")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            message=data.get("message") or "",
            type=data.get("type") or "custom",
            priority=data.get("priority") or "normal",
            is_read=bool(data.get("is_read")),
            read_at=parse_timestamp(data.get("read_at")),
            created_at=created_at,
            expires_at=parse_timestamp(data.get("expires_at")),
            is_published=bool(data.get("is_published", True)),
            metadata=data.get("metadata") or {},
        )


class PopupNotification:
    """A notification queued for display as a toast. Client-local, never persisted."""

    __slots__ = ("notification", "show_as_popup")

    def __init__(self, notification: NotificationItem):
        self.notification = notification
        self.show_as_popup = True

    @property
    def id(self) -> str:
        return self.notification.id

    @property
    def priority(self) -> str:
        return self.notification.priority

    def __repr__(self) -> str:
        return f"PopupNotification(id={self.id!r})"
