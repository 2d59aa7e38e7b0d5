import os

# In-memory SQLite through the app's own engine; must be set before campusbell is imported
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

import campusbell.models  # noqa: E402,F401
from campusbell.db.base import Base  # noqa: E402
from campusbell.db.session import SessionLocal, engine  # noqa: E402
from campusbell.models.notification import Notification  # noqa: E402
from campusbell.models.user import User  # noqa: E402
from campusbell.models.user_notification import UserNotification  # noqa: E402
from campusbell.services.types import NotificationItem  # noqa: E402


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(branch_id="cse", semester=5, year=3, name=None):
        counter["n"] += 1
        user = User(
            name=name or f"Student {counter['n']}",
            email=f"student{counter['n']}@example.edu",
            branch_id=branch_id,
            semester=semester,
            year=year,
        )
        db.add(user)
        db.commit()
        return user.id

    return _make


@pytest.fixture
def deliver(db):
    """Insert a notification delivered to user_id; returns the notification id."""

    def _deliver(
        user_id,
        *,
        title="Notice",
        message="Details",
        type="announcement",
        priority="normal",
        created_at=None,
        expires_at=None,
        is_published=True,
        is_read=False,
    ):
        notification = Notification(
            title=title,
            message=message,
            type=type,
            priority=priority,
            target_specific_users=[user_id],
            created_at=created_at or utcnow(),
            expires_at=expires_at,
            is_published=is_published,
            is_sent=True,
            send_count=1,
        )
        db.add(notification)
        db.flush()
        db.add(
            UserNotification(
                notification_id=notification.id,
                user_id=user_id,
                is_read=is_read,
                read_at=utcnow() if is_read else None,
            )
        )
        db.commit()
        return notification.id

    return _deliver


def make_item(
    id,
    *,
    priority="normal",
    created_at=None,
    is_read=False,
    expires_at=None,
    is_published=True,
    type="announcement",
):
    return NotificationItem(
        id=id,
        title=f"Title {id}",
        message=f"Message {id}",
        type=type,
        priority=priority,
        is_read=is_read,
        created_at=created_at or utcnow(),
        expires_at=expires_at,
        is_published=is_published,
    )


class FakeStore:
    """In-memory NotificationStore with the same eligibility and fail-silent contract."""

    def __init__(self):
        self.items: dict[str, list[NotificationItem]] = {}
        self.fail_mark_read = False
        self.calls: list[tuple] = []

    def add(self, user_id, item):
        self.items.setdefault(user_id, []).append(item)
        return item

    def load_notifications(self, user_id, limit=20):
        self.calls.append(("load_notifications", user_id, limit))
        now = utcnow()
        items = [n for n in self.items.get(user_id, []) if n.is_eligible(now)]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items[:limit]

    def get_unread_count(self, user_id):
        self.calls.append(("get_unread_count", user_id))
        now = utcnow()
        return sum(1 for n in self.items.get(user_id, []) if not n.is_read and n.is_eligible(now))

    def mark_read(self, notification_id, user_id):
        self.calls.append(("mark_read", notification_id, user_id))
        if self.fail_mark_read:
            return False
        for n in self.items.get(user_id, []):
            if n.id == notification_id:
                n.is_read = True
                n.read_at = utcnow()
        return True

    def mark_all_read(self, user_id, notification_ids):
        self.calls.append(("mark_all_read", user_id, list(notification_ids)))
        if not notification_ids:
            return True
        for n in self.items.get(user_id, []):
            if n.id in notification_ids:
                n.is_read = True
        return True


@pytest.fixture
def fake_store():
    return FakeStore()


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
