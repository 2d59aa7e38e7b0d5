from conftest import hours, utcnow

from campusbell.db.base import Base
from campusbell.db.session import engine
from campusbell.models.user_notification import UserNotification
from campusbell.services import notification_fetcher as fetcher


def test_load_returns_all_eligible_newest_first(db, make_user, deliver):
    user = make_user()
    base = utcnow() - hours(10)
    ids = [deliver(user, title=f"n{i}", created_at=base + hours(i)) for i in range(5)]

    items = fetcher.load_notifications(db, user, 10)

    assert [n.id for n in items] == list(reversed(ids))
    assert all(not n.is_read for n in items)
    assert items[0].created_at > items[-1].created_at


def test_load_caps_at_limit(db, make_user, deliver):
    user = make_user()
    base = utcnow() - hours(10)
    for i in range(6):
        deliver(user, created_at=base + hours(i))

    assert len(fetcher.load_notifications(db, user, 4)) == 4


def test_load_only_returns_own_deliveries(db, make_user, deliver):
    alice, bob = make_user(), make_user()
    mine = deliver(alice)
    deliver(bob)

    assert [n.id for n in fetcher.load_notifications(db, alice)] == [mine]


def test_expired_and_unpublished_are_excluded_regardless_of_read_state(db, make_user, deliver):
    user = make_user()
    past = utcnow() - hours(1)
    deliver(user, title="expired unread", expires_at=past)
    deliver(user, title="expired read", expires_at=past, is_read=True)
    deliver(user, title="draft unread", is_published=False)
    deliver(user, title="draft read", is_published=False, is_read=True)
    visible = deliver(user, title="visible", expires_at=utcnow() + hours(24))

    assert [n.id for n in fetcher.load_notifications(db, user)] == [visible]
    assert fetcher.get_unread_count(db, user) == 1


def test_expiry_is_evaluated_at_query_time(db, make_user, deliver):
    user = make_user()
    t = utcnow() - hours(3)
    deliver(user, created_at=t, expires_at=t + hours(1))

    assert len(fetcher.load_notifications(db, user, now=t + hours(0.5))) == 1
    assert fetcher.get_unread_count(db, user, now=t + hours(0.5)) == 1
    assert fetcher.load_notifications(db, user, now=t + hours(2)) == []
    assert fetcher.get_unread_count(db, user, now=t + hours(2)) == 0


def test_unread_count_skips_read(db, make_user, deliver):
    user = make_user()
    deliver(user)
    deliver(user)
    deliver(user, is_read=True)

    assert fetcher.get_unread_count(db, user) == 2


def test_mark_read_decrements_count_by_one_and_is_idempotent(db, make_user, deliver):
    user = make_user()
    first = deliver(user)
    deliver(user)
    deliver(user)
    before = fetcher.get_unread_count(db, user)

    assert fetcher.mark_read(db, first, user) is True
    assert fetcher.get_unread_count(db, user) == before - 1
    assert fetcher.mark_read(db, first, user) is True
    assert fetcher.get_unread_count(db, user) == before - 1

    row = db.query(UserNotification).filter(UserNotification.notification_id == first).one()
    assert row.is_read is True
    assert row.read_at is not None


def test_mark_read_is_scoped_to_user(db, make_user, deliver):
    alice, bob = make_user(), make_user()
    nid = deliver(alice)

    assert fetcher.mark_read(db, nid, bob) is True
    assert fetcher.get_unread_count(db, alice) == 1


def test_mark_all_read_only_touches_given_ids(db, make_user, deliver):
    user = make_user()
    a, b, c = deliver(user), deliver(user), deliver(user)

    assert fetcher.mark_all_read(db, user, [a, b]) is True
    db.expire_all()
    unread = {n.id for n in fetcher.load_notifications(db, user) if not n.is_read}
    assert unread == {c}


class _ExplodingSession:
    def __getattr__(self, name):
        raise AssertionError(f"database touched: {name}")


def test_mark_all_read_with_no_ids_short_circuits(db, make_user, deliver):
    user = make_user()
    deliver(user)

    assert fetcher.mark_all_read(_ExplodingSession(), user, []) is True
    assert fetcher.mark_all_read(db, user, []) is True
    assert fetcher.get_unread_count(db, user) == 1


def test_backend_errors_degrade_to_empty_zero_false(db, make_user, deliver):
    user = make_user()
    nid = deliver(user)
    Base.metadata.drop_all(engine)

    assert fetcher.load_notifications(db, user) == []
    assert fetcher.get_unread_count(db, user) == 0
    assert fetcher.mark_read(db, nid, user) is False
    assert fetcher.mark_all_read(db, user, [nid]) is False


def test_items_carry_content_and_utc_timestamps(db, make_user, deliver):
    user = make_user()
    deliver(user, title="Exam", message="Tomorrow 9am", type="exam_reminder", priority="urgent")

    (item,) = fetcher.load_notifications(db, user)
    assert (item.title, item.message, item.type, item.priority) == ("Exam", "Tomorrow 9am", "exam_reminder", "urgent")
    assert item.created_at.tzinfo is not None
    assert item.to_dict()["created_at"].endswith("+00:00")
