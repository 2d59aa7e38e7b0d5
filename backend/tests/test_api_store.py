import json

import httpx
from conftest import hours, make_item, utcnow

from campusbell.client.store import ApiNotificationStore


def _store(handler):
    return ApiNotificationStore("http://api.test", transport=httpx.MockTransport(handler))


def test_load_sends_user_header_and_refilters_with_local_clock():
    seen = {}
    fresh = make_item("fresh", created_at=utcnow() - hours(1))
    newest = make_item("newest", created_at=utcnow())
    expired = make_item("expired", expires_at=utcnow() - hours(1))

    def handler(request):
        seen["user"] = request.headers["X-User-Id"]
        seen["limit"] = request.url.params["limit"]
        return httpx.Response(200, json={"notifications": [fresh.to_dict(), expired.to_dict(), newest.to_dict()]})

    items = _store(handler).load_notifications("u1", 10)

    assert [n.id for n in items] == ["newest", "fresh"]
    assert seen == {"user": "u1", "limit": "10"}


def test_unread_count_and_mark_read():
    def handler(request):
        if request.url.path == "/notifications/unread-count":
            return httpx.Response(200, json={"unread_count": 4})
        assert request.method == "PATCH"
        assert request.url.path == "/notifications/n1/read"
        return httpx.Response(200, json={"ok": True, "id": "n1"})

    store = _store(handler)
    assert store.get_unread_count("u1") == 4
    assert store.mark_read("n1", "u1") is True


def test_mark_all_read_posts_ids_and_skips_empty():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "count": 2})

    store = _store(handler)
    assert store.mark_all_read("u1", []) is True
    assert bodies == []
    assert store.mark_all_read("u1", ["a", "b"]) is True
    assert bodies == [{"notification_ids": ["a", "b"]}]


def test_http_errors_degrade_silently():
    store = _store(lambda request: httpx.Response(503, text="down"))

    assert store.load_notifications("u1") == []
    assert store.get_unread_count("u1") == 0
    assert store.mark_read("n1", "u1") is False
    assert store.mark_all_read("u1", ["n1"]) is False


def test_transport_errors_degrade_silently():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    store = _store(handler)
    assert store.load_notifications("u1") == []
    assert store.get_unread_count("u1") == 0
    assert store.mark_read("n1", "u1") is False


def test_non_object_payload_degrades_silently():
    store = _store(lambda request: httpx.Response(200, json=[]))

    assert store.load_notifications("u1") == []
    assert store.get_unread_count("u1") == 0
    assert store.mark_read("n1", "u1") is False
    assert store.mark_all_read("u1", ["n1"]) is False


def test_rows_without_created_at_are_skipped():
    good = make_item("good")

    def handler(request):
        rows = [{"id": "a", "title": "no timestamp"}, {"id": "b"}, good.to_dict(), "junk"]
        return httpx.Response(200, json={"notifications": rows})

    assert [n.id for n in _store(handler).load_notifications("u1")] == ["good"]


def test_notifications_field_of_wrong_type_degrades_silently():
    store = _store(lambda request: httpx.Response(200, json={"notifications": "oops"}))

    assert store.load_notifications("u1") == []
