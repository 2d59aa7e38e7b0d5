import pytest
from conftest import hours, utcnow
from fastapi.testclient import TestClient

from campusbell.main import app


@pytest.fixture
def client():
    # No context manager: the retention scheduler in the lifespan is not needed here
    return TestClient(app)


def test_list_requires_user_header(client):
    assert client.get("/notifications").status_code == 401


def test_list_and_unread_count(client, make_user, deliver):
    user = make_user()
    older = deliver(user, title="older", created_at=utcnow() - hours(2))
    newer = deliver(user, title="newer", created_at=utcnow() - hours(1))
    deliver(user, title="expired", expires_at=utcnow() - hours(1))
    headers = {"X-User-Id": user}

    body = client.get("/notifications", headers=headers, params={"limit": 10}).json()
    assert [n["id"] for n in body["notifications"]] == [newer, older]
    assert body["notifications"][0]["is_read"] is False
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread_count": 2}


def test_mark_read_and_mark_all_read(client, make_user, deliver):
    user = make_user()
    a, b, c = deliver(user), deliver(user), deliver(user)
    headers = {"X-User-Id": user}

    assert client.patch(f"/notifications/{a}/read", headers=headers).json()["ok"] is True
    assert client.get("/notifications/unread-count", headers=headers).json()["unread_count"] == 2

    resp = client.post("/notifications/mark-all-read", headers=headers, json={"notification_ids": [b, c]})
    assert resp.json() == {"ok": True, "count": 2}
    assert client.get("/notifications/unread-count", headers=headers).json()["unread_count"] == 0


def test_mark_all_read_with_empty_ids(client, make_user, deliver):
    user = make_user()
    deliver(user)
    headers = {"X-User-Id": user}

    assert client.post("/notifications/mark-all-read", headers=headers, json={"notification_ids": []}).json()["ok"]
    assert client.get("/notifications/unread-count", headers=headers).json()["unread_count"] == 1


def test_admin_send_list_stats_delete(client, make_user):
    student = make_user()

    resp = client.post(
        "/admin/notifications",
        json={
            "title": "Fest",
            "message": "Starts Monday",
            "type": "event",
            "priority": "high",
            "target_specific_users": [student],
        },
    )
    assert resp.status_code == 200
    created = resp.json()
    assert created["ok"] is True and created["send_count"] == 1

    listed = client.get("/notifications", headers={"X-User-Id": student}).json()["notifications"]
    assert [n["title"] for n in listed] == ["Fest"]
    assert client.get("/admin/notifications").json()["notifications"][0]["id"] == created["id"]
    assert client.get("/admin/notifications/stats").json()["deliveries"] == 1

    assert client.delete(f"/admin/notifications/{created['id']}").json()["deliveries_deleted"] == 1
    assert client.delete(f"/admin/notifications/{created['id']}").status_code == 404


def test_admin_rejects_unknown_type(client, make_user):
    student = make_user()
    resp = client.post(
        "/admin/notifications",
        json={"title": "x", "message": "y", "type": "gossip", "target_specific_users": [student]},
    )
    assert resp.status_code == 400
    assert "gossip" in resp.json()["detail"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
