"""
HTTP surface tests against the in-memory backend.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from clinic.core.config import Settings
from clinic.main import create_app
from clinic.wiring.dependencies import build_memory_container


ADMIN = {"email": "admin@clinic.local", "password": "admin"}

BOOKING = {
    "full_name": "Maria Lopez",
    "email": "maria@example.com",
    "phone": "+90 555 111 2233",
    "service": "implant",
    "message": "Mornings please",
    "preferred_date": "2024-07-01",
}


def _client() -> TestClient:
    config = Settings(ENV="test", SUPABASE_URL=None, SUPABASE_SESSION_FILE="")
    return TestClient(create_app(container=build_memory_container(config)))


def _login(client: TestClient) -> dict[str, str]:
    resp = client.post("/admin/login", json=ADMIN)
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _book(client: TestClient, **overrides) -> dict:
    resp = client.post("/appointments", json={**BOOKING, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health():
    with _client() as client:
        resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_session_is_resolved_after_startup():
    with _client() as client:
        resp = client.get("/admin/session")

    assert resp.status_code == 200
    assert resp.json() == {"is_authenticated": False, "is_loading": False, "user": None}


def test_appointments_require_login():
    with _client() as client:
        assert client.get("/admin/appointments").status_code == 401
        assert client.post("/admin/appointments/refresh").status_code == 401


def test_login_rejects_wrong_password():
    with _client() as client:
        resp = client.post("/admin/login", json={"email": ADMIN["email"], "password": "nope"})

        assert resp.status_code == 401
        assert client.get("/admin/session").json()["is_authenticated"] is False


def test_login_returns_token_and_user_profile():
    with _client() as client:
        resp = client.post("/admin/login", json=ADMIN)
        token = resp.json()["access_token"]
        session = client.get("/admin/session", headers={"Authorization": f"Bearer {token}"}).json()

    assert resp.status_code == 200
    assert token
    assert resp.json()["token_type"] == "bearer"
    assert resp.json()["user"]["email"] == ADMIN["email"]
    assert resp.json()["user"]["name"] == "admin"
    assert session["is_authenticated"] is True
    assert session["user"]["email"] == ADMIN["email"]


def test_admin_routes_reject_callers_without_the_operator_token():
    with _client() as client:
        booked = _book(client)
        headers = _login(client)
        url = f"/admin/appointments/{booked['id']}/status"

        stranger = TestClient(client.app)
        listed = stranger.get("/admin/appointments")
        cancelled = stranger.post(url, json={"status": "cancelled"})
        forged = stranger.get("/admin/appointments", headers={"Authorization": "Bearer not-the-token"})
        blogs = stranger.post("/admin/blogs", json={"title": "Spam"})
        session = stranger.get("/admin/session").json()

        own = client.get("/admin/appointments", headers=headers).json()

    assert listed.status_code == 401
    assert cancelled.status_code == 401
    assert forged.status_code == 401
    assert blogs.status_code == 401
    assert session == {"is_authenticated": False, "is_loading": False, "user": None}
    assert [a["status"] for a in own["appointments"]] == ["pending"]


def test_booking_is_created_pending():
    with _client() as client:
        body = _book(client)

    assert body["status"] == "pending"
    assert body["preferred_date"] == "2024-07-01"
    assert body["email"] == "maria@example.com"


def test_invalid_booking_is_rejected():
    with _client() as client:
        resp = client.post("/appointments", json={**BOOKING, "phone": "123"})

    assert resp.status_code == 422


def test_list_search_and_status_filter():
    with _client() as client:
        _book(client)
        _book(client, full_name="John Smith", email="john@example.com", phone="+90 555 444 5566")
        headers = _login(client)
        assert client.post("/admin/appointments/refresh", headers=headers).status_code == 200

        all_rows = client.get("/admin/appointments", headers=headers).json()
        searched = client.get("/admin/appointments", params={"search": "SMITH"}, headers=headers).json()
        bad_filter = client.get("/admin/appointments", params={"status": "archived"}, headers=headers)

    assert sorted(a["full_name"] for a in all_rows["appointments"]) == ["John Smith", "Maria Lopez"]
    assert all_rows["counts"] == {"pending": 2, "confirmed": 0, "cancelled": 0, "all": 2}
    assert [a["full_name"] for a in searched["appointments"]] == ["John Smith"]
    assert searched["search"] == "SMITH"
    assert bad_filter.status_code == 422


def test_filters_do_not_carry_over_between_requests():
    with _client() as client:
        _book(client)
        _book(client, full_name="John Smith", email="john@example.com", phone="+90 555 444 5566")
        headers = _login(client)

        filtered = client.get(
            "/admin/appointments", params={"search": "smith", "status": "pending"}, headers=headers
        ).json()
        plain = client.get("/admin/appointments", headers=headers).json()

    assert len(filtered["appointments"]) == 1
    assert plain["search"] == ""
    assert plain["status"] == "all"
    assert len(plain["appointments"]) == 2


def test_status_update_flow():
    with _client() as client:
        booked = _book(client)
        headers = _login(client)
        client.post("/admin/appointments/refresh", headers=headers)
        url = f"/admin/appointments/{booked['id']}/status"

        confirmed = client.post(url, json={"status": "confirmed"}, headers=headers)
        repeat = client.post(url, json={"status": "cancelled"}, headers=headers)
        unknown = client.post("/admin/appointments/missing/status", json={"status": "confirmed"}, headers=headers)
        invalid = client.post(url, json={"status": "archived"}, headers=headers)
        listed = client.get("/admin/appointments", params={"status": "confirmed"}, headers=headers).json()

    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert repeat.status_code == 409
    assert unknown.status_code == 502
    assert invalid.status_code == 422
    assert [a["id"] for a in listed["appointments"]] == [booked["id"]]


def test_logout_closes_the_admin_surface():
    with _client() as client:
        headers = _login(client)
        assert client.get("/admin/appointments", headers=headers).status_code == 200

        resp = client.post("/admin/logout", headers=headers)

        assert resp.status_code == 204
        assert client.get("/admin/appointments", headers=headers).status_code == 401
        assert client.get("/admin/session", headers=headers).json()["is_authenticated"] is False


def test_blog_admin_and_public_listing():
    with _client() as client:
        assert client.post("/admin/blogs", json={"title": "Nope"}).status_code == 401

        headers = _login(client)
        draft = client.post("/admin/blogs", json={"title": "Work in progress"}, headers=headers).json()
        live = client.post(
            "/admin/blogs",
            json={"title": "Implant Aftercare, Explained", "content": "<p>Rest</p>", "status": "published"},
            headers=headers,
        ).json()

        public = client.get("/blogs").json()
        hidden = client.get(f"/blogs/{draft['id']}")
        shown = client.get(f"/blogs/{live['id']}")

        renamed = client.put(
            f"/admin/blogs/{draft['id']}", json={"title": "Ready Now", "status": "published"}, headers=headers
        )
        deleted = client.delete(f"/admin/blogs/{live['id']}", headers=headers)
        deleted_again = client.delete(f"/admin/blogs/{live['id']}", headers=headers)
        remaining = client.get("/blogs").json()

    assert live["slug"] == "implant-aftercare-explained"
    assert [p["id"] for p in public] == [live["id"]]
    assert hidden.status_code == 404
    assert shown.status_code == 200
    assert renamed.json()["slug"] == "ready-now"
    assert deleted.status_code == 204
    assert deleted_again.status_code == 404
    assert [p["id"] for p in remaining] == [draft["id"]]
