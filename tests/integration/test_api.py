"""
Integration tests for the HTTP API.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from core.database import SessionLocal
from models.user import UserModel

PAID_CONTENT = {
    "title": "Mathematics Form 4",
    "description": "Complete revision kit with solved problems",
    "subject": "Mathematics",
    "price": 10,
    "type": "pdf",
    "lessons": 24,
}
FREE_CONTENT = dict(PAID_CONTENT, title="Physics Form 4", subject="Physics", price=0)


def _create(client, admin_headers, body):
    response = client.post("/api/content", json=body, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


def _upload(client, admin_headers, body, data=b"%PDF-1.4 test", filename="kit.pdf"):
    form = {k: str(v) for k, v in body.items() if k != "type"}
    response = client.post(
        "/api/content/upload",
        data=form,
        files={"file": (filename, data, "application/pdf")},
        headers=admin_headers,
    )
    return response


def _expire_subscription(email):
    db = SessionLocal()
    try:
        user = db.query(UserModel).filter(UserModel.email == email).one()
        user.subscription_expires_at = (
            datetime.now(pytz.utc) - timedelta(days=1)
        ).isoformat()
        db.commit()
    finally:
        db.close()


class TestInfo:
    def test_root_and_health(self, client):
        assert client.get("/").json()["health"] == "/api/health"
        assert client.get("/api/health").json() == {"status": "ok"}


class TestAuth:
    """Tests for registration, login and tokens."""

    def test_register_returns_public_user(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "Amy", "email": "Amy@Example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email"] == "amy@example.com"
        assert body["user"]["role"] == "student"
        assert "password_hash" not in body["user"]

    def test_duplicate_email_is_conflict(self, client, register):
        register("amy@example.com")

        response = client.post(
            "/api/auth/register",
            json={"name": "Imposter", "email": "AMY@example.com", "password": "secret123"},
        )

        assert response.status_code == 409

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "Amy", "email": "not-an-email", "password": "secret123"},
            {"name": "Amy", "email": "amy@example.com", "password": "123"},
        ],
    )
    def test_register_validation(self, client, body):
        assert client.post("/api/auth/register", json=body).status_code == 422

    def test_login_and_me(self, client, register):
        register("amy@example.com", password="secret123", name="Amy")

        response = client.post(
            "/api/auth/login", json={"email": "amy@example.com", "password": "secret123"}
        )
        token = response.json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200
        assert me.json()["name"] == "Amy"

    def test_login_rejects_bad_password(self, client, register):
        register("amy@example.com")

        response = client.post(
            "/api/auth/login", json={"email": "amy@example.com", "password": "nope-nope"}
        )

        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401
        assert client.get(
            "/api/auth/me", headers={"Authorization": "Bearer forged"}
        ).status_code == 401

    def test_logout_revokes_token(self, client, register):
        headers = register("amy@example.com")

        assert client.post("/api/auth/logout", headers=headers).json() == {"success": True}
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_update_profile(self, client, register):
        headers = register("amy@example.com")

        response = client.patch(
            "/api/auth/me", json={"name": "Amy B", "phone": "0700"}, headers=headers
        )

        assert response.json()["name"] == "Amy B"
        assert response.json()["phone"] == "0700"

    def test_list_users_is_admin_only(self, client, register, admin_headers):
        student = register("amy@example.com")

        assert client.get("/api/auth/users", headers=student).status_code == 403
        emails = [u["email"] for u in client.get("/api/auth/users", headers=admin_headers).json()]
        assert "amy@example.com" in emails


class TestCatalog:
    """Tests for catalog browsing and admin management."""

    def test_listing_marks_priced_items_locked(self, client, admin_headers):
        _create(client, admin_headers, PAID_CONTENT)
        _create(client, admin_headers, FREE_CONTENT)

        listing = {item["title"]: item["locked"] for item in client.get("/api/content").json()}

        assert listing == {"Mathematics Form 4": True, "Physics Form 4": False}

    def test_students_cannot_manage_catalog(self, client, register):
        headers = register("amy@example.com")

        assert client.post("/api/content", json=PAID_CONTENT, headers=headers).status_code == 403
        assert client.post("/api/content", json=PAID_CONTENT).status_code == 401

    def test_detail_hides_artifact(self, client, admin_headers):
        created = _upload(client, admin_headers, PAID_CONTENT).json()

        detail = client.get(f"/api/content/{created['content_id']}").json()

        assert detail["locked"] is True
        assert "file_id" not in detail

    def test_update_content(self, client, admin_headers):
        created = _create(client, admin_headers, PAID_CONTENT)

        response = client.put(
            f"/api/content/{created['content_id']}",
            json={"price": 12.5},
            headers=admin_headers,
        )

        assert response.json()["price"] == 12.5
        assert response.json()["title"] == PAID_CONTENT["title"]

    def test_unknown_content(self, client, admin_headers):
        assert client.get("/api/content/missing").status_code == 404
        assert client.put(
            "/api/content/missing", json={"price": 1}, headers=admin_headers
        ).status_code == 404
        assert client.delete("/api/content/missing", headers=admin_headers).status_code == 404

    def test_upload_rejects_empty_file(self, client, admin_headers):
        assert _upload(client, admin_headers, PAID_CONTENT, data=b"").status_code == 400

    def test_upload_validates_fields(self, client, admin_headers):
        body = dict(PAID_CONTENT, title="ab")

        assert _upload(client, admin_headers, body).status_code == 400

    def test_upload_records_artifact(self, client, admin_headers, artifact_store):
        response = _upload(client, admin_headers, PAID_CONTENT)

        assert response.status_code == 201
        item = response.json()
        assert item["type"] == "pdf"
        assert item["file_name"] == "kit.pdf"
        assert artifact_store.path_for(item["file_id"]).read_bytes() == b"%PDF-1.4 test"

    def test_replace_file_removes_old_artifact(self, client, admin_headers, artifact_store):
        item = _upload(client, admin_headers, PAID_CONTENT).json()

        response = client.put(
            f"/api/content/{item['content_id']}/file",
            files={"file": ("v2.pdf", b"%PDF-1.5 v2", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["file_name"] == "v2.pdf"
        assert artifact_store.path_for(response.json()["file_id"]).exists()
        assert not (artifact_store.root / item["file_id"]).exists()

    def test_delete_removes_artifact(self, client, admin_headers, artifact_store):
        item = _upload(client, admin_headers, PAID_CONTENT).json()

        response = client.delete(f"/api/content/{item['content_id']}", headers=admin_headers)

        assert response.json() == {"success": True}
        assert not (artifact_store.root / item["file_id"]).exists()


class TestEntitlements:
    """End-to-end entitlement behaviour through the HTTP surface."""

    def test_free_content_downloadable_by_everyone(self, client, register, admin_headers):
        item = _upload(client, admin_headers, FREE_CONTENT).json()
        headers = register("amy@example.com")

        response = client.get(f"/api/content/{item['content_id']}/file", headers=headers)

        assert response.status_code == 200
        assert response.content == b"%PDF-1.4 test"
        assert "kit.pdf" in response.headers["content-disposition"]

    def test_free_content_backfills_libraries(self, client, register, admin_headers):
        students = [register(f"user{i}@example.com") for i in range(10)]

        item = _create(client, admin_headers, FREE_CONTENT)

        for headers in students:
            purchased = client.get("/api/content/purchased", headers=headers).json()
            assert [p["content_id"] for p in purchased] == [item["content_id"]]
        late = register("late@example.com")
        purchased = client.get("/api/content/purchased", headers=late).json()
        assert [p["content_id"] for p in purchased] == [item["content_id"]]

    def test_download_ordering(self, client, register, admin_headers):
        headers = register("amy@example.com")
        paid = _create(client, admin_headers, PAID_CONTENT)
        free = _create(client, admin_headers, FREE_CONTENT)

        # Unauthenticated before anything is looked up
        assert client.get("/api/content/missing/file").status_code == 401
        assert client.get("/api/content/missing/file", headers=headers).status_code == 404
        # Nothing uploaded, whether or not the caller is entitled
        for content_id in (paid["content_id"], free["content_id"]):
            response = client.get(f"/api/content/{content_id}/file", headers=headers)
            assert response.status_code == 404
            assert response.json()["detail"] == "No file has been uploaded for this content."
        # A file exists but the caller is not entitled
        uploaded = _upload(client, admin_headers, PAID_CONTENT).json()
        response = client.get(f"/api/content/{uploaded['content_id']}/file", headers=headers)
        assert response.status_code == 403

    def test_admin_grant_unlocks_download(self, client, register, admin_headers):
        item = _upload(client, admin_headers, PAID_CONTENT).json()
        headers = register("amy@example.com")
        user_id = client.get("/api/auth/me", headers=headers).json()["user_id"]
        grant_url = f"/api/content/{item['content_id']}/grants"

        assert client.post(grant_url, json={"user_id": user_id}, headers=headers).status_code == 403
        response = client.post(grant_url, json={"user_id": user_id}, headers=admin_headers)

        assert response.json() == {"success": True, "added": True}
        assert client.get(f"/api/content/{item['content_id']}/file", headers=headers).status_code == 200
        purchased = client.get("/api/content/purchased", headers=headers).json()
        assert [p["content_id"] for p in purchased] == [item["content_id"]]
        assert client.post(
            grant_url, json={"user_id": "missing"}, headers=admin_headers
        ).status_code == 404
        assert client.post(
            "/api/content/missing/grants", json={"user_id": user_id}, headers=admin_headers
        ).status_code == 404

    def test_premium_activation_unlocks_download(self, client, register, admin_headers):
        item = _upload(client, admin_headers, PAID_CONTENT).json()
        headers = register("amy@example.com")
        url = f"/api/content/{item['content_id']}/file"
        assert client.get(url, headers=headers).status_code == 403

        response = client.post(
            "/api/subscription/activate", json={"plan_id": "premium"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is True
        assert client.get(url, headers=headers).status_code == 200
        assert client.get("/api/subscription", headers=headers).json()["is_active"] is True

    def test_expired_subscription_locks_content_created_later(
        self, client, register, admin_headers
    ):
        headers = register("amy@example.com")
        client.post("/api/subscription/activate", json={"plan_id": "starter"}, headers=headers)
        item = _upload(client, admin_headers, PAID_CONTENT).json()
        url = f"/api/content/{item['content_id']}/file"
        assert client.get(url, headers=headers).status_code == 200

        _expire_subscription("amy@example.com")

        assert client.get(url, headers=headers).status_code == 403
        status = client.get("/api/subscription", headers=headers).json()
        assert status["subscription"]["status"] == "active"
        assert status["is_active"] is False

    def test_deleted_content_is_not_found(self, client, register, admin_headers):
        item = _upload(client, admin_headers, FREE_CONTENT).json()
        headers = register("amy@example.com")

        client.delete(f"/api/content/{item['content_id']}", headers=admin_headers)

        response = client.get(f"/api/content/{item['content_id']}/file", headers=headers)
        assert response.status_code == 404
        assert client.get("/api/content/purchased", headers=headers).json() == []

    def test_unknown_plan(self, client, register):
        headers = register("amy@example.com")

        response = client.post(
            "/api/subscription/activate", json={"plan_id": "platinum"}, headers=headers
        )

        assert response.status_code == 404
        assert client.get("/api/subscription", headers=headers).json()["subscription"] is None

    def test_plans_are_public(self, client):
        plans = client.get("/api/subscription/plans").json()

        assert {plan["id"] for plan in plans} == {"starter", "premium"}
