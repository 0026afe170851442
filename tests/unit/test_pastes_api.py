"""
Unit tests for paste endpoints.
Tests endpoints from textshare/api/v1/endpoints/pastes.py
"""
from datetime import datetime, timedelta, timezone

import pytest

from textshare.models import Paste


@pytest.mark.unit
class TestCreatePaste:
    """Test POST /pastes endpoint."""

    def test_create_paste_success(self, client, db):
        response = client.post("/api/v1/pastes", json={"content": "print('hello')", "title": "Snippet"})

        assert response.status_code == 201
        data = response.json()
        assert len(data["slug"]) == 6
        assert data["url"] == f"https://share.test/p/{data['slug']}"
        assert data["expires_at"] is not None
        assert db.query(Paste).filter_by(slug=data["slug"]).one().title == "Snippet"

    def test_create_paste_sets_quota_headers(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x"})

        assert response.status_code == 201
        assert response.headers["X-RateLimit-Limit"] == "20"
        assert response.headers["X-RateLimit-Remaining"] == "19"

    def test_create_paste_empty_content(self, client):
        response = client.post("/api/v1/pastes", json={"content": "   "})

        assert response.status_code == 422
        assert response.json()["error"] == "Validation error"

    def test_create_paste_both_expiry_forms(self, client):
        response = client.post(
            "/api/v1/pastes",
            json={
                "content": "x",
                "expires_in": "1h",
                "expires_at": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
            },
        )
        assert response.status_code == 422

    def test_create_paste_invalid_expiry(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "expires_in": "later"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_expiry"

    def test_create_paste_custom_slug(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "custom_slug": "my-notes"})

        assert response.status_code == 201
        assert response.json()["slug"] == "my-notes"

    def test_create_paste_custom_slug_taken(self, client, make_paste):
        make_paste(slug="my-notes")

        response = client.post("/api/v1/pastes", json={"content": "x", "custom_slug": "my-notes"})

        assert response.status_code == 409
        assert response.json()["error"] == "slug_taken"

    def test_create_paste_out_of_range_expiry_is_clamped(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "expires_in": "9999999999d"})

        assert response.status_code == 201
        data = response.json()
        created_at = datetime.fromisoformat(data["created_at"].replace("Z", "+00:00"))
        expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
        assert expires_at - created_at == timedelta(days=90)

    def test_create_paste_same_custom_slug_twice(self, client):
        first = client.post("/api/v1/pastes", json={"content": "one", "custom_slug": "abc123"})
        second = client.post("/api/v1/pastes", json={"content": "two", "custom_slug": "abc123"})

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"] == "slug_taken"

    def test_create_paste_invalid_custom_slug(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "custom_slug": "../etc"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_slug"

    def test_create_paste_never_is_clamped(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "expires_in": "never"})

        assert response.status_code == 201
        expires_at = datetime.fromisoformat(response.json()["expires_at"].replace("Z", "+00:00"))
        assert expires_at <= datetime.now(timezone.utc) + timedelta(days=90)


@pytest.mark.unit
class TestReadPaste:
    """Test paste metadata, unlock and raw endpoints."""

    def test_metadata_does_not_consume(self, client, make_paste):
        make_paste(slug="meta01", max_views=1, password="pw", title="Secret")

        response = client.get("/api/v1/pastes/meta01")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Secret"
        assert data["has_password"] is True
        assert data["usage_count"] == 0
        assert data["remaining"] == 1
        assert "content" not in data
        assert client.get("/api/v1/pastes/meta01").status_code == 200

    def test_unlock(self, client, make_paste):
        make_paste(slug="open01", content="the body")

        response = client.post("/api/v1/pastes/open01/unlock")

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "the body"
        assert data["usage_count"] == 1

    def test_unlock_with_password(self, client, make_paste):
        make_paste(slug="lock01", password="pw")

        response = client.post("/api/v1/pastes/lock01/unlock", json={"password": "pw"})

        assert response.status_code == 200

    def test_wrong_password_not_counted(self, client, db, make_paste):
        make_paste(slug="lock02", password="pw", max_views=1)

        response = client.post("/api/v1/pastes/lock02/unlock", json={"password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_password"
        assert client.post("/api/v1/pastes/lock02/unlock", json={"password": "pw"}).status_code == 200

    def test_burn_after_reading(self, client, make_paste):
        make_paste(slug="burn01", max_views=1)

        assert client.post("/api/v1/pastes/burn01/unlock").status_code == 200
        response = client.post("/api/v1/pastes/burn01/unlock")

        assert response.status_code == 410
        assert response.json()["error"] == "exhausted"
        assert client.get("/api/v1/pastes/burn01").status_code == 410

    def test_expired_paste(self, client, make_paste):
        make_paste(slug="old001", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))

        response = client.get("/api/v1/pastes/old001")

        assert response.status_code == 410
        assert response.json()["error"] == "expired"

    def test_not_found(self, client):
        response = client.post("/api/v1/pastes/nothere/unlock")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_raw(self, client, make_paste):
        make_paste(slug="raw001", content="line one\nline two", password="pw")

        response = client.get("/api/v1/pastes/raw001/raw", params={"password": "pw"})

        assert response.status_code == 200
        assert response.text == "line one\nline two"
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["X-View-Count"] == "1"

    def test_raw_requires_password(self, client, make_paste):
        make_paste(slug="raw002", password="pw")

        assert client.get("/api/v1/pastes/raw002/raw").status_code == 401
