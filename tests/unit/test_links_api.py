"""
Unit tests for short URL, QR code and link page endpoints.
Tests endpoints from textshare/api/v1/endpoints/urls.py, qr.py and link_pages.py
"""
from datetime import datetime, timedelta, timezone

import pytest


@pytest.mark.unit
class TestShortUrls:

    def test_create(self, client):
        response = client.post("/api/v1/urls", json={"original_url": "https://example.com/a/long/path"})

        assert response.status_code == 201
        data = response.json()
        assert data["url"] == f"https://share.test/u/{data['slug']}"
        assert data["original_url"] == "https://example.com/a/long/path"

    def test_create_never_expires(self, client):
        response = client.post(
            "/api/v1/urls",
            json={"original_url": "https://example.com", "expires_in": "never"},
        )

        assert response.status_code == 201
        assert response.json()["expires_at"] is None

    @pytest.mark.parametrize("url", ["ftp://example.com", "javascript:alert(1)", "example.com", ""])
    def test_create_rejects_non_http(self, client, url):
        response = client.post("/api/v1/urls", json={"original_url": url})
        assert response.status_code == 422

    def test_metadata_hides_target(self, client, make_short_url):
        make_short_url(slug="hide01", title="Docs")

        response = client.get("/api/v1/urls/hide01")

        assert response.status_code == 200
        assert "original_url" not in response.json()
        assert response.json()["title"] == "Docs"

    def test_visit_counts_click(self, client, make_short_url):
        make_short_url(slug="visit1", max_clicks=2)

        first = client.post("/api/v1/urls/visit1/visit")
        second = client.post("/api/v1/urls/visit1/visit")
        third = client.post("/api/v1/urls/visit1/visit")

        assert first.json()["original_url"] == "https://example.com/page"
        assert first.json()["usage_count"] == 1
        assert second.json()["remaining"] == 0
        assert third.status_code == 410

    def test_visit_password(self, client, make_short_url):
        make_short_url(slug="visit2", password="pw")

        assert client.post("/api/v1/urls/visit2/visit").status_code == 401
        assert client.post("/api/v1/urls/visit2/visit", json={"password": "pw"}).status_code == 200

    def test_visit_expired(self, client, make_short_url):
        make_short_url(slug="visit3", expires_at=datetime.now(timezone.utc) - timedelta(seconds=5))

        assert client.post("/api/v1/urls/visit3/visit").status_code == 410


@pytest.mark.unit
class TestQRCodes:

    def test_create_and_scan(self, client):
        response = client.post(
            "/api/v1/qr",
            json={"url": "https://example.com", "qr_style": "dots", "qr_color": "#112233"},
        )

        assert response.status_code == 201
        slug = response.json()["slug"]
        assert len(slug) == 8
        assert response.json()["url"] == f"https://share.test/qr/{slug}"

        scanned = client.get(f"/api/v1/qr/{slug}")
        assert scanned.status_code == 200
        assert scanned.json()["qr_style"] == "dots"
        assert scanned.json()["scans"] == 1

    def test_invalid_color(self, client):
        response = client.post("/api/v1/qr", json={"url": "https://example.com", "qr_color": "purple"})
        assert response.status_code == 422

    def test_scan_not_found(self, client):
        assert client.get("/api/v1/qr/missing1").status_code == 404


@pytest.mark.unit
class TestLinkPages:

    def test_create_and_view(self, client):
        response = client.post(
            "/api/v1/link-pages",
            json={
                "username": "ada",
                "bio": "Engines and notes",
                "links": [
                    {"title": "Blog", "url": "https://example.com/blog"},
                    {"title": "Code", "url": "https://example.com/code"},
                ],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["expires_at"] is None
        assert data["url"] == f"https://share.test/l/{data['slug']}"

        page = client.get(f"/api/v1/link-pages/{data['slug']}")
        assert page.status_code == 200
        assert page.json()["username"] == "ada"
        assert len(page.json()["links"]) == 2
        assert page.json()["views"] == 1

    def test_custom_slug(self, client, make_link_page):
        make_link_page(slug="ada-links")

        response = client.post(
            "/api/v1/link-pages",
            json={"username": "ada", "links": [{"title": "x", "url": "https://x.io"}], "custom_slug": "ada-links"},
        )

        assert response.status_code == 409

    def test_requires_links(self, client):
        response = client.post("/api/v1/link-pages", json={"username": "ada", "links": []})
        assert response.status_code == 422

    def test_too_many_links(self, client):
        links = [{"title": f"l{i}", "url": f"https://example.com/{i}"} for i in range(11)]
        response = client.post("/api/v1/link-pages", json={"username": "ada", "links": links})
        assert response.status_code == 422

    def test_views_unlimited(self, client, make_link_page):
        make_link_page(slug="popular1")

        for _ in range(5):
            response = client.get("/api/v1/link-pages/popular1")

        assert response.json()["views"] == 5
