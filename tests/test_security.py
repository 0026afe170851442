"""
Security tests for TextShare.
Tests for common vulnerabilities: SQL injection, XSS, password bypass, data exposure.
"""
import pytest

from textshare.models import Paste


@pytest.mark.security
class TestSQLInjection:
    """Test SQL injection vulnerabilities."""

    MALICIOUS_SLUGS = [
        "1' OR '1'='1",
        "1; DROP TABLE pastes--",
        "1 UNION SELECT * FROM shared_files--",
        "'; DELETE FROM pastes WHERE '1'='1",
    ]

    @pytest.mark.parametrize("slug", MALICIOUS_SLUGS)
    def test_sql_injection_in_slug(self, client, make_paste, db, slug):
        """Injection attempts in the slug are treated as unknown slugs."""
        make_paste(slug="victim")

        response = client.get(f"/api/v1/pastes/{slug}")

        assert response.status_code in [404, 422]
        assert db.query(Paste).filter_by(slug="victim").count() == 1

    @pytest.mark.parametrize("slug", MALICIOUS_SLUGS)
    def test_sql_injection_in_custom_slug(self, client, db, slug):
        response = client.post("/api/v1/pastes", json={"content": "x", "custom_slug": slug})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_slug"
        assert db.query(Paste).count() == 0

    def test_sql_injection_in_password(self, client, make_paste):
        make_paste(slug="locked", password="secret")

        response = client.post("/api/v1/pastes/locked/unlock", json={"password": "' OR '1'='1"})

        assert response.status_code == 401


@pytest.mark.security
class TestXSSVulnerabilities:
    """Test Cross-Site Scripting (XSS) vulnerabilities."""

    XSS_PAYLOAD = "<script>alert('XSS')</script>"

    def test_xss_in_paste_is_returned_as_data(self, client):
        """Paste content is stored verbatim and served as JSON, never as HTML."""
        created = client.post("/api/v1/pastes", json={"content": self.XSS_PAYLOAD, "title": self.XSS_PAYLOAD})
        slug = created.json()["slug"]

        response = client.post(f"/api/v1/pastes/{slug}/unlock")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json()["content"] == self.XSS_PAYLOAD

    def test_raw_paste_is_plain_text(self, client):
        slug = client.post("/api/v1/pastes", json={"content": self.XSS_PAYLOAD}).json()["slug"]

        response = client.get(f"/api/v1/pastes/{slug}/raw")

        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == self.XSS_PAYLOAD

    def test_javascript_short_url_rejected(self, client):
        response = client.post("/api/v1/urls", json={"original_url": "javascript:alert(document.cookie)"})
        assert response.status_code == 422

    def test_javascript_link_rejected(self, client):
        response = client.post(
            "/api/v1/link-pages",
            json={"username": "eve", "links": [{"title": "x", "url": "javascript:alert(1)"}]},
        )
        assert response.status_code == 422


@pytest.mark.security
class TestPathTraversal:
    """Test path traversal through slugs and upload names."""

    @pytest.mark.parametrize("slug", ["../etc", "..%2Fpasswd", "a/b/c", "..\\windows"])
    def test_custom_slug_traversal(self, client, slug):
        response = client.post("/api/v1/pastes", json={"content": "x", "custom_slug": slug})
        assert response.status_code == 400

    def test_upload_filename_traversal(self, client, minio_objects):
        response = client.post(
            "/api/v1/files",
            files=[("files", ("../../etc/passwd.txt", b"root:x:0:0", "text/plain"))],
        )

        assert response.status_code == 201
        assert all(".." not in key for key in minio_objects.objects)


@pytest.mark.security
class TestPasswordProtection:
    """Test that protected content never leaks without its password."""

    def test_metadata_does_not_reveal_content(self, client, make_paste):
        make_paste(slug="guard1", content="the secret body", password="pw")

        response = client.get("/api/v1/pastes/guard1")

        assert response.status_code == 200
        assert response.json()["has_password"] is True
        assert "the secret body" not in response.text

    def test_raw_requires_password(self, client, make_paste):
        make_paste(slug="guard2", content="the secret body", password="pw")

        response = client.get("/api/v1/pastes/guard2/raw")

        assert response.status_code == 401
        assert "the secret body" not in response.text

    def test_repeated_wrong_passwords_do_not_burn_views(self, client, make_paste):
        make_paste(slug="guard3", password="pw", max_views=1)

        for _ in range(5):
            assert client.post("/api/v1/pastes/guard3/unlock", json={"password": "nope"}).status_code == 401

        assert client.post("/api/v1/pastes/guard3/unlock", json={"password": "pw"}).status_code == 200


@pytest.mark.security
class TestDataExposure:
    """Test for sensitive data exposure."""

    def test_no_password_hash_in_responses(self, client, make_paste, db):
        make_paste(slug="hash01", password="pw")
        stored_hash = db.query(Paste).filter_by(slug="hash01").one().password_hash

        metadata = client.get("/api/v1/pastes/hash01")
        unlocked = client.post("/api/v1/pastes/hash01/unlock", json={"password": "pw"})

        for response in (metadata, unlocked):
            assert "password_hash" not in response.json()
            assert stored_hash not in response.text

    def test_password_not_echoed_on_create(self, client):
        response = client.post("/api/v1/pastes", json={"content": "x", "password": "hunter22"})

        assert response.status_code == 201
        assert "hunter22" not in response.text

    def test_error_messages_dont_expose_internals(self, client):
        """Error messages do not expose the database structure."""
        response = client.get("/api/v1/pastes/missing")

        assert response.status_code == 404
        message = response.json()["message"].upper()
        assert "SELECT" not in message
        assert "TABLE" not in message
