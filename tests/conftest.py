"""
Pytest configuration and shared fixtures for TextShare tests.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator
from unittest.mock import MagicMock

# Settings are read at import time, so the test environment goes first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["SWEEP_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PUBLIC_BASE_URL"] = "https://share.test"

import pytest
from fastapi.testclient import TestClient
from minio.error import S3Error
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from textshare.core.config import settings
from textshare.core.rate_limit import QuotaLedger, QuotaRule
from textshare.core.security import hash_password
from textshare.db.session import build_engine, get_db
from textshare.main import app
from textshare.models import Base, LinkPage, Paste, QRCode, SharedFile, ShortUrl
from textshare.storage.payloads import PayloadStore


# Test Database Configuration
engine = build_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def make_s3_error(code: str) -> S3Error:
    """Build an S3Error the way the MinIO client raises it."""
    return S3Error(
        code=code,
        message=f"{code} (test)",
        resource="/textshare-files/object",
        request_id="test-request",
        host_id="test-host",
        response=MagicMock(status=404 if code == "NoSuchKey" else 500),
    )


class InMemoryObjects:
    """Dict-backed side effects for a mocked MinIO client."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def put_object(self, bucket_name, object_name, data, length, content_type=None):
        self.objects[object_name] = data.read(length)

    def get_object(self, bucket_name, object_name):
        if object_name not in self.objects:
            raise make_s3_error("NoSuchKey")
        response = MagicMock()
        response.read.return_value = self.objects[object_name]
        return response

    def remove_object(self, bucket_name, object_name):
        # MinIO does not complain about deleting a missing object
        self.objects.pop(object_name, None)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db_session = TestingSessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session):
    """Session factory bound to the test database, for code that opens its own sessions."""
    return TestingSessionLocal


@pytest.fixture
def s3_error():
    """Factory for MinIO errors with a given S3 error code."""
    return make_s3_error


@pytest.fixture
def minio_objects() -> InMemoryObjects:
    return InMemoryObjects()


@pytest.fixture
def mock_minio(minio_objects: InMemoryObjects) -> MagicMock:
    """Mock MinIO client storing objects in memory."""
    client = MagicMock()
    client.bucket_exists.return_value = True
    client.put_object.side_effect = minio_objects.put_object
    client.get_object.side_effect = minio_objects.get_object
    client.remove_object.side_effect = minio_objects.remove_object
    return client


@pytest.fixture
def payload_store(mock_minio: MagicMock) -> PayloadStore:
    return PayloadStore(mock_minio, settings.MINIO_BUCKET)


@pytest.fixture
def quota_ledger() -> QuotaLedger:
    """A fresh ledger per test, using the configured limits."""
    return QuotaLedger.from_settings()


@pytest.fixture(scope="function")
def client(db: Session, quota_ledger: QuotaLedger, payload_store: PayloadStore) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.quota_ledger = quota_ledger
    app.state.payload_store = payload_store
    app.state.session_factory = TestingSessionLocal

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def tight_ledger() -> QuotaLedger:
    """Ledger with small limits and a controllable clock."""
    clock = MagicMock(return_value=1_000_000.0)
    ledger = QuotaLedger(
        [
            QuotaRule("general", limit=3, window_seconds=60),
            QuotaRule("paste", limit=2, window_seconds=3600),
            QuotaRule("upload", limit=2, window_seconds=3600),
            QuotaRule("url", limit=2, window_seconds=3600),
            QuotaRule("contact", limit=2, window_seconds=900),
        ],
        shards=4,
        clock=clock,
    )
    ledger.test_clock = clock
    return ledger


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


def _make(db: Session, model, **fields):
    fields.setdefault("created_at", datetime.now(timezone.utc))
    resource = model(**fields)
    db.add(resource)
    db.commit()
    db.refresh(resource)
    return resource


@pytest.fixture
def make_paste(db: Session):
    """Factory inserting pastes directly, bypassing the write path."""
    def factory(slug="paste1", content="hello world", password=None, **fields):
        fields.setdefault("expires_at", datetime.now(timezone.utc) + timedelta(days=7))
        return _make(
            db,
            Paste,
            slug=slug,
            content=content,
            content_type=fields.pop("content_type", "text"),
            password_hash=hash_password(password) if password else None,
            **fields,
        )
    return factory


@pytest.fixture
def make_file(db: Session, minio_objects: InMemoryObjects):
    def factory(slug="file01", data=b"file-bytes", password=None, store=True, **fields):
        key = fields.pop("filename", f"files/{slug}_1700000000000.txt")
        if store:
            minio_objects.objects[key] = data
        fields.setdefault("expires_at", datetime.now(timezone.utc) + timedelta(days=7))
        return _make(
            db,
            SharedFile,
            slug=slug,
            filename=key,
            original_name=fields.pop("original_name", "notes.txt"),
            mime_type=fields.pop("mime_type", "text/plain"),
            size_bytes=len(data),
            password_hash=hash_password(password) if password else None,
            **fields,
        )
    return factory


@pytest.fixture
def make_short_url(db: Session):
    def factory(slug="short1", original_url="https://example.com/page", password=None, **fields):
        return _make(
            db,
            ShortUrl,
            slug=slug,
            original_url=original_url,
            password_hash=hash_password(password) if password else None,
            **fields,
        )
    return factory


@pytest.fixture
def make_qr_code(db: Session):
    def factory(slug="qrcode01", url="https://example.com", **fields):
        fields.setdefault("expires_at", datetime.now(timezone.utc) + timedelta(days=90))
        return _make(db, QRCode, slug=slug, url=url, **fields)
    return factory


@pytest.fixture
def make_link_page(db: Session):
    def factory(slug="mylinks1", username="ada", **fields):
        fields.setdefault("links", [{"title": "Blog", "url": "https://example.com/blog"}])
        return _make(db, LinkPage, slug=slug, username=username, **fields)
    return factory
