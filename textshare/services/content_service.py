"""
Content Service

Write path for every resource kind: takes an already-validated command,
resolves its expiry, allocates a slug, hashes the password and persists the
row (and, for files, the payload).

Slug uniqueness is settled by the database. ``SlugAllocator`` pre-checks a
candidate; if the insert still hits the unique constraint, a custom slug
fails with SlugTaken and a random slug is re-allocated a bounded number of
times before AllocationExhausted.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from textshare.core.config import settings
from textshare.core.errors import AllocationExhausted, InvalidUpload, SlugCollision, SlugTaken
from textshare.core.security import hash_password
from textshare.db.repository import ResourceRepository
from textshare.metrics import record_resource_created, record_slug_failure
from textshare.models import LinkPage, Paste, QRCode, ResourceKind, SharedFile, ShortUrl
from textshare.models.base import utcnow
from textshare.schemas.file import FileUploadOptions, UploadedFile
from textshare.schemas.link_page import LinkPageCreate
from textshare.schemas.paste import PasteCreate
from textshare.schemas.qr import QRCodeCreate
from textshare.schemas.url import ShortUrlCreate
from textshare.services.slug_allocator import SlugAllocator
from textshare.storage.lifecycle import ExpiryPolicy
from textshare.storage.payloads import PayloadStore, object_key

logger = logging.getLogger(__name__)

# Public path prefix per kind, appended to PUBLIC_BASE_URL
PUBLIC_PATHS = {
    ResourceKind.PASTE: "p",
    ResourceKind.FILE: "f",
    ResourceKind.URL: "u",
    ResourceKind.QR: "qr",
    ResourceKind.LINK_PAGE: "l",
}


def public_url(kind, slug: str, base_url: str = settings.PUBLIC_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{PUBLIC_PATHS[ResourceKind(kind)]}/{slug}"


class ContentService:
    """
    Create resources of every kind.

    One instance per request; it shares the request's session.
    """

    def __init__(
        self,
        db: Session,
        payload_store: Optional[PayloadStore] = None,
        expiry_policy: Optional[ExpiryPolicy] = None,
        allocator: Optional[SlugAllocator] = None,
        clock: Callable[[], datetime] = utcnow,
        config=settings,
    ):
        self.repository = ResourceRepository(db)
        self.payload_store = payload_store
        self.expiry_policy = expiry_policy or ExpiryPolicy.from_settings(config)
        self.allocator = allocator or SlugAllocator(self.repository)
        self.clock = clock
        self.config = config

    # ------------------------------------------------------------------
    # Pastes, URLs, QR codes, link pages
    # ------------------------------------------------------------------

    def create_paste(self, command: PasteCreate) -> Paste:
        now = self.clock()
        fields = {
            "title": command.title,
            "content": command.content,
            "content_type": command.content_type.value,
            "password_hash": hash_password(command.password) if command.password else None,
            "max_views": command.max_views,
            "created_at": now,
            "expires_at": self.expiry_policy.resolve(
                ResourceKind.PASTE, command.expires_at or command.expires_in, now
            ),
        }
        return self._persist(ResourceKind.PASTE, fields, command.custom_slug)

    def create_short_url(self, command: ShortUrlCreate) -> ShortUrl:
        now = self.clock()
        fields = {
            "original_url": command.original_url,
            "title": command.title,
            "password_hash": hash_password(command.password) if command.password else None,
            "max_clicks": command.max_clicks,
            "created_at": now,
            "expires_at": self.expiry_policy.resolve(ResourceKind.URL, command.expires_in, now),
        }
        return self._persist(ResourceKind.URL, fields, command.custom_slug)

    def create_qr_code(self, command: QRCodeCreate) -> QRCode:
        now = self.clock()
        fields = {
            "url": command.url,
            "title": command.title,
            "qr_style": command.qr_style.value,
            "qr_color": command.qr_color,
            "bg_color": command.bg_color,
            "created_at": now,
            "expires_at": self.expiry_policy.resolve(ResourceKind.QR, None, now),
        }
        return self._persist(ResourceKind.QR, fields)

    def create_link_page(self, command: LinkPageCreate) -> LinkPage:
        now = self.clock()
        fields = {
            "username": command.username,
            "bio": command.bio,
            "links": [link.model_dump() for link in command.links],
            "created_at": now,
            "expires_at": self.expiry_policy.resolve(ResourceKind.LINK_PAGE, None, now),
        }
        return self._persist(ResourceKind.LINK_PAGE, fields, command.custom_slug)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def validate_uploads(self, uploads: List[UploadedFile], options: FileUploadOptions) -> None:
        """
        Enforce upload limits before anything is written.

        Raises:
            InvalidUpload: Too many files, a file too large, or a disallowed type
        """
        if not uploads:
            raise InvalidUpload("No file provided")
        if len(uploads) > self.config.MAX_FILES_PER_UPLOAD:
            raise InvalidUpload(f"At most {self.config.MAX_FILES_PER_UPLOAD} files per upload")
        if options.custom_slug and len(uploads) > 1:
            raise InvalidUpload("A custom slug can only be used for a single file")

        total = 0
        for upload in uploads:
            if upload.size == 0:
                raise InvalidUpload(f"File '{upload.filename}' is empty")
            if upload.size > self.config.MAX_UPLOAD_SIZE:
                raise InvalidUpload(
                    f"File '{upload.filename}' exceeds the "
                    f"{self.config.MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit"
                )
            if upload.content_type and upload.content_type not in self.config.ALLOWED_FILE_TYPES:
                raise InvalidUpload(f"File type '{upload.content_type}' is not allowed")
            total += upload.size
        if total > self.config.MAX_TOTAL_UPLOAD_SIZE:
            raise InvalidUpload(
                f"Upload exceeds the {self.config.MAX_TOTAL_UPLOAD_SIZE // (1024 * 1024)}MB total limit"
            )

    def create_file(self, uploads: List[UploadedFile], options: FileUploadOptions) -> List[SharedFile]:
        """
        Store one or more uploaded files.

        Each payload is written before its row. Files uploaded together share
        a bundle slug (the first file's slug). If any file fails, the files
        already stored for this request are removed again.
        """
        if self.payload_store is None:
            raise RuntimeError("ContentService needs a payload store to create files")
        self.validate_uploads(uploads, options)

        now = self.clock()
        expires_at = self.expiry_policy.resolve(ResourceKind.FILE, options.expires_in, now)
        password_hash = hash_password(options.password) if options.password else None

        created: List[SharedFile] = []
        bundle_slug = None
        try:
            for upload in uploads:
                fields = {
                    "original_name": upload.filename,
                    "mime_type": upload.content_type or "application/octet-stream",
                    "size_bytes": upload.size,
                    "title": options.title,
                    "password_hash": password_hash,
                    "max_downloads": options.max_downloads,
                    "created_at": now,
                    "expires_at": expires_at,
                }
                if len(uploads) > 1:
                    fields["bundle_slug"] = bundle_slug
                resource = self._persist(
                    ResourceKind.FILE,
                    fields,
                    options.custom_slug,
                    before_insert=lambda slug, f, u=upload: self._store_payload(slug, f, u, now),
                    on_insert_failure=self._discard_payload,
                )
                created.append(resource)
                if bundle_slug is None and len(uploads) > 1:
                    bundle_slug = resource.slug
                    self._set_bundle(resource, bundle_slug)
        except Exception:
            self._rollback_files(created)
            raise

        return created

    def _store_payload(self, slug: str, fields: Dict[str, Any], upload: UploadedFile, now: datetime) -> None:
        key = object_key(slug, upload.filename, now)
        self.payload_store.put(key, upload.data, fields["mime_type"])
        fields["filename"] = key

    def _discard_payload(self, fields: Dict[str, Any]) -> None:
        if fields.get("filename"):
            self.payload_store.delete(fields.pop("filename"))

    def _set_bundle(self, resource: SharedFile, bundle_slug: str) -> None:
        resource.bundle_slug = bundle_slug
        self.repository.db.commit()

    def _rollback_files(self, created: List[SharedFile]) -> None:
        if not created:
            return
        logger.warning(f"Upload failed, removing {len(created)} file(s) already stored")
        for resource in created:
            self.payload_store.delete(resource.filename)
        self.repository.delete_by_ids(ResourceKind.FILE, [r.id for r in created])

    # ------------------------------------------------------------------
    # Persistence with slug allocation
    # ------------------------------------------------------------------

    def _persist(
        self,
        kind: ResourceKind,
        fields: Dict[str, Any],
        custom_slug: Optional[str] = None,
        before_insert: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        on_insert_failure: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        attempts = self.config.SLUG_PERSIST_ATTEMPTS
        for attempt in range(1, attempts + 1):
            slug = self.allocator.allocate(kind, custom_candidate=custom_slug)
            row = dict(fields, slug=slug)
            if before_insert:
                before_insert(slug, row)
            try:
                resource = self.repository.create_resource(kind, row)
            except SlugCollision:
                if on_insert_failure:
                    on_insert_failure(row)
                if custom_slug is not None:
                    record_slug_failure(kind.value, "taken")
                    raise SlugTaken(f"Slug '{custom_slug}' is already taken")
                record_slug_failure(kind.value, "collision")
                logger.warning(f"Slug '{slug}' for {kind.value} was taken at insert (attempt {attempt})")
                continue
            except Exception:
                if on_insert_failure:
                    on_insert_failure(row)
                raise

            record_resource_created(kind.value)
            logger.info(
                "Resource created",
                extra={"kind": kind.value, "slug": slug, "expires_at": resource.expires_at},
            )
            return resource

        raise AllocationExhausted("Could not allocate a unique slug, please retry")
