"""
File endpoints: multipart upload, metadata with bundle listing, download.
"""
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from textshare.api.deps import QuotaGuard, get_access_gate, get_content_service, get_payload_store
from textshare.api.v1.endpoints.common import access_info
from textshare.core.errors import PayloadUnavailable
from textshare.core.rate_limit import GENERAL, UPLOAD
from textshare.models import ResourceKind, SharedFile
from textshare.schemas.common import PasswordRequest
from textshare.schemas.file import (
    FileCreated,
    FileDetailResponse,
    FileMetadata,
    FileUploadOptions,
    FileUploadResponse,
    UploadedFile,
)
from textshare.services.access_gate import AccessGate, AccessResult
from textshare.services.content_service import ContentService, public_url
from textshare.storage.payloads import PayloadStore

router = APIRouter()


def upload_options(
    title: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    max_downloads: Optional[int] = Form(default=None),
    expires_in: Optional[str] = Form(default=None, description="1h, 24h, 7d, 30d ..."),
    custom_slug: Optional[str] = Form(default=None),
) -> FileUploadOptions:
    """Collect the upload form fields into a validated options object."""
    try:
        return FileUploadOptions(
            title=title,
            password=password,
            max_downloads=max_downloads,
            expires_in=expires_in,
            custom_slug=custom_slug,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())


def _file_metadata(resource: SharedFile, result: Optional[AccessResult] = None) -> dict:
    if result is not None:
        info = access_info(result)
    else:
        info = {
            "slug": resource.slug,
            "created_at": resource.created_at,
            "expires_at": resource.expires_at,
            "usage_count": resource.download_count,
            "max_uses": resource.max_downloads,
            "remaining": (
                max(0, resource.max_downloads - resource.download_count)
                if resource.max_downloads is not None else None
            ),
            "has_password": bool(resource.password_hash),
        }
    return dict(
        info,
        title=resource.title,
        original_name=resource.original_name,
        mime_type=resource.mime_type,
        size_bytes=resource.size_bytes,
        bundle_slug=resource.bundle_slug,
    )


@router.post(
    "",
    response_model=FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(QuotaGuard(GENERAL, UPLOAD))],
)
def upload_files(
    files: List[UploadFile] = File(..., description="One or more files"),
    options: FileUploadOptions = Depends(upload_options),
    service: ContentService = Depends(get_content_service),
):
    """
    Upload one or more files.

    Files uploaded together share a bundle slug. Limits: size per file,
    total size and number of files per request, and an allow-list of types.
    """
    if service.payload_store is None:
        raise PayloadUnavailable("File storage is not configured")

    uploads = [
        UploadedFile(
            filename=upload.filename or "file",
            content_type=upload.content_type or "",
            data=upload.file.read(),
        )
        for upload in files
    ]
    created = service.create_file(uploads, options)

    return FileUploadResponse(
        bundle_slug=created[0].bundle_slug,
        files=[
            FileCreated(
                slug=f.slug,
                url=public_url(ResourceKind.FILE, f.slug),
                created_at=f.created_at,
                expires_at=f.expires_at,
                filename=f.original_name,
                size_bytes=f.size_bytes,
            )
            for f in created
        ],
    )


@router.get("/{slug}", response_model=FileDetailResponse)
def get_file_metadata(slug: str, gate: AccessGate = Depends(get_access_gate)):
    """Get file metadata and the other files of its bundle, without consuming a download."""
    result = gate.inspect(ResourceKind.FILE, slug).raise_for_outcome()
    resource = result.resource

    bundle = []
    if resource.bundle_slug:
        siblings = gate.repository.find_bundle(resource.bundle_slug)
        now = gate.clock()
        bundle = [
            FileMetadata(**_file_metadata(f))
            for f in siblings
            if f.id != resource.id and not f.is_expired_at(now)
        ]

    return FileDetailResponse(**_file_metadata(resource, result), bundle=bundle)


@router.post("/{slug}/download")
def download_file(
    slug: str,
    body: Optional[PasswordRequest] = None,
    gate: AccessGate = Depends(get_access_gate),
    payload_store: Optional[PayloadStore] = Depends(get_payload_store),
):
    """
    Download a file, consuming one download.

    Wrong passwords return 401 and do not count as a download. The bytes are
    fetched before the download is counted, so a storage failure leaves the
    counter untouched.
    """
    if payload_store is None:
        raise PayloadUnavailable("File storage is not configured")

    alive = gate.inspect(ResourceKind.FILE, slug).raise_for_outcome()
    data = payload_store.get(alive.resource.filename)

    password = body.password if body else None
    result = gate.access(ResourceKind.FILE, slug, password=password).raise_for_outcome()
    resource = result.resource

    disposition = f"attachment; filename*=UTF-8''{quote(resource.original_name)}"
    return Response(
        content=data,
        media_type=resource.mime_type,
        headers={
            "Content-Disposition": disposition,
            "X-Download-Count": str(result.usage_count),
        },
    )
