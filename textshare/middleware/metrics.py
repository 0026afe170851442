"""
FastAPI middleware for automatic Prometheus metrics collection.

This middleware tracks:
- Total API requests with method, endpoint, and status labels
- Request duration histograms
- In-progress request gauges
"""
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from textshare.metrics import (
    api_requests_in_progress,
    record_api_request,
)

# Path segments followed by a resource slug
SLUG_PARENTS = ("pastes", "files", "urls", "qr", "link-pages")


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to automatically track API request metrics.

    Slugs are collapsed into a placeholder so each route yields one series,
    and the /metrics endpoint itself is not tracked.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = request.url.path

        if path == "/metrics":
            return await call_next(request)

        # e.g., /api/v1/pastes/abc123/raw -> /api/v1/pastes/{slug}/raw
        normalized_path = self._normalize_path(path)

        api_requests_in_progress.labels(method=method, endpoint=normalized_path).inc()
        start_time = time.time()

        try:
            response = await call_next(request)
            record_api_request(method, normalized_path, response.status_code, time.time() - start_time)
            return response

        except Exception:
            record_api_request(method, normalized_path, 500, time.time() - start_time)
            raise

        finally:
            api_requests_in_progress.labels(method=method, endpoint=normalized_path).dec()

    def _normalize_path(self, path: str) -> str:
        """
        Replace slug segments with a placeholder.

        Examples:
            /api/v1/pastes/abc123 -> /api/v1/pastes/{slug}
            /api/v1/files/abc123/download -> /api/v1/files/{slug}/download
            /api/v1/link-pages/my-page -> /api/v1/link-pages/{slug}
        """
        parts = path.split("/")
        normalized_parts = []

        for i, part in enumerate(parts):
            if part and i > 0 and parts[i - 1] in SLUG_PARENTS and self._is_slug(part):
                normalized_parts.append("{slug}")
            else:
                normalized_parts.append(part)

        return "/".join(normalized_parts)

    def _is_slug(self, value: str) -> bool:
        if len(value) > 64:
            return False
        return value.replace("-", "").replace("_", "").isalnum()
