"""
Helpers shared by the resource endpoints.
"""
from typing import Any, Dict

from textshare.services.access_gate import AccessResult


def access_info(result: AccessResult) -> Dict[str, Any]:
    """Common metadata fields of an inspected or granted resource."""
    resource = result.resource
    return {
        "slug": resource.slug,
        "created_at": resource.created_at,
        "expires_at": resource.expires_at,
        "usage_count": result.usage_count,
        "max_uses": result.ceiling,
        "remaining": result.remaining,
        "has_password": result.password_required,
    }
