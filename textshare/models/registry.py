"""
Resource kinds and the per-kind column mapping the engine works through.
"""
import enum
from dataclasses import dataclass
from typing import Dict, Optional, Type

from textshare.models.base import Base
from textshare.models.file import SharedFile
from textshare.models.link_page import LinkPage
from textshare.models.paste import Paste
from textshare.models.qr_code import QRCode
from textshare.models.short_url import ShortUrl


class ResourceKind(str, enum.Enum):
    """Resource kind enumeration."""
    PASTE = "paste"
    FILE = "file"
    URL = "url"
    QR = "qr"
    LINK_PAGE = "link_page"


@dataclass(frozen=True)
class KindSpec:
    """
    How one resource kind maps onto its table.

    ``counter`` and ``ceiling`` name the usage columns; ``payload_attr`` names
    the column holding an out-of-band payload reference, if the kind has one.
    """
    kind: ResourceKind
    model: Type[Base]
    counter: str
    ceiling: Optional[str] = None
    slug_length: int = 6
    allows_never: bool = False
    gated: bool = False
    payload_attr: Optional[str] = None

    @property
    def counter_column(self):
        return getattr(self.model, self.counter)

    @property
    def ceiling_column(self):
        return getattr(self.model, self.ceiling) if self.ceiling else None

    def usage(self, resource) -> int:
        return getattr(resource, self.counter) or 0

    def ceiling_of(self, resource) -> Optional[int]:
        return getattr(resource, self.ceiling) if self.ceiling else None

    def password_hash_of(self, resource) -> Optional[str]:
        return getattr(resource, "password_hash", None) if self.gated else None

    def payload_ref_of(self, resource) -> Optional[str]:
        return getattr(resource, self.payload_attr) if self.payload_attr else None


KINDS: Dict[ResourceKind, KindSpec] = {
    ResourceKind.PASTE: KindSpec(
        kind=ResourceKind.PASTE,
        model=Paste,
        counter="view_count",
        ceiling="max_views",
        gated=True,
    ),
    ResourceKind.FILE: KindSpec(
        kind=ResourceKind.FILE,
        model=SharedFile,
        counter="download_count",
        ceiling="max_downloads",
        gated=True,
        payload_attr="filename",
    ),
    ResourceKind.URL: KindSpec(
        kind=ResourceKind.URL,
        model=ShortUrl,
        counter="clicks",
        ceiling="max_clicks",
        allows_never=True,
        gated=True,
    ),
    ResourceKind.QR: KindSpec(
        kind=ResourceKind.QR,
        model=QRCode,
        counter="scans",
        slug_length=8,
    ),
    ResourceKind.LINK_PAGE: KindSpec(
        kind=ResourceKind.LINK_PAGE,
        model=LinkPage,
        counter="views",
        slug_length=8,
        allows_never=True,
    ),
}


def spec_for(kind) -> KindSpec:
    """Look up the mapping for a kind (enum member or its string value)."""
    return KINDS[ResourceKind(kind)]
