"""
SQLAlchemy model for QR code records.
Only the encoded target and styling are stored; images are rendered client-side.
"""
from sqlalchemy import Column, Integer, String

from textshare.models.base import Base, ResourceMixin


class QRCode(ResourceMixin, Base):
    __tablename__ = "qr_codes"

    url = Column(String(2048), nullable=False)
    title = Column(String(200), nullable=True)
    qr_style = Column(String(20), nullable=False, default="squares")
    qr_color = Column(String(7), nullable=False, default="#7c3aed")
    bg_color = Column(String(7), nullable=False, default="#ffffff")

    scans = Column(Integer, nullable=False, default=0)
