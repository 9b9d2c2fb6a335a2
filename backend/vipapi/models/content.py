"""
VIP Travel API - Image-Bearing Content Models
==============================================

What:  ORM models for every content section that carries an image.
How:   ImageDocumentMixin supplies the columns the reconciliation protocol
       relies on (id, image, version, timestamps); each model adds its own
       content fields.
Who:   Used by ContentService for CRUD and by Alembic for schema management.

The `image` column holds a reference into the asset bucket, not the bytes.
A document may point at no image (NULL), never at a blob that is gone.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vipapi.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageDocumentMixin:
    """Columns shared by every document that references an image blob."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    image: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Reference (filename) of the current image blob",
    )

    # Bumped on every update; compared-and-swapped in "versioned" strictness
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class ContactInfo(ImageDocumentMixin, Base):
    """Site contact block. The newest row is the one the site shows."""

    __tablename__ = "contact_info"

    mobile: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    whatsapp: Mapped[str] = mapped_column(String(32), nullable=False)


class GalleryItem(ImageDocumentMixin, Base):
    __tablename__ = "gallery_items"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Destination(ImageDocumentMixin, Base):
    __tablename__ = "destinations"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class TravelPackage(ImageDocumentMixin, Base):
    """Bookable package. Price and duration are display strings ("7 nights")."""

    __tablename__ = "packages"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[str] = mapped_column(String(50), nullable=False)
    duration: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class CarouselSlide(ImageDocumentMixin, Base):
    __tablename__ = "carousel_slides"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(300), nullable=True)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
