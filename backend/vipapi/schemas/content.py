"""
VIP Travel API - Content Response Schemas
==========================================

What:  Pydantic models for the image-bearing content sections.
How:   Built from ORM rows (from_attributes). `image` is the raw blob
       reference; `image_url` is where the site fetches it.
Who:   Returned by the routers in routes/content.py.

Requests are multipart forms, parsed in the route, so only responses live here.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, computed_field

IMAGE_URL_PREFIX = "/vipapi/images"


def image_url_for(reference: Optional[str]) -> Optional[str]:
    return f"{IMAGE_URL_PREFIX}/{reference}" if reference else None


# ══════════════════════════════════════════════════════════════════════════
# Document Models
# ══════════════════════════════════════════════════════════════════════════


class ImageDocumentResponse(BaseModel):
    """Fields every image-bearing document exposes."""

    id: uuid.UUID = Field(description="Document identifier (UUID)")
    image: Optional[str] = Field(default=None, description="Blob reference, null when no image")
    version: int = Field(description="Incremented on every update")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def image_url(self) -> Optional[str]:
        return image_url_for(self.image)


class ContactInfoResponse(ImageDocumentResponse):
    mobile: str
    email: str
    whatsapp: str


class GalleryItemResponse(ImageDocumentResponse):
    title: str
    category: Optional[str] = None
    description: Optional[str] = None


class DestinationResponse(ImageDocumentResponse):
    name: str
    country: Optional[str] = None
    description: Optional[str] = None


class PackageResponse(ImageDocumentResponse):
    title: str
    price: str
    duration: Optional[str] = None
    description: Optional[str] = None


class CarouselSlideResponse(ImageDocumentResponse):
    title: str
    subtitle: Optional[str] = None
    link: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Mutation Envelopes
# ══════════════════════════════════════════════════════════════════════════


class CleanupReport(BaseModel):
    """
    What happened to the superseded image after the document was committed.

    status:
        not_needed    no previous image, or no new image uploaded
        removed       previous image deleted
        already_gone  previous image was not in the store any more
        orphaned      previous image could not be deleted; it stays unreferenced
    """

    status: str
    reference: Optional[str] = None
    error: Optional[str] = None


class ContentCreatedResponse(BaseModel):
    message: str
    id: uuid.UUID
    data: Dict[str, Any]


class ContentUpdatedResponse(BaseModel):
    message: str
    data: Dict[str, Any]
    cleanup: CleanupReport


class ContentDeletedResponse(BaseModel):
    message: str
    cleanup: CleanupReport
