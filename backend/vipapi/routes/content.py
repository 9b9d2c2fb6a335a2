"""
VIP Travel API - Content Route Handlers
========================================

What:  CRUD endpoints for the image-bearing content sections.
How:   build_content_router() turns one ContentResource into a router; the
       same five handlers serve contact info, gallery, destinations,
       packages and the carousel.
Who:   Called by the admin panel (writes) and the public site (reads).

Endpoints per section (prefix e.g. /vipapi/gallery):
    GET    ""      list, newest first (contact info: latest document or {})
    GET    /{id}   one document
    POST   ""      multipart form, optional `image` file  → 201
    PUT    /{id}   multipart form, optional `image` file
    DELETE /{id}

Validation order on writes:
    required fields → single `image` part → upload intake → service. Each
    check raises ValidationError (400) before anything is stored or written.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import FormData, UploadFile

from vipapi.database import get_db_session
from vipapi.exceptions import ValidationError
from vipapi.routes.dependencies import get_asset_store
from vipapi.schemas.common import ErrorResponse
from vipapi.schemas.content import (
    CarouselSlideResponse,
    ContactInfoResponse,
    ContentCreatedResponse,
    ContentDeletedResponse,
    ContentUpdatedResponse,
    DestinationResponse,
    GalleryItemResponse,
    ImageDocumentResponse,
    PackageResponse,
)
from vipapi.services.asset_store import AssetStore
from vipapi.services.content_service import (
    CAROUSEL,
    CONTACT_INFO,
    DESTINATION,
    GALLERY,
    PACKAGE,
    ContentResource,
    ContentService,
)
from vipapi.services.upload_intake import UploadedImage, upload_intake

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"

WRITE_ERRORS = {
    400: {"description": "Missing fields or rejected image", "model": ErrorResponse},
    404: {"description": "Document not found", "model": ErrorResponse},
    409: {"description": "Concurrent modification (versioned mode)", "model": ErrorResponse},
    503: {"description": "Asset store not ready", "model": ErrorResponse},
}


def read_fields(form: FormData, resource: ContentResource) -> Dict[str, Any]:
    """
    Pull the resource's text fields out of a parsed form.

    Required fields must be present and non-blank; optional fields are only
    included when sent (blank → None).
    """
    values: Dict[str, Any] = {}
    missing: List[str] = []

    for name in resource.required:
        value = form.get(name)
        if not isinstance(value, str) or not value.strip():
            missing.append(name)
        else:
            values[name] = value.strip()

    if missing:
        raise ValidationError(
            message=f"Missing required fields: {', '.join(missing)}",
            field=missing[0],
            context={"missing": missing},
        )

    for name in resource.optional:
        value = form.get(name)
        if isinstance(value, str):
            values[name] = value.strip() or None

    return values


def read_image_part(form: FormData) -> Any:
    """The form's single `image` part, or None. Files under other names are rejected."""
    stray = sorted(
        {key for key, value in form.multi_items() if isinstance(value, UploadFile) and key != IMAGE_FIELD}
    )
    if stray:
        raise ValidationError(
            message=f"Unexpected file field: {', '.join(stray)}. Send the image as '{IMAGE_FIELD}'.",
            field=IMAGE_FIELD,
            context={"unexpected": stray},
        )

    parts = form.getlist(IMAGE_FIELD)
    if len(parts) > 1:
        raise ValidationError(
            message="Only one image can be uploaded per request.",
            field=IMAGE_FIELD,
            context={"received": len(parts)},
        )
    return parts[0] if parts else None


async def read_write_request(
    request: Request, resource: ContentResource
) -> Tuple[Dict[str, Any], Optional[UploadedImage]]:
    form = await request.form()
    try:
        values = read_fields(form, resource)
        upload = await upload_intake.accept(read_image_part(form))
    finally:
        await form.close()
    return values, upload


def build_content_router(
    resource: ContentResource,
    schema: Type[ImageDocumentResponse],
    prefix: str,
    tag: str,
) -> APIRouter:
    """Router exposing the CRUD endpoints of one content section."""
    router = APIRouter(prefix=prefix, tags=[tag])

    def get_service(store: AssetStore = Depends(get_asset_store)) -> ContentService:
        return ContentService(resource, store)

    def serialize(document: Any) -> Dict[str, Any]:
        return schema.model_validate(document).model_dump(mode="json")

    if resource.latest_only:

        @router.get("", summary=f"Get the current {resource.name}")
        async def get_latest(
            db: AsyncSession = Depends(get_db_session),
            service: ContentService = Depends(get_service),
        ) -> Dict[str, Any]:
            document = await service.latest(db)
            return serialize(document) if document is not None else {}

    else:

        @router.get("", response_model=List[schema], summary=f"List {tag.lower()}")
        async def list_documents(
            db: AsyncSession = Depends(get_db_session),
            service: ContentService = Depends(get_service),
        ) -> List[Any]:
            return await service.list(db)

    @router.get(
        "/{document_id}",
        response_model=schema,
        responses={404: {"model": ErrorResponse}},
        summary=f"Get one {resource.name}",
    )
    async def get_document(
        document_id: UUID,
        db: AsyncSession = Depends(get_db_session),
        service: ContentService = Depends(get_service),
    ) -> Any:
        return await service.get(db, document_id)

    @router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=ContentCreatedResponse,
        responses=WRITE_ERRORS,
        summary=f"Create a {resource.name}",
    )
    async def create_document(
        request: Request,
        db: AsyncSession = Depends(get_db_session),
        service: ContentService = Depends(get_service),
    ) -> ContentCreatedResponse:
        values, upload = await read_write_request(request, resource)
        document = await service.create(db, values, upload)
        return ContentCreatedResponse(
            message=f"{resource.label} created successfully",
            id=document.id,
            data=serialize(document),
        )

    @router.put(
        "/{document_id}",
        response_model=ContentUpdatedResponse,
        responses=WRITE_ERRORS,
        summary=f"Update a {resource.name}",
    )
    async def update_document(
        document_id: UUID,
        request: Request,
        db: AsyncSession = Depends(get_db_session),
        service: ContentService = Depends(get_service),
    ) -> ContentUpdatedResponse:
        values, upload = await read_write_request(request, resource)
        document, cleanup = await service.update(db, document_id, values, upload)
        return ContentUpdatedResponse(
            message=f"{resource.label} updated successfully",
            data=serialize(document),
            cleanup=cleanup.as_dict(),
        )

    @router.delete(
        "/{document_id}",
        response_model=ContentDeletedResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        summary=f"Delete a {resource.name}",
    )
    async def delete_document(
        document_id: UUID,
        db: AsyncSession = Depends(get_db_session),
        service: ContentService = Depends(get_service),
    ) -> ContentDeletedResponse:
        cleanup = await service.delete(db, document_id)
        return ContentDeletedResponse(
            message=f"{resource.label} deleted successfully",
            cleanup=cleanup.as_dict(),
        )

    return router


contact_info_router = build_content_router(
    CONTACT_INFO, ContactInfoResponse, "/vipapi/contact-info", "Contact Info"
)
gallery_router = build_content_router(GALLERY, GalleryItemResponse, "/vipapi/gallery", "Gallery")
destination_router = build_content_router(
    DESTINATION, DestinationResponse, "/vipapi/destination", "Destinations"
)
package_router = build_content_router(PACKAGE, PackageResponse, "/vipapi/packages", "Packages")
carousel_router = build_content_router(
    CAROUSEL, CarouselSlideResponse, "/vipapi/carousel", "Carousel"
)

routers = [
    contact_info_router,
    gallery_router,
    destination_router,
    package_router,
    carousel_router,
]
