"""
VIP Travel API - Image Route
=============================

What:  GET /vipapi/images/{reference} streams a stored blob.
How:   Metadata is looked up first (so a missing image is a clean 404), then
       the chunks are streamed one query at a time.
Who:   <img src> tags on the public site, via each document's `image_url`.

Caching:
    References are never reused (every store generates a new one), so the
    bytes behind a URL never change and can be cached for a year.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from vipapi.routes.dependencies import get_asset_store
from vipapi.schemas.common import ErrorResponse
from vipapi.services.asset_store import AssetStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vipapi/images", tags=["Images"])


@router.get(
    "/{reference}",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Image bytes", "content": {"image/*": {}}},
        404: {"description": "Image not found", "model": ErrorResponse},
        503: {"description": "Asset store not ready", "model": ErrorResponse},
    },
    summary="Stream an uploaded image",
)
async def get_image(
    reference: str,
    store: AssetStore = Depends(get_asset_store),
) -> StreamingResponse:
    info, chunks = await store.read(reference)
    return StreamingResponse(
        chunks,
        media_type=info.content_type,
        headers={
            "Content-Length": str(info.length),
            "Cache-Control": "public, max-age=31536000, immutable",
        },
    )
