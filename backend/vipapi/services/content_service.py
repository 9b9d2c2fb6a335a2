"""
VIP Travel API - Content Service
=================================

What:  CRUD for every image-bearing content section (contact info, gallery,
       destinations, packages, carousel).
How:   One ContentService per ContentResource. Field handling is driven by
       the resource description; image handling is delegated to
       ImageReconciler so every entity follows the same ordering rules.
Who:   Called by the routers built in routes/content.py.

Write Flow (PUT /vipapi/<section>/{id} with a new image):

    ┌────────────┐   ┌─────────────┐   ┌──────────────────┐   ┌─────────────┐
    │ read doc   │──▶│ store(new)  │──▶│ UPDATE + COMMIT  │──▶│ remove(old) │
    │ (old ref,  │   │ (AssetStore)│   │ image = new ref  │   │ best effort │
    │  version)  │   └─────────────┘   └──────────────────┘   └─────────────┘
    └────────────┘

Strictness (settings.reference_strictness):
    last_writer_wins: UPDATE/DELETE ... WHERE id = :id
    versioned:        UPDATE/DELETE ... WHERE id = :id AND version = :read_version
                      zero rows → ConflictError (409), nothing removed

Sessions:
    The request session from get_db_session is used throughout. Writes commit
    explicitly inside the reconciler callbacks, so the document is durable
    before any superseded blob is deleted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vipapi.config import settings
from vipapi.exceptions import ConflictError, DatabaseError, NotFoundError
from vipapi.models import CarouselSlide, ContactInfo, Destination, GalleryItem, TravelPackage
from vipapi.models.content import ImageDocumentMixin
from vipapi.services.asset_store import AssetStore
from vipapi.services.reconciliation import CleanupResult, ImageReconciler
from vipapi.services.upload_intake import UploadedImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentResource:
    """
    Describes one content section.

    Attributes:
        name:        Singular label used in messages ("gallery item")
        model:       ORM model (an ImageDocumentMixin subclass)
        required:    Form fields that must be present and non-blank
        optional:    Form fields that may be omitted
        latest_only: GET "" returns only the newest document (contact info)
    """

    name: str
    model: Type[ImageDocumentMixin]
    required: Tuple[str, ...]
    optional: Tuple[str, ...] = field(default_factory=tuple)
    latest_only: bool = False

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.required + self.optional

    @property
    def label(self) -> str:
        return self.name[:1].upper() + self.name[1:]


CONTACT_INFO = ContentResource(
    name="contact info",
    model=ContactInfo,
    required=("mobile", "email", "whatsapp"),
    latest_only=True,
)
GALLERY = ContentResource(
    name="gallery item",
    model=GalleryItem,
    required=("title",),
    optional=("category", "description"),
)
DESTINATION = ContentResource(
    name="destination",
    model=Destination,
    required=("name",),
    optional=("country", "description"),
)
PACKAGE = ContentResource(
    name="package",
    model=TravelPackage,
    required=("title", "price"),
    optional=("description", "duration"),
)
CAROUSEL = ContentResource(
    name="carousel slide",
    model=CarouselSlide,
    required=("title",),
    optional=("subtitle", "link"),
)

CONTENT_RESOURCES = (CONTACT_INFO, GALLERY, DESTINATION, PACKAGE, CAROUSEL)


class ContentService:
    """
    Business logic for one content section.

    Args:
        resource:    Which section this service manages
        store:       AssetStore holding the section's images
        strictness:  "last_writer_wins" or "versioned"
                     (defaults to settings.reference_strictness)
    """

    def __init__(
        self,
        resource: ContentResource,
        store: AssetStore,
        strictness: Optional[str] = None,
    ):
        self.resource = resource
        self.model = resource.model
        self.reconciler = ImageReconciler(store)
        self.strictness = strictness or settings.reference_strictness

    @property
    def versioned(self) -> bool:
        return self.strictness == "versioned"

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list(self, db: AsyncSession) -> List[Any]:
        """All documents, newest first."""
        try:
            result = await db.execute(select(self.model).order_by(desc(self.model.created_at)))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing %s: %s", self.resource.name, str(e))
            raise DatabaseError(
                message=f"Could not retrieve {self.resource.name} records. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def latest(self, db: AsyncSession) -> Optional[Any]:
        """The newest document, or None when the section is empty."""
        try:
            result = await db.execute(
                select(self.model).order_by(desc(self.model.created_at)).limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching latest %s: %s", self.resource.name, str(e))
            raise DatabaseError(
                message=f"Could not retrieve {self.resource.name}. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get(self, db: AsyncSession, document_id: UUID) -> Any:
        """
        Raises:
            NotFoundError: no document with this id (→ 404)
        """
        try:
            document = await db.get(self.model, document_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching %s %s: %s", self.resource.name, document_id, str(e))
            raise DatabaseError(
                message=f"Could not retrieve the {self.resource.name}. Please try again.",
                context={"resource_id": str(document_id)},
            ) from e
        if document is None:
            raise NotFoundError(resource=self.resource.name, resource_id=str(document_id))
        return document

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        values: Dict[str, Any],
        upload: Optional[UploadedImage] = None,
    ) -> Any:
        """Store the image (if any), then insert and commit the document."""

        async def persist(reference: Optional[str]) -> Any:
            document = self.model(**self._columns(values), image=reference)
            db.add(document)
            await self._commit(db, "create")
            return document

        document = await self.reconciler.create(persist, upload)
        logger.info("Created %s %s (image=%s)", self.resource.name, document.id, document.image)
        return document

    async def update(
        self,
        db: AsyncSession,
        document_id: UUID,
        values: Dict[str, Any],
        upload: Optional[UploadedImage] = None,
    ) -> Tuple[Any, CleanupResult]:
        """
        Update fields, and swap the image when a new one is uploaded.

        Returns:
            (updated document, CleanupResult of the superseded image)
        Raises:
            NotFoundError: document missing (before anything is stored)
            ConflictError: versioned mode and the document changed meanwhile
        """
        document = await self.get(db, document_id)
        read_version = document.version

        async def read_current() -> Optional[str]:
            return document.image

        async def write(reference: Optional[str]) -> Any:
            stmt = update(self.model).where(self.model.id == document_id)
            if self.versioned:
                stmt = stmt.where(self.model.version == read_version)
            stmt = stmt.values(
                **self._columns(values),
                image=reference,
                version=self.model.version + 1,
            ).execution_options(synchronize_session=False)

            result = await self._execute(db, stmt, "update")
            if result.rowcount == 0:
                await db.rollback()
                self._raise_lost_write(document_id, read_version)
            await self._commit(db, "update")
            await db.refresh(document)
            return document

        document, cleanup = await self.reconciler.replace(read_current, write, upload)
        logger.info(
            "Updated %s %s (image=%s, cleanup=%s)",
            self.resource.name,
            document_id,
            document.image,
            cleanup.status.value,
        )
        return document, cleanup

    async def delete(self, db: AsyncSession, document_id: UUID) -> CleanupResult:
        """Delete and commit the document, then remove its image."""
        document = await self.get(db, document_id)
        read_version = document.version

        async def read_current() -> Optional[str]:
            return document.image

        async def delete_document() -> None:
            stmt = delete(self.model).where(self.model.id == document_id)
            if self.versioned:
                stmt = stmt.where(self.model.version == read_version)
            stmt = stmt.execution_options(synchronize_session=False)

            result = await self._execute(db, stmt, "delete")
            if result.rowcount == 0:
                await db.rollback()
                self._raise_lost_write(document_id, read_version)
            await self._commit(db, "delete")
            db.expunge(document)

        cleanup = await self.reconciler.delete(read_current, delete_document)
        logger.info(
            "Deleted %s %s (cleanup=%s)", self.resource.name, document_id, cleanup.status.value
        )
        return cleanup

    # ── Helpers ───────────────────────────────────────────────────────────

    def _columns(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in values.items() if k in self.resource.fields}

    def _raise_lost_write(self, document_id: UUID, read_version: int) -> None:
        if self.versioned:
            raise ConflictError(
                resource=self.resource.name,
                resource_id=str(document_id),
                expected_version=read_version,
            )
        # Deleted by a concurrent request between our read and our write
        raise NotFoundError(resource=self.resource.name, resource_id=str(document_id))

    async def _execute(self, db: AsyncSession, stmt: Any, operation: str) -> Any:
        try:
            return await db.execute(stmt)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error on %s %s: %s", operation, self.resource.name, str(e))
            raise DatabaseError(
                message=f"Could not {operation} the {self.resource.name}. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    async def _commit(self, db: AsyncSession, operation: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Commit failed on %s %s: %s", operation, self.resource.name, str(e))
            raise DatabaseError(
                message=f"Could not {operation} the {self.resource.name}. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e
