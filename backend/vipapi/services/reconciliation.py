"""
VIP Travel API - Image Reference Reconciliation
================================================

What:  The create / replace / delete protocol that keeps a document's image
       reference and the asset bucket consistent.
How:   One ImageReconciler, parameterized by callables that read the current
       reference and write (and commit) the new state. Every image-bearing
       entity goes through it via ContentService.
Who:   ContentService; nothing else moves image references.

Ordering Rules:
    write-new-before-delete-old:
        store(new) → write + commit document(new) → remove(old)
    delete-document-before-delete-blob:
        read(ref) → delete + commit document → remove(ref)

    A crash anywhere in those sequences leaves either the document on a blob
    that still exists, or an unreferenced blob (orphan). It never leaves a
    committed document pointing at a blob that is gone.

Failure Policy:
    First step fails (store / document read)  → whole operation aborts, nothing changed
    Document write fails after a store        → new blob orphaned, error propagates
    Document write matches no row            → new blob discarded best-effort (409 or 404)
    Trailing remove fails                     → recorded in CleanupResult, not raised
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from vipapi.exceptions import AssetNotFoundError, ConflictError, NotFoundError
from vipapi.services.asset_store import AssetStore
from vipapi.services.upload_intake import UploadedImage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CleanupStatus(str, Enum):
    NOT_NEEDED = "not_needed"      # no superseded reference
    REMOVED = "removed"            # superseded blob deleted
    ALREADY_GONE = "already_gone"  # superseded blob did not exist
    ORPHANED = "orphaned"          # delete failed; blob left unreferenced


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of the trailing blob removal step."""

    status: CleanupStatus
    reference: Optional[str] = None
    error: Optional[str] = None

    @property
    def orphaned(self) -> bool:
        return self.status is CleanupStatus.ORPHANED

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"status": self.status.value, "reference": self.reference, "error": self.error}


NOT_NEEDED = CleanupResult(CleanupStatus.NOT_NEEDED)


class ImageReconciler:
    """
    Runs the image protocol against one AssetStore.

    The callables passed to each method own the document side:
        read_current()      → the reference stored on the document right now
        write(reference)    → persist + COMMIT the document with `reference`
        delete_document()   → delete + COMMIT the document
    Commit inside those callables is what makes "durably linked before the
    old blob is deleted" hold.
    """

    def __init__(self, store: AssetStore):
        self.store = store

    async def create(
        self,
        persist: Callable[[Optional[str]], Awaitable[T]],
        upload: Optional[UploadedImage],
    ) -> T:
        """Store the upload (if any), then persist a document referencing it."""
        reference = await self.store.store(upload) if upload else None
        try:
            return await persist(reference)
        except Exception:
            if reference:
                logger.warning("Document write failed; image %s left orphaned", reference)
            raise

    async def replace(
        self,
        read_current: Callable[[], Awaitable[Optional[str]]],
        write: Callable[[Optional[str]], Awaitable[T]],
        upload: Optional[UploadedImage],
    ) -> Tuple[T, CleanupResult]:
        """
        Swap the document's image (if a new one was uploaded) and clean up.

        Without an upload the current reference is written back unchanged
        and no blob is touched.
        """
        old_reference = await read_current()

        if upload is None:
            return await write(old_reference), NOT_NEEDED

        new_reference = await self.store.store(upload)
        try:
            document = await write(new_reference)
        except (ConflictError, NotFoundError):
            await self.discard(new_reference)
            raise
        except Exception:
            logger.warning(
                "Document write failed; new image %s left orphaned, document keeps %s",
                new_reference,
                old_reference,
            )
            raise

        if not old_reference or old_reference == new_reference:
            return document, NOT_NEEDED
        return document, await self.cleanup(old_reference)

    async def delete(
        self,
        read_current: Callable[[], Awaitable[Optional[str]]],
        delete_document: Callable[[], Awaitable[None]],
    ) -> CleanupResult:
        """Delete the document, then its image."""
        reference = await read_current()
        await delete_document()
        if not reference:
            return NOT_NEEDED
        return await self.cleanup(reference)

    async def cleanup(self, reference: str) -> CleanupResult:
        """
        Best-effort removal of a superseded reference.

        Never raises: the document side is already committed, so any failure
        here can only produce an orphan.
        """
        try:
            await self.store.remove(reference)
        except AssetNotFoundError:
            logger.info("Superseded image %s was already gone", reference)
            return CleanupResult(CleanupStatus.ALREADY_GONE, reference=reference)
        except Exception as e:
            logger.warning("Could not remove superseded image %s (orphaned): %s", reference, str(e))
            return CleanupResult(CleanupStatus.ORPHANED, reference=reference, error=str(e))
        return CleanupResult(CleanupStatus.REMOVED, reference=reference)

    async def discard(self, reference: Optional[str]) -> None:
        """Drop a blob that was stored but never linked to a document."""
        if not reference:
            return
        result = await self.cleanup(reference)
        if result.status is CleanupStatus.REMOVED:
            logger.info("Discarded unlinked image %s", reference)
