"""
VIP Travel API - Asset Store Facade
====================================

What:  The one entry point route handlers use for image blobs:
       initialize(), store(), remove(), read().
How:   Wraps a BlobBucket behind a readiness gate. The bucket is set up
       lazily, exactly once, after the database connection reports ready.
Who:   Injected into handlers via `app.state.asset_store` (see
       routes/dependencies.py); tests inject their own instance.

Readiness Gate (state machine):

    UNINITIALIZED ──(db ready, lock won)──▶ INITIALIZING ──(setup ok)──▶ READY
          ▲                                       │
          └─────────────(setup raised)────────────┘

    - initialize() may be called any number of times, concurrently, before
      or after the database is ready. It never raises.
    - Only one caller runs the setup (asyncio.Lock); callers queued behind it
      observe READY and return without doing anything.
    - A failed setup returns to UNINITIALIZED so the next request retries.
    - store/remove/read while not READY fail fast with StoreUnavailableError.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import AsyncIterator, Callable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from vipapi.config import settings
from vipapi.database import db_connection, engine
from vipapi.exceptions import AssetStoreError, StoreUnavailableError, StoreWriteError
from vipapi.services.blob_bucket import BlobBucket, StoredAsset
from vipapi.services.upload_intake import UploadedImage

logger = logging.getLogger(__name__)


class BucketState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class AssetStore:
    """
    Readiness-gated facade over one BlobBucket.

    Args:
        db_engine:   Engine whose database holds the bucket tables.
        readiness:   Callable returning True once the database connection is
                     usable (DatabaseConnection.is_ready in production).
        bucket_name: Defaults to settings.asset_bucket_name.
        chunk_size:  Defaults to settings.asset_chunk_size.
    """

    def __init__(
        self,
        db_engine: AsyncEngine,
        readiness: Callable[[], bool],
        bucket_name: Optional[str] = None,
        chunk_size: Optional[int] = None,
    ):
        self.bucket = BlobBucket(
            db_engine,
            bucket_name=bucket_name or settings.asset_bucket_name,
            chunk_size=chunk_size or settings.asset_chunk_size,
        )
        self._readiness = readiness
        self._state = BucketState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> BucketState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is BucketState.READY

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def initialize(self) -> bool:
        """
        Set up the bucket once the database is ready.

        Returns:
            True if the bucket is READY after the call, False if setup was
            deferred (database not ready) or failed (logged, retried later).
        """
        if self._state is BucketState.READY:
            return True
        if not self._readiness():
            logger.debug("Asset store initialization deferred: database not ready")
            return False

        async with self._lock:
            if self._state is BucketState.READY:
                return True

            self._state = BucketState.INITIALIZING
            try:
                await self.bucket.create()
            except Exception as e:
                self._state = BucketState.UNINITIALIZED
                logger.warning(
                    "Asset store initialization failed, will retry on next request: %s",
                    str(e),
                )
                return False

            self._state = BucketState.READY
            logger.info("Asset store initialized (bucket=%s)", self.bucket.bucket_name)
            return True

    def _require_ready(self, operation: str) -> None:
        if self._state is not BucketState.READY:
            raise StoreUnavailableError(
                context={"operation": operation, "state": self._state.value},
            )

    # ── Operations ────────────────────────────────────────────────────────

    async def store(self, upload: UploadedImage) -> str:
        """
        Write the upload as a new blob and return its fresh reference.

        Side effect: exactly one new blob; nothing existing is touched.

        Raises:
            StoreUnavailableError: bucket not READY
            StoreWriteError:       the database rejected the write
        """
        self._require_ready("store")
        reference = f"{uuid.uuid4().hex}{upload.extension}"
        try:
            await self.bucket.put(
                reference,
                upload.content,
                content_type=upload.content_type,
                original_name=upload.filename,
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to store image %s: %s", reference, str(e))
            raise StoreWriteError(
                context={"reference": reference, "error_type": type(e).__name__},
            ) from e

        logger.info("Stored image %s (%d bytes, %s)", reference, upload.size, upload.content_type)
        return reference

    async def remove(self, reference: str) -> None:
        """
        Delete the blob named by `reference`.

        Raises:
            StoreUnavailableError: bucket not READY
            AssetNotFoundError:    no such blob
            AssetStoreError:       the database rejected the delete
        """
        self._require_ready("remove")
        try:
            await self.bucket.delete(reference)
        except SQLAlchemyError as e:
            raise AssetStoreError(
                message="Failed to delete image",
                context={"reference": reference, "error_type": type(e).__name__},
            ) from e
        logger.info("Removed image %s", reference)

    async def read(self, reference: str) -> Tuple[StoredAsset, AsyncIterator[bytes]]:
        """Metadata plus a chunk-by-chunk byte stream for `reference`."""
        self._require_ready("read")
        return await self.bucket.open_stream(reference)

    async def read_bytes(self, reference: str) -> bytes:
        """The whole blob in memory. Meant for small images and tests."""
        _, chunks = await self.read(reference)
        return b"".join([chunk async for chunk in chunks])

    async def exists(self, reference: str) -> bool:
        self._require_ready("exists")
        return await self.bucket.exists(reference)

    async def count(self) -> int:
        self._require_ready("count")
        return await self.bucket.count()


def build_default_asset_store() -> AssetStore:
    """The process-wide store, bound to the application engine."""
    return AssetStore(engine, readiness=lambda: db_connection.is_ready)


# ── Singleton Instance ────────────────────────────────────────────────────
# Bucket handle and readiness state are process-wide; every request shares them.
asset_store = build_default_asset_store()
