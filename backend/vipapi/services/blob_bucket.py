"""
VIP Travel API - Chunked Blob Bucket
=====================================

What:  Stores image bytes as ordered chunks in the relational database,
       keyed by a generated filename, separate from the documents that
       reference them.
How:   `put` writes one asset_files row and its asset_chunks rows inside a
       single transaction; `delete` removes chunks then the file row;
       `open_stream` yields the chunks one query at a time.
Who:   Wrapped by AssetStore, which owns readiness and error translation.

Storage layout (GridFS-style):
    asset_files   id | bucket | filename | content_type | length | chunk_size
    asset_chunks  file_id | n | data            (n = 0 .. ceil(length/chunk_size)-1)

Every method opens its own session, so a blob write is durable before the
caller touches any document.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from vipapi.exceptions import AssetNotFoundError, AssetStoreError
from vipapi.models.asset import AssetChunk, AssetFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAsset:
    """Metadata of one blob, as recorded at store time."""

    reference: str
    content_type: str
    length: int
    chunk_size: int
    upload_date: datetime
    original_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: AssetFile) -> "StoredAsset":
        return cls(
            reference=row.filename,
            content_type=row.content_type,
            length=row.length,
            chunk_size=row.chunk_size,
            upload_date=row.upload_date,
            original_name=row.original_name,
        )


class BlobBucket:
    """
    One named bucket inside the shared asset tables.

    Several buckets may share the tables; every query is scoped by
    `bucket_name`.
    """

    def __init__(self, db_engine: AsyncEngine, bucket_name: str, chunk_size: int):
        self.engine = db_engine
        self.bucket_name = bucket_name
        self.chunk_size = chunk_size
        self._sessions = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def create(self) -> None:
        """
        Create the bucket tables and indexes if they do not exist yet.

        Idempotent at the database level (CREATE ... IF NOT EXISTS semantics
        through checkfirst); AssetStore additionally makes sure it runs once.
        """
        tables = [AssetFile.__table__, AssetChunk.__table__]
        async with self.engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: AssetFile.metadata.create_all(
                    sync_conn, tables=tables, checkfirst=True
                )
            )
        logger.info("Blob bucket '%s' ready (chunk_size=%d)", self.bucket_name, self.chunk_size)

    async def put(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        original_name: Optional[str] = None,
    ) -> StoredAsset:
        """Write `content` as a new blob named `filename`."""
        file_id = uuid.uuid4()
        row = AssetFile(
            id=file_id,
            bucket=self.bucket_name,
            filename=filename,
            content_type=content_type,
            length=len(content),
            chunk_size=self.chunk_size,
            original_name=original_name,
        )
        chunks = [
            AssetChunk(file_id=file_id, n=n, data=content[offset:offset + self.chunk_size])
            for n, offset in enumerate(range(0, len(content), self.chunk_size))
        ]

        async with self._sessions() as session:
            async with session.begin():
                session.add(row)
                # Parent row first so the chunk foreign keys resolve
                await session.flush()
                session.add_all(chunks)

        logger.debug("Blob %s written in %d chunks", filename, len(chunks))
        return StoredAsset.from_row(row)

    async def delete(self, filename: str) -> None:
        """
        Delete the blob named `filename`.

        Raises:
            AssetNotFoundError if the bucket holds no such blob.
        """
        async with self._sessions() as session:
            async with session.begin():
                row = await self._find(session, filename)
                if row is None:
                    raise AssetNotFoundError(filename, context={"bucket": self.bucket_name})
                # Chunks explicitly: SQLite does not enforce ON DELETE CASCADE by default
                await session.execute(delete(AssetChunk).where(AssetChunk.file_id == row.id))
                await session.delete(row)

    async def exists(self, filename: str) -> bool:
        async with self._sessions() as session:
            return await self._find(session, filename) is not None

    async def count(self) -> int:
        """Number of blobs in this bucket."""
        async with self._sessions() as session:
            result = await session.execute(
                select(func.count(AssetFile.id)).where(AssetFile.bucket == self.bucket_name)
            )
            return result.scalar() or 0

    async def open_stream(self, filename: str) -> tuple[StoredAsset, AsyncIterator[bytes]]:
        """
        Look up the blob and return its metadata with a chunk iterator.

        The metadata lookup happens now (so a missing blob raises before a
        response starts); chunks are fetched lazily, one query per chunk.
        """
        async with self._sessions() as session:
            row = await self._find(session, filename)
        if row is None:
            raise AssetNotFoundError(filename, context={"bucket": self.bucket_name})
        info = StoredAsset.from_row(row)
        return info, self._iter_chunks(row.id, info)

    async def _iter_chunks(self, file_id: uuid.UUID, info: StoredAsset) -> AsyncIterator[bytes]:
        expected = math.ceil(info.length / info.chunk_size) if info.length else 0
        async with self._sessions() as session:
            for n in range(expected):
                result = await session.execute(
                    select(AssetChunk.data).where(
                        AssetChunk.file_id == file_id,
                        AssetChunk.n == n,
                    )
                )
                data = result.scalar_one_or_none()
                if data is None:
                    raise AssetStoreError(
                        message="Stored image is incomplete",
                        context={"reference": info.reference, "missing_chunk": n},
                    )
                yield data

    async def _find(self, session: AsyncSession, filename: str) -> Optional[AssetFile]:
        result = await session.execute(
            select(AssetFile).where(
                AssetFile.bucket == self.bucket_name,
                AssetFile.filename == filename,
            )
        )
        return result.scalar_one_or_none()
