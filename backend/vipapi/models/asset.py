"""
VIP Travel API - Asset Bucket Tables
=====================================

What:  ORM models for the chunked binary-object store.
How:   One `asset_files` row per blob (metadata + the reference string) and
       N `asset_chunks` rows holding the bytes in order.
Who:   Only vipapi.services.blob_bucket reads or writes these tables.

Table Design Rationale:
    - filename: The reference documents store. Unique per bucket.
    - chunk_size: Recorded per blob so a later change of the setting does not
      break reads of older blobs.
    - No back-reference to documents. Reachability runs from document to blob
      only; an unreferenced row is an orphan, never a broken link.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from vipapi.database import Base


class AssetFile(Base):
    """Metadata row for one stored blob."""

    __tablename__ = "asset_files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    bucket: Mapped[str] = mapped_column(String(64), nullable=False)

    # Format: <uuid4 hex><ext>, e.g. 3f2a...9c.png
    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    length: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_size: Mapped[int] = mapped_column(Integer, nullable=False)

    # Client-supplied name, kept for diagnostics only (never used as a path)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("bucket", "filename", name="uq_asset_files_bucket_filename"),
    )

    def __repr__(self) -> str:
        return f"<AssetFile(filename='{self.filename}', length={self.length})>"


class AssetChunk(Base):
    """One ordered slice of a blob's bytes."""

    __tablename__ = "asset_chunks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("asset_files.id", ondelete="CASCADE"),
        nullable=False,
    )
    n: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    __table_args__ = (
        UniqueConstraint("file_id", "n", name="uq_asset_chunks_file_n"),
    )
