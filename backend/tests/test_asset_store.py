"""
VIP Travel API - Asset Store Tests
===================================

What:  Readiness gate and blob operations of AssetStore / BlobBucket.
How:   Real SQLite database per test (see conftest.engine).

Test Strategy:
    ✅ Initialization deferred until the database reports ready
    ✅ Concurrent initialize() runs the setup exactly once
    ✅ Failed setup returns to UNINITIALIZED and is retried
    ✅ Operations fail fast with StoreUnavailableError while not ready
    ✅ Chunked store / read / remove, fresh references, NotFound
"""

import asyncio
import math
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from vipapi.exceptions import AssetNotFoundError, StoreUnavailableError, StoreWriteError
from vipapi.models.asset import AssetChunk
from vipapi.services.asset_store import AssetStore, BucketState
from vipapi.services.upload_intake import UploadedImage


def image(content: bytes, filename: str = "logo.png", content_type: str = "image/png"):
    return UploadedImage(content=content, filename=filename, content_type=content_type)


class TestReadinessGate:

    @pytest.mark.asyncio
    async def test_initialize_deferred_until_database_ready(self, engine):
        db_ready = False
        store = AssetStore(engine, readiness=lambda: db_ready, chunk_size=1024)

        assert await store.initialize() is False
        assert store.state is BucketState.UNINITIALIZED

        db_ready = True
        assert await store.initialize() is True
        assert store.state is BucketState.READY

    @pytest.mark.asyncio
    async def test_concurrent_initialize_runs_setup_once(self, engine):
        store = AssetStore(engine, readiness=lambda: True, chunk_size=1024)
        real_create = store.bucket.create
        calls = 0

        async def slow_create():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            await real_create()

        store.bucket.create = slow_create

        results = await asyncio.gather(*(store.initialize() for _ in range(10)))

        assert results == [True] * 10
        assert calls == 1
        assert store.is_ready

    @pytest.mark.asyncio
    async def test_initialize_when_ready_is_a_no_op(self, asset_store):
        asset_store.bucket.create = AsyncMock()
        assert await asset_store.initialize() is True
        asset_store.bucket.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_setup_resets_and_retries(self, engine):
        store = AssetStore(engine, readiness=lambda: True, chunk_size=1024)
        real_create = store.bucket.create
        store.bucket.create = AsyncMock(
            side_effect=OperationalError("CREATE TABLE", {}, Exception("disk I/O error"))
        )

        assert await store.initialize() is False
        assert store.state is BucketState.UNINITIALIZED

        store.bucket.create = real_create
        assert await store.initialize() is True
        assert store.state is BucketState.READY

    @pytest.mark.asyncio
    async def test_operations_fail_fast_before_ready(self, engine, png_bytes):
        store = AssetStore(engine, readiness=lambda: False, chunk_size=1024)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.store(image(png_bytes))
        assert exc_info.value.retry_after >= 1
        assert exc_info.value.context["operation"] == "store"

        with pytest.raises(StoreUnavailableError):
            await store.remove("anything.png")
        with pytest.raises(StoreUnavailableError):
            await store.read("anything.png")


class TestBlobOperations:

    @pytest.mark.asyncio
    async def test_store_and_read_back_across_chunks(self, asset_store, png_bytes, db_session):
        reference = await asset_store.store(image(png_bytes))

        assert reference.endswith(".png")
        assert await asset_store.read_bytes(reference) == png_bytes

        info, _ = await asset_store.read(reference)
        assert info.content_type == "image/png"
        assert info.length == len(png_bytes)
        assert info.chunk_size == 1024
        assert info.original_name == "logo.png"

        result = await db_session.execute(select(func.count(AssetChunk.id)))
        assert result.scalar() == math.ceil(len(png_bytes) / 1024)

    @pytest.mark.asyncio
    async def test_every_store_gets_a_fresh_reference(self, asset_store, png_bytes):
        first = await asset_store.store(image(png_bytes))
        second = await asset_store.store(image(png_bytes))
        assert first != second
        assert await asset_store.count() == 2

    @pytest.mark.asyncio
    async def test_jpeg_reference_uses_jpg_extension(self, asset_store, jpeg_bytes):
        reference = await asset_store.store(
            image(jpeg_bytes, filename="photo.jpeg", content_type="image/jpeg")
        )
        assert reference.endswith(".jpg")
        assert await asset_store.read_bytes(reference) == jpeg_bytes

    @pytest.mark.asyncio
    async def test_remove_makes_reference_unresolvable(self, asset_store, png_bytes, db_session):
        reference = await asset_store.store(image(png_bytes))
        await asset_store.remove(reference)

        assert not await asset_store.exists(reference)
        with pytest.raises(AssetNotFoundError):
            await asset_store.read(reference)

        chunks = await db_session.execute(select(func.count(AssetChunk.id)))
        assert chunks.scalar() == 0

    @pytest.mark.asyncio
    async def test_remove_unknown_reference_raises_not_found(self, asset_store):
        with pytest.raises(AssetNotFoundError):
            await asset_store.remove("missing.png")

    @pytest.mark.asyncio
    async def test_buckets_are_isolated(self, engine, asset_store, png_bytes):
        other = AssetStore(engine, readiness=lambda: True, bucket_name="thumbs", chunk_size=1024)
        await other.initialize()

        reference = await asset_store.store(image(png_bytes))

        assert await other.count() == 0
        with pytest.raises(AssetNotFoundError):
            await other.read(reference)

    @pytest.mark.asyncio
    async def test_database_write_failure_becomes_store_write_error(self, asset_store, png_bytes):
        asset_store.bucket.put = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("database is locked"))
        )
        with pytest.raises(StoreWriteError):
            await asset_store.store(image(png_bytes))
