"""
VIP Travel API - Endpoint Tests
================================

What:  HTTP-level behaviour of the content, image, booking and health routes.
How:   httpx AsyncClient over ASGITransport against create_app() wired to the
       per-test SQLite database and asset store (see conftest.client).

Test Strategy:
    ✅ Contact info end to end: create with image, fetch, serve image,
       replace image, field-only update, delete
    ✅ Oversized upload rejected with 400, store untouched
    ✅ Missing required fields named in the 400 body
    ✅ One file per request, only under `image`
    ✅ Gallery-style list ordering and image_url
    ✅ 503 + Retry-After while the asset store is not ready
    ✅ Bookings: create with countryCode, status routes, 400 on bad status
"""

import pytest

from conftest import png_of_size

CONTACT_FORM = {"mobile": "+91 98765 43210", "email": "hello@viptravel.example", "whatsapp": "+91 98765 43210"}


def image_file(content: bytes, filename: str = "logo.png", content_type: str = "image/png"):
    return {"image": (filename, content, content_type)}


class TestContactInfoEndpoints:

    @pytest.mark.asyncio
    async def test_empty_section_returns_empty_object(self, client):
        response = await client.get("/vipapi/contact-info")
        assert response.status_code == 200
        assert response.json() == {}

    @pytest.mark.asyncio
    async def test_full_image_lifecycle(self, client, asset_store, png_bytes, other_png_bytes):
        # Create with image
        response = await client.post("/vipapi/contact-info", data=CONTACT_FORM, files=image_file(png_bytes))
        assert response.status_code == 201
        body = response.json()
        doc_id = body["id"]
        r1 = body["data"]["image"]
        assert body["data"]["image_url"] == f"/vipapi/images/{r1}"

        # Latest document is returned by the section GET
        latest = (await client.get("/vipapi/contact-info")).json()
        assert latest["id"] == doc_id
        assert latest["image"] == r1

        # Image is served with its content type
        served = await client.get(f"/vipapi/images/{r1}")
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"
        assert served.content == png_bytes

        # Replace the image
        response = await client.put(
            f"/vipapi/contact-info/{doc_id}",
            data=CONTACT_FORM,
            files=image_file(other_png_bytes, "logo2.png"),
        )
        assert response.status_code == 200
        body = response.json()
        r2 = body["data"]["image"]
        assert r2 != r1
        assert body["cleanup"] == {"status": "removed", "reference": r1, "error": None}
        assert (await client.get(f"/vipapi/images/{r1}")).status_code == 404

        # Field-only update keeps the image
        response = await client.put(
            f"/vipapi/contact-info/{doc_id}",
            data=dict(CONTACT_FORM, mobile="+91 90000 00000"),
        )
        assert response.status_code == 200
        assert response.json()["data"]["image"] == r2
        assert response.json()["data"]["mobile"] == "+91 90000 00000"
        assert response.json()["cleanup"]["status"] == "not_needed"

        # Delete removes the document and its image
        response = await client.delete(f"/vipapi/contact-info/{doc_id}")
        assert response.status_code == 200
        assert response.json()["cleanup"]["status"] == "removed"
        assert (await client.get(f"/vipapi/images/{r2}")).status_code == 404
        assert (await client.get(f"/vipapi/contact-info/{doc_id}")).status_code == 404
        assert await asset_store.count() == 0

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected_before_store(self, client, asset_store):
        # Test settings cap uploads at 64KB
        response = await client.post(
            "/vipapi/contact-info",
            data=CONTACT_FORM,
            files=image_file(png_of_size(70 * 1024)),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert await asset_store.count() == 0
        assert (await client.get("/vipapi/contact-info")).json() == {}

    @pytest.mark.asyncio
    async def test_missing_required_fields_named(self, client, asset_store, png_bytes):
        response = await client.post(
            "/vipapi/contact-info",
            data={"mobile": "+91 98765 43210"},
            files=image_file(png_bytes),
        )
        assert response.status_code == 400
        body = response.json()
        assert "email" in body["message"]
        assert "whatsapp" in body["message"]
        assert body["details"]["missing"] == ["email", "whatsapp"]
        assert await asset_store.count() == 0

    @pytest.mark.asyncio
    async def test_two_image_parts_rejected(self, client, asset_store, png_bytes, other_png_bytes):
        response = await client.post(
            "/vipapi/contact-info",
            data=CONTACT_FORM,
            files=[
                ("image", ("logo.png", png_bytes, "image/png")),
                ("image", ("logo2.png", other_png_bytes, "image/png")),
            ],
        )
        assert response.status_code == 400
        body = response.json()
        assert body["details"]["field"] == "image"
        assert body["details"]["received"] == 2
        assert await asset_store.count() == 0
        assert (await client.get("/vipapi/contact-info")).json() == {}

    @pytest.mark.asyncio
    async def test_file_under_other_field_rejected(self, client, asset_store, png_bytes):
        response = await client.post(
            "/vipapi/contact-info",
            data=CONTACT_FORM,
            files={"photo": ("logo.png", png_bytes, "image/png")},
        )
        assert response.status_code == 400
        assert response.json()["details"]["unexpected"] == ["photo"]
        assert await asset_store.count() == 0
        assert (await client.get("/vipapi/contact-info")).json() == {}

    @pytest.mark.asyncio
    async def test_disallowed_file_type_rejected(self, client, asset_store):
        response = await client.post(
            "/vipapi/contact-info",
            data=CONTACT_FORM,
            files=image_file(b"%PDF-1.4 fake", "brochure.pdf", "application/pdf"),
        )
        assert response.status_code == 400
        assert await asset_store.count() == 0

    @pytest.mark.asyncio
    async def test_update_unknown_document_is_404(self, client, asset_store, png_bytes):
        response = await client.put(
            "/vipapi/contact-info/00000000-0000-0000-0000-000000000000",
            data=CONTACT_FORM,
            files=image_file(png_bytes),
        )
        assert response.status_code == 404
        assert await asset_store.count() == 0


class TestListSections:

    @pytest.mark.asyncio
    async def test_gallery_lists_newest_first(self, client, png_bytes):
        for title in ("Goa", "Kerala", "Ladakh"):
            response = await client.post(
                "/vipapi/gallery", data={"title": title, "category": "India"}, files=image_file(png_bytes)
            )
            assert response.status_code == 201

        items = (await client.get("/vipapi/gallery")).json()
        assert [item["title"] for item in items] == ["Ladakh", "Kerala", "Goa"]
        assert all(item["image_url"].startswith("/vipapi/images/") for item in items)

    @pytest.mark.asyncio
    async def test_package_requires_title_and_price(self, client):
        response = await client.post("/vipapi/packages", data={"title": "Bali Escape"})
        assert response.status_code == 400
        assert response.json()["details"]["missing"] == ["price"]

    @pytest.mark.asyncio
    async def test_destination_without_image(self, client):
        response = await client.post("/vipapi/destination", data={"name": "Santorini", "country": "Greece"})
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["image"] is None
        assert data["image_url"] is None
        assert data["country"] == "Greece"

    @pytest.mark.asyncio
    async def test_carousel_crud(self, client, png_bytes):
        created = await client.post(
            "/vipapi/carousel", data={"title": "Summer deals", "link": "/packages"}, files=image_file(png_bytes)
        )
        slide_id = created.json()["id"]

        fetched = await client.get(f"/vipapi/carousel/{slide_id}")
        assert fetched.status_code == 200
        assert fetched.json()["link"] == "/packages"

        deleted = await client.delete(f"/vipapi/carousel/{slide_id}")
        assert deleted.status_code == 200
        assert (await client.get("/vipapi/carousel")).json() == []

    @pytest.mark.asyncio
    async def test_invalid_id_is_422(self, client):
        response = await client.get("/vipapi/gallery/not-a-uuid")
        assert response.status_code == 422


class TestImageEndpoint:

    @pytest.mark.asyncio
    async def test_unknown_image_is_404(self, client):
        response = await client.get("/vipapi/images/missing.png")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_store_not_ready_is_503_with_retry_after(self, app, client, engine, png_bytes):
        from vipapi.services.asset_store import AssetStore

        app.state.asset_store = AssetStore(engine, readiness=lambda: False, chunk_size=1024)

        response = await client.post("/vipapi/gallery", data={"title": "Goa"}, files=image_file(png_bytes))

        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
        assert response.json()["error"] == "store_unavailable"


class TestBookingEndpoints:

    BOOKING = {
        "name": "Asha Rao",
        "countryCode": "+91",
        "phone": "9876543210",
        "email": "asha@example.com",
        "checkin": "2026-12-20",
        "checkout": "2026-12-27",
        "destination": "Maldives",
        "adults": 2,
    }

    @pytest.mark.asyncio
    async def test_create_and_confirm(self, client):
        response = await client.post("/vipapi/bookings", json=self.BOOKING)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["data"]["countryCode"] == "+91"
        assert body["data"]["children"] == 0
        booking_id = body["id"]

        response = await client.patch(f"/vipapi/bookings/{booking_id}/status", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

        confirmed = (await client.get("/vipapi/bookings/status/confirmed")).json()
        assert [b["id"] for b in confirmed] == [booking_id]

    @pytest.mark.asyncio
    async def test_invalid_status_is_400(self, client):
        booking_id = (await client.post("/vipapi/bookings", json=self.BOOKING)).json()["id"]

        response = await client.patch(f"/vipapi/bookings/{booking_id}/status", json={"status": "done"})
        assert response.status_code == 400

        response = await client.get("/vipapi/bookings/status/done")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_required_booking_fields(self, client):
        response = await client.post("/vipapi/bookings", json={"name": "Asha"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client):
        booking_id = (await client.post("/vipapi/bookings", json=self.BOOKING)).json()["id"]

        response = await client.put(
            f"/vipapi/bookings/{booking_id}", json=dict(self.BOOKING, adults=4, request="Airport pickup")
        )
        assert response.status_code == 200
        assert response.json()["data"]["adults"] == 4
        assert response.json()["data"]["status"] == "pending"

        response = await client.delete(f"/vipapi/bookings/{booking_id}")
        assert response.status_code == 200
        assert (await client.get(f"/vipapi/bookings/{booking_id}")).status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database_and_store(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["asset_store"] == "ready"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/vipapi/gallery", headers={"X-Request-ID": "abc12345"})
        assert response.headers["x-request-id"] == "abc12345"
