"""Integration tests for FastAPI endpoints (contract tests)."""

import base64
import json

import fitz
import pytest
from httpx import AsyncClient, ASGITransport
from imagebinder.core.config import settings
from imagebinder.layout.page import mm_to_pt
from imagebinder.main import app


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _job(resp) -> dict:
    return json.loads(base64.b64decode(resp.headers["X-ImageBinder-Job"]))


def _pdf(resp):
    return fitz.open(stream=resp.content, filetype="pdf")


@pytest.mark.asyncio
class TestHealthEndpoint:
    async def test_health_returns_ok(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"


@pytest.mark.asyncio
class TestPageSizesEndpoint:
    async def test_list_presets(self, client):
        resp = await client.get("/v1/page-sizes")
        assert resp.status_code == 200
        sizes = {s["name"]: s for s in resp.json()}
        assert sizes["a4"]["width_mm"] == 210
        assert sizes["letter"]["height_mm"] == 279


@pytest.mark.asyncio
class TestLayoutEndpoint:
    async def test_quarter_turn(self, client):
        resp = await client.post("/v1/layout", json={
            "image": {"pixel_width": 1000, "pixel_height": 2000, "rotation_degrees": 90},
            "area": {"width_units": 190, "height_units": 277},
            "fit": "contain",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["draw_width"] == pytest.approx(190)
        assert data["draw_height"] == pytest.approx(95)
        assert data["offset_y"] == pytest.approx(91)

    async def test_invalid_rotation(self, client):
        resp = await client.post("/v1/layout", json={
            "image": {"pixel_width": 1000, "pixel_height": 2000, "rotation_degrees": 45},
            "area": {"width_units": 190, "height_units": 277},
        })
        assert resp.status_code == 422
        assert resp.json()["detail"]["error_code"] == "INVALID_ROTATION"

    async def test_invalid_dimensions(self, client):
        resp = await client.post("/v1/layout", json={
            "image": {"pixel_width": 0, "pixel_height": 2000},
            "area": {"width_units": 190, "height_units": 277},
        })
        assert resp.status_code == 422
        assert resp.json()["detail"]["error_code"] == "INVALID_DIMENSIONS"

    async def test_unknown_fit(self, client):
        resp = await client.post("/v1/layout", json={
            "image": {"pixel_width": 10, "pixel_height": 10},
            "area": {"width_units": 10, "height_units": 10},
            "fit": "stretch",
        })
        assert resp.status_code == 422


@pytest.mark.asyncio
class TestImagesToPdfEndpoint:
    async def test_layout_pdf(self, client, png_40x20):
        files = [
            ("images", ("a.png", png_40x20, "image/png")),
            ("images", ("b.png", png_40x20, "image/png")),
        ]
        resp = await client.post(
            "/v1/images-to-pdf",
            files=files,
            data={"orientation": "landscape", "fit": "cover", "page_numbers": "true", "rotations": ["0", "90"]},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "images-to-pdf_" in resp.headers["content-disposition"]
        assert len(resp.headers["X-Request-Id"]) == 12

        job = _job(resp)
        assert job["mode"] == "layout"
        assert [p["placement"]["rotation_degrees"] for p in job["pages"]] == [0, 90]

        doc = _pdf(resp)
        assert len(doc) == 2
        assert doc[0].rect.width == pytest.approx(mm_to_pt(297), abs=0.01)
        assert "Page 1 / 2" in doc[0].get_text()

    async def test_custom_size(self, client, png_40x20):
        resp = await client.post(
            "/v1/images-to-pdf",
            files=[("images", ("a.png", png_40x20, "image/png"))],
            data={"page_size": "custom", "custom_width_mm": "100", "custom_height_mm": "150", "margin_mm": "0"},
        )
        assert resp.status_code == 200
        page = _pdf(resp)[0]
        assert page.rect.width == pytest.approx(mm_to_pt(100), abs=0.01)
        assert page.rect.height == pytest.approx(mm_to_pt(150), abs=0.01)

    async def test_non_image_skipped(self, client, png_40x20):
        resp = await client.post("/v1/images-to-pdf", files=[
            ("images", ("a.png", png_40x20, "image/png")),
            ("images", ("notes.txt", b"hello", "text/plain")),
        ])
        assert resp.status_code == 200
        job = _job(resp)
        assert job["artifact"]["pages"] == 1
        assert any("notes.txt" in w for w in job["warnings"])

    async def test_bad_rotation_skips_one_image(self, client, png_40x20):
        resp = await client.post(
            "/v1/images-to-pdf",
            files=[
                ("images", ("a.png", png_40x20, "image/png")),
                ("images", ("b.png", png_40x20, "image/png")),
            ],
            data={"rotations": ["45", "0"]},
        )
        assert resp.status_code == 200
        job = _job(resp)
        assert [s["filename"] for s in job["skipped"]] == ["a.png"]
        assert len(_pdf(resp)) == 1

    async def test_rotation_count_mismatch(self, client, png_40x20):
        resp = await client.post(
            "/v1/images-to-pdf",
            files=[("images", ("a.png", png_40x20, "image/png"))],
            data={"rotations": ["0", "90"]},
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["error_code"] == "ROTATION_COUNT_MISMATCH"

    async def test_unknown_page_size(self, client, png_40x20):
        resp = await client.post(
            "/v1/images-to-pdf",
            files=[("images", ("a.png", png_40x20, "image/png"))],
            data={"page_size": "a3"},
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["error_code"] == "UNKNOWN_PAGE_SIZE"

    async def test_all_broken(self, client):
        resp = await client.post(
            "/v1/images-to-pdf",
            files=[("images", ("a.png", b"garbage", "image/png"))],
        )
        assert resp.status_code == 422
        assert resp.json()["detail"]["error_code"] == "NO_PAGES_RENDERED"


@pytest.mark.asyncio
class TestMakePdfEndpoint:
    async def test_native_pages(self, client, jpeg_300x200, make_image):
        tall = make_image(300, 200, "JPEG", exif_orientation=6)
        resp = await client.post("/make-pdf", files=[
            ("images", ("wide.jpg", jpeg_300x200, "image/jpeg")),
            ("images", ("tall.jpg", tall, "image/jpeg")),
        ])
        assert resp.status_code == 200
        assert resp.headers["content-disposition"] == 'attachment; filename="images.pdf"'
        doc = _pdf(resp)
        assert [(p.rect.width, p.rect.height) for p in doc] == [(300, 200), (200, 300)]

    async def test_no_files(self, client):
        resp = await client.post("/make-pdf")
        assert resp.status_code == 400
        assert resp.json()["detail"]["error_code"] == "NO_FILES"

    async def test_too_many_files(self, client, png_40x20):
        files = [
            ("images", (f"{i}.png", png_40x20, "image/png"))
            for i in range(settings.uploads.max_files + 1)
        ]
        resp = await client.post("/make-pdf", files=files)
        assert resp.status_code == 400
        assert resp.json()["detail"]["error_code"] == "TOO_MANY_FILES"

    async def test_file_too_large(self, client, monkeypatch, png_40x20):
        from imagebinder.core.config import UploadLimits
        import imagebinder.main as main_module

        tiny = UploadLimits(max_files=20, max_file_mb=0.00001)
        monkeypatch.setattr(main_module, "settings", type(settings)(
            host=settings.host, port=settings.port, debug=settings.debug,
            uploads=tiny, render=settings.render,
        ))
        resp = await client.post("/make-pdf", files=[("images", ("a.png", png_40x20, "image/png"))])
        assert resp.status_code == 413
        assert resp.json()["detail"]["error_code"] == "FILE_TOO_LARGE"
