"""Integration tests for the conversion job orchestrator."""

import fitz
import pytest
from PIL import Image

from imagebinder.errors import NoPagesRenderedError, UnknownPageSizeError
from imagebinder.layout.page import mm_to_pt
from imagebinder.models.job import ConversionMode, JobState
from imagebinder.models.settings import PageSettings
from imagebinder.pipeline.collection import ImageCollection
from imagebinder.pipeline.convert import ConversionJob


def _collection(*items):
    c = ImageCollection()
    for name, data in items:
        c = c.add(name, data, "image/png")
    return c


class TestConversionJob:
    def test_init(self, png_40x20):
        job = ConversionJob(_collection(("a.png", png_40x20)))
        assert job.state == JobState.RECEIVED
        assert job.mode is ConversionMode.LAYOUT
        assert len(job.job_id) == 12

    async def test_layout_conversion(self, png_40x20):
        c = _collection(("a.png", png_40x20), ("b.png", png_40x20))
        c = c.rotate_right(c.ids[1])
        job = ConversionJob(c, page_settings=PageSettings(page_numbers=True))
        result = await job.run()

        assert job.state == JobState.DELIVERED
        assert result.artifact.pages == 2
        assert result.artifact.filename.startswith("images-to-pdf_")
        assert [p.filename for p in result.pages] == ["a.png", "b.png"]
        assert result.pages[1].placement.rotation_degrees == 90
        assert result.skipped == []
        assert result.warnings == []
        assert [t.step for t in result.timings] == ["decode", "render", "verify"]

        doc = fitz.open(stream=job.ctx.pdf, filetype="pdf")
        assert doc[0].rect.width == pytest.approx(mm_to_pt(210), abs=0.01)
        assert "Page 2 / 2" in doc[1].get_text()

    async def test_native_conversion(self, jpeg_300x200):
        job = ConversionJob(_collection(("x.jpg", jpeg_300x200)), mode="native")
        result = await job.run()
        assert result.mode is ConversionMode.NATIVE
        assert result.artifact.filename == "images.pdf"
        assert result.artifact.page_sizes == [(300, 200)]

    async def test_bad_image_is_skipped(self, png_40x20):
        c = _collection(("good.png", png_40x20), ("bad.png", b"not an image"), ("good2.png", png_40x20))
        result = await ConversionJob(c).run()
        assert result.artifact.pages == 2
        assert [s.filename for s in result.skipped] == ["bad.png"]
        assert result.skipped[0].error_code == "IMAGE_DECODE_FAILED"
        assert any("bad.png" in w for w in result.warnings)

    async def test_oversized_image_is_skipped(self, monkeypatch, make_image):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 150)
        c = _collection(("big.png", make_image(40, 20)), ("small.png", make_image(10, 10)))
        job = ConversionJob(c, mode=ConversionMode.NATIVE)
        result = await job.run()
        assert job.state == JobState.DELIVERED
        assert [s.filename for s in result.skipped] == ["big.png"]
        assert result.skipped[0].error_code == "IMAGE_DECODE_FAILED"
        assert result.artifact.pages == 1

    async def test_thin_image_under_cover(self, make_image):
        c = _collection(("thin.png", make_image(1, 4000)), ("a.png", make_image(40, 20)))
        result = await ConversionJob(c, page_settings=PageSettings(fit="cover")).run()
        assert result.skipped == []
        assert result.artifact.pages == 2

    async def test_bad_rotation_is_skipped(self, png_40x20):
        c = _collection(("a.png", png_40x20), ("b.png", png_40x20))
        c = c.set_rotation(c.ids[0], 45)
        result = await ConversionJob(c).run()
        assert [p.filename for p in result.pages] == ["b.png"]
        assert result.pages[0].page == 1
        assert result.skipped[0].error_code == "INVALID_ROTATION"

    async def test_native_mode_ignores_rotation(self, jpeg_300x200):
        c = _collection(("x.jpg", jpeg_300x200))
        c = c.set_rotation(c.ids[0], 45)
        result = await ConversionJob(c, mode=ConversionMode.NATIVE).run()
        assert result.artifact.pages == 1

    async def test_nothing_placeable(self):
        job = ConversionJob(_collection(("bad.png", b"nope")))
        with pytest.raises(NoPagesRenderedError) as exc:
            await job.run()
        assert exc.value.detail == ["bad.png"]
        assert job.state == JobState.FAILED

    async def test_unknown_page_size_fails_whole_job(self, png_40x20):
        job = ConversionJob(_collection(("a.png", png_40x20)), page_settings=PageSettings(page_size="a3"))
        with pytest.raises(UnknownPageSizeError):
            await job.run()
        assert job.state == JobState.FAILED

    async def test_page_size_resolved_once_per_mode(self, png_40x20):
        layout = ConversionJob(_collection(("a.png", png_40x20)), page_settings=PageSettings(orientation="landscape"))
        await layout.run()
        assert layout.ctx.page_size_pt == pytest.approx((mm_to_pt(297), mm_to_pt(210)))

        native = ConversionJob(_collection(("a.png", png_40x20)), mode=ConversionMode.NATIVE)
        await native.run()
        assert native.ctx.page_size_pt is None

    async def test_verify_disabled(self, png_40x20):
        result = await ConversionJob(_collection(("a.png", png_40x20)), verify=False).run()
        assert result.timings[-1].status == "skipped"
        assert result.artifact.pages == 1
        assert len(result.artifact.content_hash) == 64

    async def test_placements_follow_current_collection(self, png_40x20):
        c = _collection(("a.png", png_40x20))
        first = await ConversionJob(c).run()
        second = await ConversionJob(c.rotate_right(c.ids[0])).run()
        assert first.pages[0].placement.draw_width != second.pages[0].placement.draw_width
