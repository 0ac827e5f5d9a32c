"""
ImageBinder — Conversion job orchestrator.

Runs one image collection → PDF conversion as a state machine:

  RECEIVED → DECODED → RENDERED → VERIFIED → DELIVERED

Each step is timed, logged, and recorded in the ConversionResult. A
failure that belongs to a single image (undecodable bytes, bad rotation,
bad dimensions) skips that image and the batch carries on.
"""

from __future__ import annotations

import hashlib
import time
import uuid

from imagebinder.core.config import RenderConfig, settings
from imagebinder.errors import ImageBinderError, NoPagesRenderedError
from imagebinder.images.source import DecodedImage, decode_image
from imagebinder.layout.page import mm_to_pt, orient, resolve_page_size
from imagebinder.models.job import (
    ArtifactMetadata,
    ConversionMode,
    ConversionResult,
    JobState,
    PageRecord,
    SkippedImage,
    StepTiming,
)
from imagebinder.models.settings import PageSettings, PlacementModel
from imagebinder.pdf.builder import NATIVE_FILENAME, PDFBuilder, layout_filename
from imagebinder.pdf.verify import PDFVerifier, VerifyExpectations
from imagebinder.pipeline.collection import ImageCollection, ImageEntry
from imagebinder.utils.logging import logger


class ConversionContext:
    """Mutable context passed through conversion steps."""

    def __init__(self):
        self.decoded: list[tuple[ImageEntry, DecodedImage]] = []
        self.pages: list[PageRecord] = []
        self.skipped: list[SkippedImage] = []
        self.pdf: bytes = b""
        self.filename: str = ""
        self.artifact: ArtifactMetadata | None = None
        self.warnings: list[str] = []
        self.page_size_pt: tuple[float, float] | None = None


class ConversionJob:
    """
    State-machine orchestrator for one images → PDF conversion.

    Placements are derived from the collection's current entries each
    time the job runs; nothing is cached on the entries.
    """

    def __init__(
        self,
        collection: ImageCollection,
        mode: ConversionMode = ConversionMode.LAYOUT,
        page_settings: PageSettings | None = None,
        render: RenderConfig | None = None,
        verify: bool = True,
    ):
        self.job_id = uuid.uuid4().hex[:12]
        self.collection = collection
        self.mode = ConversionMode(mode)
        self.page_settings = page_settings or PageSettings(
            margin_mm=settings.render.default_margin_mm,
        )
        self.render = render or settings.render
        self.verify = verify
        self.state = JobState.RECEIVED
        self.ctx = ConversionContext()
        self.timings: list[StepTiming] = []

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        symbol = "✓" if status == "ok" else ("⊘" if status == "skipped" else "✗")
        logger.info("  %s %s — %dms %s", symbol, name, ms, detail)

    def _skip(self, entry: ImageEntry, exc: ImageBinderError) -> None:
        logger.warning("[%s] Skipping %s: %s", self.job_id, entry.filename, exc.code)
        self.ctx.skipped.append(SkippedImage(
            entry_id=entry.id,
            filename=entry.filename,
            error_code=exc.code,
            message=exc.message,
        ))
        self.ctx.warnings.append(f"{entry.filename}: {exc.message}")

    async def run(self) -> ConversionResult:
        """Execute the full conversion. Returns a complete ConversionResult."""
        logger.info("=" * 60)
        logger.info(
            "[%s] Conversion starting (mode=%s, images=%d)",
            self.job_id, self.mode.value, len(self.collection),
        )
        logger.info("=" * 60)
        started = time.perf_counter()

        try:
            self.ctx.page_size_pt = self._resolve_page_size_pt()
            await self._step_decode()
            await self._step_render()
            await self._step_verify()
            self.state = JobState.DELIVERED
        except Exception:
            self.state = JobState.FAILED
            raise

        total_ms = int((time.perf_counter() - started) * 1000)
        logger.info("=" * 60)
        logger.info(
            "[%s] Conversion complete — %d bytes, %d pages, %d skipped, %dms",
            self.job_id, len(self.ctx.pdf), len(self.ctx.pages), len(self.ctx.skipped), total_ms,
        )
        logger.info("=" * 60)

        return ConversionResult(
            job_id=self.job_id,
            mode=self.mode,
            artifact=self.ctx.artifact,
            pages=self.ctx.pages,
            skipped=self.ctx.skipped,
            timings=self.timings,
            warnings=self.ctx.warnings,
        )

    async def _step_decode(self):
        t = time.perf_counter()
        for entry in self.collection:
            rotation = entry.rotation if self.mode is ConversionMode.LAYOUT else 0
            try:
                decoded = decode_image(entry.content, entry.filename, rotation=rotation)
            except ImageBinderError as exc:
                self._skip(entry, exc)
                continue
            self.ctx.decoded.append((entry, decoded))

        self.state = JobState.DECODED
        self._record_step(
            "decode", t,
            detail=f"{len(self.ctx.decoded)}/{len(self.collection)} images",
        )

    async def _step_render(self):
        t = time.perf_counter()
        with PDFBuilder(
            raster_dpi=self.render.raster_dpi,
            layout_quality=self.render.layout_jpeg_quality,
            native_quality=self.render.native_jpeg_quality,
        ) as builder:
            for entry, decoded in self.ctx.decoded:
                try:
                    if self.mode is ConversionMode.LAYOUT:
                        placement = builder.add_layout_page(decoded, self.page_settings)
                    else:
                        placement = builder.add_native_page(decoded)
                except ImageBinderError as exc:
                    self._skip(entry, exc)
                    continue
                self.ctx.pages.append(PageRecord(
                    page=builder.page_count,
                    entry_id=entry.id,
                    filename=entry.filename,
                    placement=PlacementModel.from_result(placement),
                ))

            if builder.page_count == 0:
                self._record_step("render", t, "failed", "no pages")
                raise NoPagesRenderedError([s.filename for s in self.ctx.skipped])

            if self.mode is ConversionMode.LAYOUT and self.page_settings.page_numbers:
                builder.stamp_page_numbers()

            if self.mode is ConversionMode.LAYOUT:
                self.ctx.filename = layout_filename()
            else:
                self.ctx.filename = NATIVE_FILENAME
            builder.set_title(self.ctx.filename)
            self.ctx.pdf = builder.tobytes()

        self.state = JobState.RENDERED
        self._record_step("render", t, detail=f"{len(self.ctx.pages)} pages → {len(self.ctx.pdf)} bytes")

    def _resolve_page_size_pt(self) -> tuple[float, float] | None:
        if self.mode is not ConversionMode.LAYOUT:
            return None
        ps = self.page_settings
        size = resolve_page_size(ps.page_size, ps.custom_width_mm, ps.custom_height_mm)
        width_mm, height_mm = orient(size, ps.orientation)
        return mm_to_pt(width_mm), mm_to_pt(height_mm)

    async def _step_verify(self):
        t = time.perf_counter()
        if not self.verify:
            self.ctx.artifact = ArtifactMetadata(
                filename=self.ctx.filename,
                size_bytes=len(self.ctx.pdf),
                pages=len(self.ctx.pages),
                content_hash=hashlib.sha256(self.ctx.pdf).hexdigest(),
            )
            self._record_step("verify", t, "skipped", "disabled")
            return

        expectations = VerifyExpectations(
            expected_pages=len(self.ctx.pages),
            page_size_pt=self.ctx.page_size_pt,
            page_numbers=self.mode is ConversionMode.LAYOUT and self.page_settings.page_numbers,
        )
        report = PDFVerifier().verify(self.ctx.pdf, expectations)
        if not report.passed:
            self.ctx.warnings.append(f"Verification failed: {', '.join(report.failures)}")

        self.ctx.artifact = PDFVerifier.artifact(report, self.ctx.pdf, self.ctx.filename)
        self.state = JobState.VERIFIED
        self._record_step(
            "verify", t,
            status="ok" if report.passed else "failed",
            detail=f"{sum(report.checks.values())}/{len(report.checks)} checks",
        )
