"""
ImageBinder — PDF builder.

Places decoded images on PDF pages with pymupdf (fitz). Two page styles:

  layout — fixed page size with margins; the image is rotated, scaled
           and centered by the layout engine, rasterised onto a white
           canvas the size of the printable area (clipping under cover)
           and inserted at (margin, margin).
  native — page sized exactly to the image (1 px = 1 pt), image over
           the full page.
"""

from __future__ import annotations

from datetime import datetime

from PIL import Image

from imagebinder.images.source import DecodedImage, encode_jpeg
from imagebinder.layout.engine import (
    FitPolicy,
    ImageDescriptor,
    PageArea,
    PlacementResult,
    compute_placement,
)
from imagebinder.layout.page import (
    mm_to_pt,
    mm_to_px,
    orient,
    printable_area,
    resolve_page_size,
)
from imagebinder.models.settings import PageSettings
from imagebinder.utils.logging import logger

NATIVE_FILENAME = "images.pdf"

PAGE_NUMBER_FONT_SIZE = 10
PAGE_NUMBER_GREY = 120 / 255
PAGE_NUMBER_BOTTOM_MM = 8.0


def layout_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    return f"images-to-pdf_{stamp}.pdf"


def rasterize_placement(
    image: Image.Image,
    placement: PlacementResult,
    canvas_size: tuple[int, int],
    px_per_unit: float,
) -> Image.Image:
    """Draw the rotated, scaled image onto a white canvas; overflow is clipped."""
    rotation = placement.rotation_degrees
    rotated = image.rotate(-rotation, expand=True) if rotation else image

    draw_w = max(1, round(placement.draw_width * px_per_unit))
    draw_h = max(1, round(placement.draw_height * px_per_unit))
    left = round(placement.offset_x * px_per_unit)
    top = round(placement.offset_y * px_per_unit)

    canvas = Image.new("RGB", canvas_size, (255, 255, 255))

    # Only the part of the scaled image that lands on the canvas is resampled.
    x0, x1 = max(0, -left), min(draw_w, canvas_size[0] - left)
    y0, y1 = max(0, -top), min(draw_h, canvas_size[1] - top)
    if x1 <= x0 or y1 <= y0:
        return canvas

    sx = rotated.width / draw_w
    sy = rotated.height / draw_h
    visible = rotated.resize(
        (x1 - x0, y1 - y0),
        Image.Resampling.LANCZOS,
        box=(x0 * sx, y0 * sy, x1 * sx, y1 * sy),
    )
    canvas.paste(visible, (left + x0, top + y0))
    return canvas


class PDFBuilder:
    """Accumulates pages into one in-memory pymupdf document."""

    def __init__(self, raster_dpi: int = 96, layout_quality: int = 92, native_quality: int = 85):
        try:
            import fitz
        except ImportError:
            raise RuntimeError("pymupdf is required for PDF output. pip install pymupdf")

        self._fitz = fitz
        self.doc = fitz.open()
        self.raster_dpi = raster_dpi
        self.layout_quality = layout_quality
        self.native_quality = native_quality

    def __enter__(self) -> PDFBuilder:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def page_count(self) -> int:
        return len(self.doc)

    def add_layout_page(
        self,
        decoded: DecodedImage,
        settings: PageSettings,
    ) -> PlacementResult:
        """
        Add one fixed-size page holding `decoded` placed per `settings`.

        The placement is computed before the page is created, so an
        engine error leaves the document untouched.
        """
        size = resolve_page_size(
            settings.page_size, settings.custom_width_mm, settings.custom_height_mm,
        )
        page_w_mm, page_h_mm = orient(size, settings.orientation)
        area = printable_area(page_w_mm, page_h_mm, settings.margin_mm)

        placement = compute_placement(decoded.descriptor, area, settings.fit)

        canvas_size = (
            mm_to_px(area.width_units, self.raster_dpi),
            mm_to_px(area.height_units, self.raster_dpi),
        )
        canvas = rasterize_placement(
            decoded.image, placement, canvas_size, self.raster_dpi / 25.4,
        )
        jpeg = encode_jpeg(canvas, self.layout_quality)

        page = self.doc.new_page(width=mm_to_pt(page_w_mm), height=mm_to_pt(page_h_mm))
        margin = mm_to_pt(settings.margin_mm)
        rect = self._fitz.Rect(
            margin,
            margin,
            margin + mm_to_pt(area.width_units),
            margin + mm_to_pt(area.height_units),
        )
        page.insert_image(rect, stream=jpeg, keep_proportion=False)

        logger.info(
            "  Page %d: %s → %.1f×%.1fmm at (%.1f, %.1f) rot=%d fit=%s",
            self.page_count, decoded.filename,
            placement.draw_width, placement.draw_height,
            placement.offset_x, placement.offset_y,
            placement.rotation_degrees, FitPolicy(settings.fit).value,
        )
        return placement

    def add_native_page(self, decoded: DecodedImage) -> PlacementResult:
        """Add a page exactly the image's pixel size, in points."""
        desc = decoded.descriptor
        upright = ImageDescriptor(pixel_width=desc.pixel_width, pixel_height=desc.pixel_height)
        area = PageArea(width_units=float(desc.pixel_width), height_units=float(desc.pixel_height))
        placement = compute_placement(upright, area, FitPolicy.CONTAIN)

        jpeg = encode_jpeg(decoded.image, self.native_quality)

        page = self.doc.new_page(width=area.width_units, height=area.height_units)
        rect = self._fitz.Rect(
            placement.offset_x,
            placement.offset_y,
            placement.offset_x + placement.draw_width,
            placement.offset_y + placement.draw_height,
        )
        page.insert_image(rect, stream=jpeg, keep_proportion=False)

        logger.info(
            "  Page %d: %s → %d×%dpt (%d bytes)",
            self.page_count, decoded.filename, desc.pixel_width, desc.pixel_height, len(jpeg),
        )
        return placement

    def stamp_page_numbers(self) -> None:
        """Write 'Page p / n' centered near the bottom edge of every page."""
        total = len(self.doc)
        for number, page in enumerate(self.doc, start=1):
            text = f"Page {number} / {total}"
            text_w = self._fitz.get_text_length(
                text, fontname="helv", fontsize=PAGE_NUMBER_FONT_SIZE,
            )
            x = (page.rect.width - text_w) / 2
            y = page.rect.height - mm_to_pt(PAGE_NUMBER_BOTTOM_MM)
            page.insert_text(
                (x, y),
                text,
                fontsize=PAGE_NUMBER_FONT_SIZE,
                fontname="helv",
                color=(PAGE_NUMBER_GREY,) * 3,
            )

    def set_title(self, title: str) -> None:
        self.doc.set_metadata({"title": title, "creator": "ImageBinder", "producer": "ImageBinder"})

    def tobytes(self) -> bytes:
        return self.doc.tobytes()

    def close(self) -> None:
        if not self.doc.is_closed:
            self.doc.close()
