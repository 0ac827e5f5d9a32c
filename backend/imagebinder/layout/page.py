"""
ImageBinder — Page geometry.

Page-size presets, orientation, margins and unit conversion. Everything
here works in millimeters until the PDF writer needs points.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from imagebinder.errors import UnknownPageSizeError
from imagebinder.layout.engine import PageArea

MM_PER_INCH = 25.4
PT_PER_INCH = 72.0

DEFAULT_WIDTH_MM = 210.0
DEFAULT_HEIGHT_MM = 297.0


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


@dataclass(frozen=True)
class PageSize:
    name: str
    width_mm: float
    height_mm: float


PRESETS: dict[str, PageSize] = {
    "a4": PageSize(name="a4", width_mm=210.0, height_mm=297.0),
    "letter": PageSize(name="letter", width_mm=216.0, height_mm=279.0),
}

CUSTOM = "custom"


def _positive_or(value: float | None, fallback: float) -> float:
    if value is None or value <= 0:
        return fallback
    return float(value)


def resolve_page_size(
    name: str,
    custom_width_mm: float | None = None,
    custom_height_mm: float | None = None,
) -> PageSize:
    """Look up a preset, or build a custom size (missing sides fall back to A4)."""
    key = (name or "").strip().lower()
    if key == CUSTOM:
        return PageSize(
            name=CUSTOM,
            width_mm=_positive_or(custom_width_mm, DEFAULT_WIDTH_MM),
            height_mm=_positive_or(custom_height_mm, DEFAULT_HEIGHT_MM),
        )
    if key not in PRESETS:
        raise UnknownPageSizeError(name, [*PRESETS, CUSTOM])
    return PRESETS[key]


def list_page_sizes() -> list[PageSize]:
    return list(PRESETS.values())


def orient(size: PageSize, orientation: Orientation | str) -> tuple[float, float]:
    """Return (width, height) with the long side vertical (portrait) or horizontal (landscape)."""
    short, long_ = sorted((size.width_mm, size.height_mm))
    if Orientation(orientation) is Orientation.LANDSCAPE:
        return long_, short
    return short, long_


def printable_area(width_mm: float, height_mm: float, margin_mm: float) -> PageArea:
    """Page minus margins on all four sides, never thinner than 1mm."""
    margin = max(0.0, margin_mm)
    return PageArea(
        width_units=max(1.0, width_mm - 2 * margin),
        height_units=max(1.0, height_mm - 2 * margin),
    )


def mm_to_pt(mm: float) -> float:
    return mm * PT_PER_INCH / MM_PER_INCH


def mm_to_px(mm: float, dpi: int) -> int:
    return max(1, round(mm * dpi / MM_PER_INCH))
