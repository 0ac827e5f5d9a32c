"""
ImageBinder — Layout engine.

Computes where a (possibly rotated) image lands inside a page's
printable area:

  1. normalise the rotation into [0, 360)
  2. swap width/height for quarter turns (90 / 270)
  3. scale by min (contain) or max (cover) of the two axis ratios
  4. center the scaled box in the area

Pure and synchronous. The renderer applies the rotation itself, about
the center of the returned box.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from imagebinder.errors import InvalidDimensionsError, InvalidRotationError


class FitPolicy(str, enum.Enum):
    CONTAIN = "contain"  # whole image visible, may letterbox
    COVER = "cover"  # area fully filled, overflow cropped by caller


@dataclass(frozen=True)
class ImageDescriptor:
    pixel_width: int
    pixel_height: int
    rotation_degrees: int = 0


@dataclass(frozen=True)
class PageArea:
    """Printable region, in whatever physical unit the caller works in."""
    width_units: float
    height_units: float


@dataclass(frozen=True)
class PlacementResult:
    draw_width: float
    draw_height: float
    offset_x: float
    offset_y: float
    rotation_degrees: int
    scale: float
    image: ImageDescriptor


def normalize_rotation(rotation: int) -> int:
    """Fold any rotation into [0, 360); anything off the quarter turns is rejected."""
    if isinstance(rotation, bool) or not isinstance(rotation, (int, float)):
        raise InvalidRotationError(rotation)
    if not math.isfinite(rotation) or rotation != int(rotation):
        raise InvalidRotationError(rotation)
    normalized = ((int(rotation) % 360) + 360) % 360
    if normalized % 90 != 0:
        raise InvalidRotationError(rotation)
    return normalized


def effective_dimensions(image: ImageDescriptor) -> tuple[int, int]:
    """Bounding box of the image after its rotation is applied."""
    rotation = normalize_rotation(image.rotation_degrees)
    if rotation in (90, 270):
        return image.pixel_height, image.pixel_width
    return image.pixel_width, image.pixel_height


def _check_pixels(field: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidDimensionsError(field, value)


def _check_units(field: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDimensionsError(field, value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidDimensionsError(field, value)


def compute_placement(
    image: ImageDescriptor,
    area: PageArea,
    fit: FitPolicy = FitPolicy.CONTAIN,
) -> PlacementResult:
    """
    Scale and center `image` inside `area` under the given fit policy.

    Offsets are measured from the area's top-left corner; under COVER
    they go negative by half of the overflow on each clipped axis.
    Raises InvalidDimensionsError / InvalidRotationError on bad input.
    """
    _check_pixels("pixel_width", image.pixel_width)
    _check_pixels("pixel_height", image.pixel_height)
    _check_units("width_units", area.width_units)
    _check_units("height_units", area.height_units)

    rotation = normalize_rotation(image.rotation_degrees)
    eff_w, eff_h = effective_dimensions(image)

    scale_x = area.width_units / eff_w
    scale_y = area.height_units / eff_h
    if FitPolicy(fit) is FitPolicy.COVER:
        scale = max(scale_x, scale_y)
    else:
        scale = min(scale_x, scale_y)

    draw_w = eff_w * scale
    draw_h = eff_h * scale

    return PlacementResult(
        draw_width=draw_w,
        draw_height=draw_h,
        offset_x=(area.width_units - draw_w) / 2,
        offset_y=(area.height_units - draw_h) / 2,
        rotation_degrees=rotation,
        scale=scale,
        image=image,
    )
