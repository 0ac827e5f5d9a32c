"""
ImageBinder — Page settings and layout request/response contracts.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from imagebinder.layout.engine import FitPolicy, PlacementResult
from imagebinder.layout.page import Orientation


class PageSettings(BaseModel):
    """Layout-mode options chosen by the caller."""

    page_size: str = Field(default="a4", description="a4 | letter | custom")
    custom_width_mm: float | None = Field(default=None, description="Used when page_size=custom")
    custom_height_mm: float | None = Field(default=None, description="Used when page_size=custom")
    orientation: Orientation = Orientation.PORTRAIT
    fit: FitPolicy = FitPolicy.CONTAIN
    margin_mm: float = Field(default=10.0, description="Margin on every side; negatives clamp to 0")
    page_numbers: bool = False

    @field_validator("margin_mm")
    @classmethod
    def _clamp_margin(cls, v: float) -> float:
        return max(0.0, v)


class ImageDescriptorModel(BaseModel):
    pixel_width: int
    pixel_height: int
    rotation_degrees: int = 0


class PageAreaModel(BaseModel):
    width_units: float
    height_units: float


class LayoutRequest(BaseModel):
    image: ImageDescriptorModel
    area: PageAreaModel
    fit: FitPolicy = FitPolicy.CONTAIN


class PlacementModel(BaseModel):
    draw_width: float
    draw_height: float
    offset_x: float
    offset_y: float
    rotation_degrees: int
    scale: float

    @classmethod
    def from_result(cls, result: PlacementResult) -> PlacementModel:
        return cls(
            draw_width=result.draw_width,
            draw_height=result.draw_height,
            offset_x=result.offset_x,
            offset_y=result.offset_y,
            rotation_degrees=result.rotation_degrees,
            scale=result.scale,
        )


class PageSizeModel(BaseModel):
    name: str
    width_mm: float
    height_mm: float
