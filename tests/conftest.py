"""Shared test configuration and fixtures for the ImageBinder test suite."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)


def _encode(img: Image.Image, fmt: str, **save_kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture
def make_image():
    """Factory: encoded image bytes of a given size, format and mode."""

    def _make(
        width: int = 40,
        height: int = 20,
        fmt: str = "PNG",
        mode: str = "RGB",
        color=(200, 30, 30),
        exif_orientation: int | None = None,
    ) -> bytes:
        img = Image.new(mode, (width, height), color)
        kwargs = {}
        if exif_orientation is not None:
            exif = img.getexif()
            exif[0x0112] = exif_orientation
            kwargs["exif"] = exif
        return _encode(img, fmt, **kwargs)

    return _make


@pytest.fixture
def png_40x20(make_image):
    return make_image(40, 20, "PNG")


@pytest.fixture
def jpeg_300x200(make_image):
    return make_image(300, 200, "JPEG")
