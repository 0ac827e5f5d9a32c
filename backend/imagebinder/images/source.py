"""
ImageBinder — Image source.

Filters uploads against the image allowlist and decodes bytes with
Pillow: EXIF auto-rotation, first frame only, alpha flattened onto
white, RGB out.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import PurePath

from PIL import Image, ImageOps, UnidentifiedImageError

from imagebinder.errors import ImageDecodeError
from imagebinder.layout.engine import ImageDescriptor

ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "gif", "bmp"})


@dataclass
class DecodedImage:
    filename: str
    descriptor: ImageDescriptor
    image: Image.Image


def is_allowed_upload(filename: str | None, content_type: str | None) -> bool:
    """Accept anything typed image/*, otherwise fall back to the extension."""
    if content_type and content_type.lower().startswith("image/"):
        return True
    ext = PurePath(filename or "").suffix.lstrip(".").lower()
    return ext in ALLOWED_EXTENSIONS


def _has_transparency(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )


def _flatten_alpha(img: Image.Image) -> Image.Image:
    rgba = img.convert("RGBA")
    base = Image.new("RGB", rgba.size, (255, 255, 255))
    base.paste(rgba, mask=rgba.getchannel("A"))
    return base


def decode_image(content: bytes, filename: str = "image", rotation: int = 0) -> DecodedImage:
    """
    Decode raw upload bytes into an RGB image plus its descriptor.

    `rotation` is the caller's extra turn; the EXIF orientation is
    already baked into the pixels.
    """
    try:
        with Image.open(io.BytesIO(content)) as src:
            src.seek(0)
            img = ImageOps.exif_transpose(src)
            img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageDecodeError(filename, str(exc)) from exc

    if _has_transparency(img):
        img = _flatten_alpha(img)
    elif img.mode != "RGB":
        img = img.convert("RGB")

    width, height = img.size
    return DecodedImage(
        filename=filename,
        descriptor=ImageDescriptor(
            pixel_width=width,
            pixel_height=height,
            rotation_degrees=rotation,
        ),
        image=img,
    )


def encode_jpeg(img: Image.Image, quality: int = 85) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
