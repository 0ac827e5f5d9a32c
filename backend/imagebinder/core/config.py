"""
ImageBinder — Backend Configuration
Loads .env automatically, then reads all settings from environment variables.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass(frozen=True)
class UploadLimits:
    """Per-request upload limits."""
    max_files: int
    max_file_mb: float

    @property
    def max_file_bytes(self) -> int:
        return int(self.max_file_mb * 1024 * 1024)


@dataclass(frozen=True)
class RenderConfig:
    """Raster and encoding settings for page rendering."""
    native_jpeg_quality: int
    layout_jpeg_quality: int
    raster_dpi: int
    default_margin_mm: float


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""
    host: str
    port: int
    debug: bool
    uploads: UploadLimits
    render: RenderConfig


def _load_config() -> AppConfig:
    return AppConfig(
        host=os.getenv("APP_HOST", "0.0.0.0"),
        port=int(os.getenv("APP_PORT", "3000")),
        debug=os.getenv("APP_DEBUG", "false").lower() == "true",
        uploads=UploadLimits(
            max_files=int(os.getenv("MAX_UPLOAD_FILES", "20")),
            max_file_mb=float(os.getenv("MAX_UPLOAD_MB", "30")),
        ),
        render=RenderConfig(
            native_jpeg_quality=int(os.getenv("NATIVE_JPEG_QUALITY", "85")),
            layout_jpeg_quality=int(os.getenv("LAYOUT_JPEG_QUALITY", "92")),
            raster_dpi=int(os.getenv("RASTER_DPI", "96")),
            default_margin_mm=float(os.getenv("DEFAULT_MARGIN_MM", "10")),
        ),
    )


def _validate_config(cfg: AppConfig) -> None:
    """Fail fast on values the renderer cannot work with."""
    problems: list[str] = []
    if cfg.uploads.max_files < 1:
        problems.append("MAX_UPLOAD_FILES must be >= 1")
    if cfg.uploads.max_file_mb <= 0:
        problems.append("MAX_UPLOAD_MB must be > 0")
    for name, quality in (
        ("NATIVE_JPEG_QUALITY", cfg.render.native_jpeg_quality),
        ("LAYOUT_JPEG_QUALITY", cfg.render.layout_jpeg_quality),
    ):
        if not 1 <= quality <= 95:
            problems.append(f"{name} must be between 1 and 95")
    if cfg.render.raster_dpi < 1:
        problems.append("RASTER_DPI must be >= 1")
    if cfg.render.default_margin_mm < 0:
        problems.append("DEFAULT_MARGIN_MM must be >= 0")
    if problems:
        print(
            f"\n  ERROR: Invalid configuration: {'; '.join(problems)}\n"
            f"  Check backend/.env or the process environment.\n",
            file=sys.stderr,
        )
        sys.exit(1)


settings = _load_config()
_validate_config(settings)
