"""
ImageBinder — API server entry point.
"""

import uvicorn

from imagebinder.core.config import settings


def run() -> None:
    uvicorn.run(
        "imagebinder.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
