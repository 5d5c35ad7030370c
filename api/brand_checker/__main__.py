"""Entry point: serve the API with uvicorn.

Usage::

    python -m brand_checker
"""

import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run(
        "brand_checker.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
