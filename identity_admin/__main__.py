"""Entrypoint for ``python -m identity_admin``."""

from __future__ import annotations

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    # A failed lifespan (bad config, unreachable store, bootstrap conflict) makes
    # uvicorn exit with a non-zero status instead of serving.
    uvicorn.run(
        "identity_admin.main:app",
        host=settings.http_host,
        port=settings.http_port,
        lifespan="on",
    )


if __name__ == "__main__":
    main()
