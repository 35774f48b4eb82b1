"""Static server for the rendered artifacts (gzip-compressed)."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles


def create_app(public_dir: Path | str = "public") -> FastAPI:
    """Serve *public_dir* at ``/`` with ``index.html`` as the directory index."""
    public_dir = Path(public_dir)
    public_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="vote-spine", docs_url=None, redoc_url=None, openapi_url=None)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")
    return app
