import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import FileResponse, Response

from .settings import API_BASE_URL, PUBLIC_DIR

logger = logging.getLogger(__name__)


def resolve_public_file(public_dir: Path, requested: str) -> Optional[Path]:
    relative = requested.strip("/") or "index.html"
    root = public_dir.resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    if not candidate.is_file():
        return None
    return candidate


def create_site_app(public_dir: Path = PUBLIC_DIR, api_base_url: str = API_BASE_URL) -> FastAPI:
    site = FastAPI(title="Jungle 404 Demo Site", docs_url=None, redoc_url=None, openapi_url=None)

    @site.get("/jungle404-config.js")
    def widget_config() -> Response:
        script = f"window.JUNGLE404_API = {json.dumps(api_base_url)};\n"
        return Response(content=script, media_type="application/javascript")

    @site.get("/{requested:path}")
    def serve_public(requested: str) -> Response:
        path = resolve_public_file(public_dir, requested)
        if path is None:
            logger.debug("No public file for /%s, serving 404 page", requested)
            return FileResponse(public_dir / "404.html", status_code=404)
        return FileResponse(path)

    return site


site_app = create_site_app()
