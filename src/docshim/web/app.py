"""FastAPI preview server for a built site."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from fastapi import FastAPI, HTTPException, Query
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from docshim.config import PluginConfig
from docshim.errors import ArtifactError
from docshim.index.search import DEFAULT_LIMIT, SearchIndex, base_path, page_href
from docshim.web.frontend import router as frontend_router

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 50


class SearchHit(BaseModel):
    path: str
    title: str
    href: str


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHit]


def _load_index(artifact: Path) -> SearchIndex:
    try:
        return SearchIndex.load(artifact)
    except ArtifactError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def create_app(site_dir: Path, config: PluginConfig | None = None) -> FastAPI:
    """Serve ``site_dir`` as static files plus a JSON search endpoint.

    The index is loaded lazily on the first query and reused afterwards.
    """
    config = config or PluginConfig()
    site_dir = Path(site_dir)
    artifact = config.resolve_index_path(site_dir)
    cache: dict[str, SearchIndex] = {}

    app = FastAPI(title="docshim preview", version="0.1.0")
    app.include_router(frontend_router)

    @app.get("/api/search", response_model=SearchResponse)
    async def search_pages(
        q: str = Query("", description="Query text"),
        limit: int = Query(DEFAULT_LIMIT, description="Per-field result cap"),
        page: str = Query("/index.html", description="URL path of the page issuing the query"),
    ) -> SearchResponse:
        query = q.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Empty query")

        if "index" not in cache:
            cache["index"] = _load_index(artifact)
        limit = max(1, min(limit, MAX_LIMIT))
        base = base_path(page)
        hits = [
            SearchHit(path=item.path, title=item.title, href=page_href(item.path, base))
            for item in cache["index"].query(query, limit=limit)
        ]
        return SearchResponse(query=query, results=hits)

    @app.post("/api/reload")
    async def reload_index() -> dict[str, int]:
        cache["index"] = _load_index(artifact)
        LOGGER.info("Reloaded search index from %s", artifact)
        return {"pages": len(cache["index"])}

    if site_dir.is_dir():
        app.mount("/", StaticFiles(directory=site_dir, html=True), name="site")
    else:
        LOGGER.warning("Site directory %s does not exist; serving API only", site_dir)
    return app
