"""Packaged widget assets served by the preview server."""

from __future__ import annotations

from importlib.resources import files

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

router = APIRouter()

MEDIA_TYPES = {
    ".js": "application/javascript",
    ".css": "text/css",
}


def _load_asset(name: str) -> str:
    asset = files("docshim.web").joinpath("static", name)
    return asset.read_text(encoding="utf-8")


@router.get("/_docshim/{name}")
async def widget_asset(name: str) -> Response:
    suffix = name[name.rfind(".") :] if "." in name else ""
    media_type = MEDIA_TYPES.get(suffix)
    if media_type is None or "/" in name:
        raise HTTPException(status_code=404, detail=f"Unknown asset: {name}")
    try:
        content = _load_asset(name)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown asset: {name}")
    return Response(content=content, media_type=media_type)
