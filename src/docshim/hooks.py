"""Host-facing hooks tying the transpiler, build session and exporter together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, MutableMapping

from docshim.config import PluginConfig
from docshim.index.exporter import IndexExporter
from docshim.index.session import BuildSession
from docshim.transform import Transpiler
from docshim.transform.rules import format_text, render_formatted_code

LOGGER = logging.getLogger(__name__)


def _get_field(page: Any, name: str) -> Any:
    if isinstance(page, MutableMapping):
        return page.get(name)
    return getattr(page, name, None)


def _set_content(page: Any, content: str) -> None:
    if isinstance(page, MutableMapping):
        page["content"] = content
    else:
        page.content = content


def _resolve_output_root(context: Any) -> Path:
    """Accept a path, or a build context exposing ``root()``, ``output.root()`` or ``output_root``."""
    if isinstance(context, (str, Path)):
        return Path(context)
    root = getattr(context, "root", None)
    if callable(root):
        return Path(root())
    output_root_fn = getattr(getattr(context, "output", None), "root", None)
    if callable(output_root_fn):
        return Path(output_root_fn())
    output_root = getattr(context, "output_root", None)
    if output_root is None:
        raise TypeError(f"Cannot determine output root from {context!r}")
    return Path(output_root)


class ShorthandPlugin:
    """Plugin object handed to the documentation generator.

    The host calls :meth:`on_build_init` once, :meth:`on_before_page_render`
    for every page, then :meth:`on_build_finish` once after the last page.
    Pages may be :class:`docshim.models.Page` instances, any object with
    ``path``/``title``/``content`` attributes, or plain dicts.
    """

    def __init__(self, config: PluginConfig | None = None) -> None:
        self.config = config or PluginConfig()
        self.session = BuildSession()
        self.transpiler = Transpiler(self.config)
        self.exporter = IndexExporter(self.config)

    @property
    def hooks(self) -> Dict[str, Callable[..., Any]]:
        return {
            "init": self.on_build_init,
            "page:before": self.on_before_page_render,
            "finish": self.on_build_finish,
        }

    @property
    def blocks(self) -> Dict[str, Callable[[str], str]]:
        return {"formatted-code": render_formatted_code}

    @property
    def filters(self) -> Dict[str, Callable[..., str]]:
        return {"format-text": format_text}

    @property
    def book(self) -> Dict[str, Any]:
        return {
            "assets": f"./{self.config.assets_dir}",
            "js": list(self.config.extra_js),
            "css": list(self.config.extra_css),
        }

    def on_build_init(self) -> None:
        self.session.reset()
        LOGGER.debug("Build session reset")

    def on_before_page_render(self, page: Any) -> Any:
        path = _get_field(page, "path") or ""
        raw = _get_field(page, "content") or ""
        if hasattr(page, "raw_content") and getattr(page, "raw_content") is None:
            page.raw_content = raw

        result = self.transpiler.run(raw, path)
        if not result.ok:
            LOGGER.error(
                "Error processing page %s at stage %s, keeping partial output",
                path or "<unknown>",
                result.failed_stage,
            )
        _set_content(page, result.content)
        self.session.record(path, _get_field(page, "title"), result.content)
        return page

    def on_build_finish(self, context: Any) -> Path:
        output_root = _resolve_output_root(context)
        artifact = self.exporter.export(self.session, output_root)
        self.exporter.copy_assets(output_root)
        LOGGER.info("[docshim] Done.")
        return artifact
