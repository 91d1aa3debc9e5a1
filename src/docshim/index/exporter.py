"""End-of-build export of the search artifact."""

from __future__ import annotations

import json
import logging
import shutil
from importlib.resources import as_file, files
from pathlib import Path

from docshim.config import PluginConfig
from docshim.index.session import BuildSession
from docshim.utils.files import atomic_write_text

LOGGER = logging.getLogger(__name__)

ASSET_PACKAGE = "docshim.web"


def asset_resource(name: str):
    return files(ASSET_PACKAGE).joinpath("static", name)


class IndexExporter:
    """Serialises a build session to ``<assets>/search_pages.json``.

    Filesystem errors propagate: a missing artifact silently disables search
    in the browser, so a failed export must fail the build step.
    """

    def __init__(self, config: PluginConfig | None = None) -> None:
        self.config = config or PluginConfig()

    def export(self, session: BuildSession, output_root: Path) -> Path:
        output_root = Path(output_root)
        assets_dir = self.config.resolve_assets_dir(output_root)
        assets_dir.mkdir(parents=True, exist_ok=True)

        pages = session.pages
        LOGGER.info("[docshim] Building search index...")
        LOGGER.info("[docshim] Output directory: %s", output_root)
        LOGGER.info("[docshim] Assets directory: %s", assets_dir)
        LOGGER.info("[docshim] Total pages: %d", len(pages))

        payload = [page.to_dict(self.config.max_content_chars) for page in pages]
        output_file = assets_dir / self.config.index_filename
        atomic_write_text(output_file, json.dumps(payload, ensure_ascii=False))
        LOGGER.info("[docshim] Wrote %s with %d pages", output_file.name, len(payload))
        return output_file

    def copy_assets(self, output_root: Path) -> list[Path]:
        """Copy the packaged widget script and stylesheet next to the artifact."""
        assets_dir = self.config.resolve_assets_dir(Path(output_root))
        assets_dir.mkdir(parents=True, exist_ok=True)

        copied: list[Path] = []
        for name in [*self.config.extra_js, *self.config.extra_css]:
            resource = asset_resource(name)
            if not resource.is_file():
                raise FileNotFoundError(f"Packaged asset not found: {name}")
            target = assets_dir / name
            with as_file(resource) as source:
                shutil.copyfile(source, target)
            copied.append(target)
            LOGGER.debug("Copied asset %s", target)
        return copied
