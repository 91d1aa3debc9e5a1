"""Per-build accumulation of processed pages."""

from __future__ import annotations

import logging
import threading
from typing import Iterator, List

from docshim.models import IndexedPage
from docshim.utils.text import strip_front_matter

LOGGER = logging.getLogger(__name__)


class BuildSession:
    """Ordered record of every page processed during one build.

    Entries are appended in processing order and never deduplicated: a page
    recorded twice under the same path shows up twice in the artifact.
    """

    def __init__(self) -> None:
        self._pages: List[IndexedPage] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[IndexedPage]:
        return iter(self.pages)

    @property
    def pages(self) -> list[IndexedPage]:
        with self._lock:
            return list(self._pages)

    def reset(self) -> None:
        with self._lock:
            self._pages.clear()

    def record(self, path: str | None, title: str | None, content: str | None) -> IndexedPage:
        cleaned = strip_front_matter(content)
        with self._lock:
            entry = IndexedPage(
                path=path or f"unknown_{len(self._pages)}",
                title=title or "",
                content=cleaned,
            )
            self._pages.append(entry)
        LOGGER.debug("Recorded %s (%d chars)", entry.path, len(cleaned))
        return entry
