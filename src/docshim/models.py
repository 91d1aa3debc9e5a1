"""Core docshim data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(slots=True)
class Page:
    """A source document as handed over by the host generator."""

    path: str
    title: str = ""
    content: str = ""
    raw_content: str | None = None


@dataclass(frozen=True, slots=True)
class IndexedPage:
    """Snapshot of a processed page captured for the search artifact."""

    path: str
    title: str
    content: str

    def to_dict(self, max_chars: int | None = None) -> Dict[str, Any]:
        content = self.content if max_chars is None else self.content[:max_chars]
        return {"path": self.path, "title": self.title, "content": content}


@dataclass(frozen=True, slots=True)
class QueryResult:
    """One deduplicated search hit."""

    path: str
    title: str
