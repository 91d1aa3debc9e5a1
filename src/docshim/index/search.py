"""Prefix search over the exported page artifact.

This mirrors what the browser widget does with FlexSearch so results can
be checked from the command line or served by the preview server: a
forward-tokenised index over ``title`` and ``content`` keyed by ``path``,
bounded per-field result sets, then flattening and de-duplication by path.
"""

from __future__ import annotations

import html
import json
import logging
import re
import unicodedata
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from docshim.errors import ArtifactError
from docshim.models import QueryResult

LOGGER = logging.getLogger(__name__)

INDEXED_FIELDS = ("title", "content")
DEFAULT_LIMIT = 20
TOKEN_RE = re.compile(r"\w+")
MD_SUFFIX_RE = re.compile(r"\.md$")


@dataclass(slots=True)
class FieldResult:
    field: str
    ids: List[str]


def normalize(text: str) -> str:
    """Lower-case and strip accents so ``Café`` matches ``cafe``."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def tokenize(text: str) -> list[str]:
    return TOKEN_RE.findall(normalize(text or ""))


def _prefixes(token: str) -> Iterable[str]:
    for end in range(1, len(token) + 1):
        yield token[:end]


class SearchIndex:
    """In-memory inverted index with forward (prefix) tokenisation."""

    def __init__(self, fields: Iterable[str] = INDEXED_FIELDS) -> None:
        self.fields = tuple(fields)
        self._store: Dict[str, Dict[str, str]] = {}
        self._order: Dict[str, int] = {}
        self._postings: Dict[str, Dict[str, Dict[str, int]]] = {
            name: defaultdict(dict) for name in self.fields
        }

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, path: object) -> bool:
        return path in self._store

    @classmethod
    def from_pages(cls, pages: Iterable[Mapping[str, Any]]) -> "SearchIndex":
        index = cls()
        for page in pages:
            index.add(page)
        return index

    @classmethod
    def load(cls, artifact_path: Path) -> "SearchIndex":
        artifact_path = Path(artifact_path)
        try:
            pages = json.loads(artifact_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ArtifactError(
                f"Search artifact not found: {artifact_path}. Run 'docshim build' to generate it."
            ) from exc
        except (OSError, ValueError) as exc:
            raise ArtifactError(f"Could not read search artifact {artifact_path}: {exc}") from exc

        if not isinstance(pages, list):
            raise ArtifactError(f"{artifact_path} must contain a JSON array of pages")
        index = cls.from_pages(page for page in pages if isinstance(page, dict))
        LOGGER.info("Search index built with %d pages", len(index))
        return index

    def add(self, page: Mapping[str, Any]) -> None:
        path = str(page.get("path") or "")
        if not path:
            LOGGER.warning("Skipping page without a path")
            return
        if path in self._store:
            self.remove(path)
        else:
            self._order[path] = len(self._order)

        self._store[path] = {"path": path, "title": str(page.get("title") or "")}
        for name in self.fields:
            postings = self._postings[name]
            for token in tokenize(str(page.get(name) or "")):
                for prefix in _prefixes(token):
                    bucket = postings[prefix]
                    bucket[path] = bucket.get(path, 0) + 1

    def remove(self, path: str) -> None:
        self._store.pop(path, None)
        for postings in self._postings.values():
            for prefix in [key for key, bucket in postings.items() if path in bucket]:
                del postings[prefix][path]
                if not postings[prefix]:
                    del postings[prefix]

    def get(self, path: str) -> Dict[str, str] | None:
        return self._store.get(path)

    def search(self, query: str, *, limit: int = DEFAULT_LIMIT) -> list[FieldResult]:
        """Return one bounded result set per field that matched every term."""
        terms = tokenize(query)
        if not terms:
            return []

        results: list[FieldResult] = []
        for name in self.fields:
            postings = self._postings[name]
            scores: Dict[str, int] | None = None
            for term in terms:
                bucket = postings.get(term)
                if not bucket:
                    scores = None
                    break
                if scores is None:
                    scores = dict(bucket)
                else:
                    scores = {p: s + bucket[p] for p, s in scores.items() if p in bucket}
            if not scores:
                continue
            ranked = sorted(scores, key=lambda p: (-scores[p], self._order[p]))
            results.append(FieldResult(field=name, ids=ranked[:limit]))
        return results

    def query(self, query: str, *, limit: int = DEFAULT_LIMIT) -> list[QueryResult]:
        """Flatten per-field results, keeping the first occurrence of each path."""
        seen: set[str] = set()
        items: list[QueryResult] = []
        for field_result in self.search(query, limit=limit):
            for path in field_result.ids:
                if path in seen:
                    continue
                seen.add(path)
                doc = self._store.get(path, {})
                items.append(QueryResult(path=path, title=doc.get("title") or format_path(path)))
        return items


def highlight_match(text: str, query: str) -> str:
    """HTML-escape ``text`` and wrap case-insensitive matches of ``query`` in ``<mark>``."""
    if not text or not query:
        return html.escape(text or "")
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    parts: list[str] = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(html.escape(text[last : match.start()]))
        parts.append(f"<mark>{html.escape(match.group(0))}</mark>")
        last = match.end()
    parts.append(html.escape(text[last:]))
    return "".join(parts)


def format_path(path: str) -> str:
    """Readable title for a page path: ``guides/quick-start.md`` -> ``Guides › Quick Start``."""
    text = MD_SUFFIX_RE.sub("", path)
    text = re.sub(r"[_-]", " ", text).replace("/", " › ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def base_path(url_path: str) -> str:
    """Relative prefix from a rendered page back to the site root."""
    depth = url_path.count("/") - 1
    return "../" * depth if depth > 0 else "./"


def page_href(path: str, base: str = "./") -> str:
    return base + MD_SUFFIX_RE.sub(".html", path)
