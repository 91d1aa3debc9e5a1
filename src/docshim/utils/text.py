"""Text helpers for front matter and whitespace handling."""

from __future__ import annotations

import re

FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)
BLANK_RUN_RE = re.compile(r"\n{3,}")
FIRST_H1_RE = re.compile(r"^#[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)


def strip_front_matter(text: str | None) -> str:
    """Remove a leading ``---`` delimited block and trim the rest.

    Missing or unterminated front matter leaves the text untouched apart
    from trimming.
    """
    if not text:
        return ""
    return FRONT_MATTER_RE.sub("", text, count=1).strip()


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of three or more newlines into a single blank line."""
    return BLANK_RUN_RE.sub("\n\n", text)


def extract_title(text: str, fallback: str = "") -> str:
    """Return the first level-1 heading of a markdown document."""
    match = FIRST_H1_RE.search(strip_front_matter(text))
    return match.group(1).strip() if match else fallback
