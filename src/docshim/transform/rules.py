"""Rewrite rules for the proprietary markdown shorthand.

Every rule is a plain ``str -> str`` function built on module-level
patterns. Rules never fail on input they do not recognise: an unmatched or
malformed block is returned exactly as it was found.
"""

from __future__ import annotations

import html
import re
from typing import Iterable

from docshim.utils.text import collapse_blank_lines

# Module scope patterns

EMBED_RE = re.compile(
    r"""\{%\s*embed\s+(?:url=)?(?:(["'])(.+?)\1|([^"'\s}]+?))(?:\s+[^%}]*)?\s*%\}"""
)
BARE_VARIABLE_RE = re.compile(r"\{\{(\w+)\}\}")
ESCAPED_VARIABLE_RE = re.compile(r"(\\)?\{\{\s*([^}]+?)\s*(\\)?\}\}")
CONTENT_REF_RE = re.compile(
    r"""\{%\s*content-ref\s+url=["']([^"']+)["']\s*%\}(.*?)\{%\s*endcontent-ref\s*%\}""",
    re.DOTALL,
)
STEPPER_RE = re.compile(r"\{%\s*stepper\s*%\}(.*?)\{%\s*endstepper\s*%\}", re.DOTALL)
STEP_RE = re.compile(r"\{%\s*step\s*%\}(.*?)\{%\s*endstep\s*%\}", re.DOTALL)
STEP_TITLE_RE = re.compile(r"^[ \t]*####[ \t]+(.+?)[ \t]*(?:\r?\n|\Z)", re.MULTILINE)
TABS_RE = re.compile(r"\{%\s*tabs\s*%\}(.*?)\{%\s*endtabs\s*%\}", re.DOTALL)
TAB_RE = re.compile(
    r"""\{%\s*tab\s+title=(["'])(.*?)\1\s*%\}(.*?)\{%\s*endtab\s*%\}""", re.DOTALL
)
COLUMNS_RE = re.compile(r"\{%\s*columns\s*%\}(.*?)\{%\s*endcolumns\s*%\}", re.DOTALL)
COLUMN_RE = re.compile(r"\{%\s*column\s*%\}(.*?)\{%\s*endcolumn\s*%\}", re.DOTALL)
COLUMN_HEADING_RE = re.compile(r"#{1,6}[ \t]+(.+?)[ \t]*(?:\r?\n|\Z)")
CELL_BREAK_RE = re.compile(r"\n(?![-*]|\d+\.)")
SCRIPT_BODY_RE = re.compile(r"(<script\b[^>]*>)(.*?)(</script>)", re.IGNORECASE | re.DOTALL)
PRODUCT_FORM_RE = re.compile(r"<product-form\b.*?>", re.IGNORECASE | re.DOTALL)
DASHED_TAG_RE = re.compile(r"\{%-.*?-%\}", re.DOTALL)
FORMATTED_CODE_RE = re.compile(
    r"\{%\s*formatted-code\s*%\}(.*?)\{%\s*endformatted-code\s*%\}", re.DOTALL
)

# Order matters: dashed forms before their plain counterparts.
DELIMITER_ENTITIES = (
    ("{{", "&#123;&#123;"),
    ("}}", "&#125;&#125;"),
    ("{%-", "&#123;%-"),
    ("-%}", "-%&#125;"),
    ("{%", "&#123;%"),
    ("%}", "%&#125;"),
)
DASHED_ENTITIES = DELIMITER_ENTITIES[2:4]


def rewrite_embeds(content: str) -> str:
    """Turn ``{% embed url="..." %}`` into an ``urlembed`` block for web URLs."""

    def _replace(match: re.Match[str]) -> str:
        url = match.group(2) or match.group(3)
        if url.startswith(("http://", "https://")):
            return f"{{% urlembed %}}\n{url}\n{{% endurlembed %}}"
        return match.group(0)

    return EMBED_RE.sub(_replace, content)


def escape_bare_variables(content: str) -> str:
    """Escape ``{{name}}`` so the host template engine leaves it alone."""
    return BARE_VARIABLE_RE.sub(lambda m: "\\{{" + m.group(1) + "\\}}", content)


def unwrap_escaped_variables(content: str) -> str:
    """Render ``\\{{ expr \\}}`` as an inline code span ``{{expr}}``."""

    def _replace(match: re.Match[str]) -> str:
        if not (match.group(1) or match.group(3)):
            return match.group(0)
        return "`{{" + match.group(2).strip() + "}}`"

    return ESCAPED_VARIABLE_RE.sub(_replace, content)


def link_text_for(url: str) -> str:
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    return re.sub(r"\.md$", "", segment) or url


def expand_content_refs(content: str) -> str:
    """Replace content-ref blocks with their body, or a link built from the URL."""

    def _replace(match: re.Match[str]) -> str:
        url, body = match.group(1), match.group(2).strip()
        if body:
            return body
        return f"[{link_text_for(url)}]({url})"

    return CONTENT_REF_RE.sub(_replace, content)


def _expand_steps(block: str) -> str:
    counter = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        step = match.group(1)
        title_match = STEP_TITLE_RE.search(step)
        if title_match:
            title = title_match.group(1).strip()
            step = step[: title_match.start()] + step[title_match.end() :]
        else:
            title = f"Step {counter}"
        body = step.strip()
        body = f"\n{body}\n" if body else ""
        return f"\n## Step {counter}: {title}{body}"

    return collapse_blank_lines(STEP_RE.sub(_replace, block))


def _count_newlines(text: str, *, leading: bool) -> int:
    stripped = text.lstrip("\n") if leading else text.rstrip("\n")
    return len(text) - len(stripped)


def _fit_between(before: str, text: str, after: str) -> str:
    """Trim the edge newlines of ``text`` so no blank run exceeds one line."""
    lead = _count_newlines(text, leading=True)
    keep_lead = min(lead, max(0, 2 - _count_newlines(before, leading=False)))
    text = text[lead - keep_lead :]
    trail = _count_newlines(text, leading=False)
    keep_trail = min(trail, max(0, 2 - _count_newlines(after, leading=True)))
    return text[: len(text) - (trail - keep_trail)]


def expand_steppers(content: str) -> str:
    """Flatten stepper blocks into numbered level-2 headings."""

    def _replace(match: re.Match[str]) -> str:
        expanded = _expand_steps(match.group(1))
        return _fit_between(
            match.string[: match.start()], expanded, match.string[match.end() :]
        )

    return STEPPER_RE.sub(_replace, content)


def render_details(title: str, body: str) -> str:
    summary = html.escape(title, quote=False)
    return f"<details>\n<summary>{summary}</summary>\n\n{body}\n\n</details>"


def expand_tabs(content: str) -> str:
    """Render each tab of a tabs block as a collapsible ``<details>`` section."""

    def _replace(match: re.Match[str]) -> str:
        tabs = TAB_RE.findall(match.group(1))
        if not tabs:
            return match.group(0)
        return "\n\n".join(render_details(title, body.strip()) for _, title, body in tabs)

    return TABS_RE.sub(_replace, content)


def _column_cell(raw: str) -> tuple[str, str]:
    content = raw.strip()
    heading = ""
    heading_match = COLUMN_HEADING_RE.match(content)
    if heading_match:
        heading = heading_match.group(1).strip()
        content = content[heading_match.end() :].strip()
    body = CELL_BREAK_RE.sub("<br>", collapse_blank_lines(content))
    return heading, body


def render_table(headers: Iterable[str], cells: Iterable[str]) -> str:
    headers = list(headers)
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
        "| " + " | ".join(cells) + " |",
    ]
    return "\n".join(lines)


def expand_columns(content: str) -> str:
    """Convert a columns block into a single-row markdown table."""

    def _replace(match: re.Match[str]) -> str:
        columns = [_column_cell(raw) for raw in COLUMN_RE.findall(match.group(1))]
        if not columns:
            return match.group(0)
        return render_table((h for h, _ in columns), (b for _, b in columns))

    return COLUMNS_RE.sub(_replace, content)


def escape_delimiters(text: str, pairs: Iterable[tuple[str, str]] = DELIMITER_ENTITIES) -> str:
    for needle, entity in pairs:
        text = text.replace(needle, entity)
    return text


def escape_embedded_templates(content: str) -> str:
    """Neutralise template delimiters in script bodies, product-form tags and ``{%- -%}``."""
    content = SCRIPT_BODY_RE.sub(
        lambda m: m.group(1) + escape_delimiters(m.group(2)) + m.group(3), content
    )
    content = PRODUCT_FORM_RE.sub(lambda m: escape_delimiters(m.group(0)), content)
    return DASHED_TAG_RE.sub(lambda m: escape_delimiters(m.group(0), DASHED_ENTITIES), content)


def render_formatted_code(body: str) -> str:
    return f'<div class="custom-formatted-code">{body}</div>'


def expand_formatted_code(content: str) -> str:
    return FORMATTED_CODE_RE.sub(lambda m: render_formatted_code(m.group(1)), content)


def format_text(text: str, uppercase: bool = False) -> str:
    """Template filter: optionally upper-case ``text``."""
    return text.upper() if uppercase else text
