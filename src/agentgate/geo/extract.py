# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Targeted text extraction over raw HTML.

Regex-based on purpose: responses are rewritten in flight at the edge, so
there is no DOM. Each helper looks for one signal and returns ``None`` (or an
empty list) when the page does not carry it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ── Patterns ──────────────────────────────────────────────────────────

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_BLOCK_TAG_RE = re.compile(
    r"</?(?:p|div|br|hr|li|ul|ol|dl|dt|dd|h[1-6]|tr|td|th|table|section|article"
    r"|header|footer|nav|aside|main|blockquote|pre|figure|figcaption)\b[^>]*>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

_TITLE_RE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_ATTR_RE = re.compile(r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_PARAGRAPH_RE = re.compile(r"<p(?:\s[^>]*)?>(.*?)</p\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_RE = re.compile(r"<h([1-6])(?:\s[^>]*)?>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_OPEN_RE = re.compile(r"<h[1-6][\s>]", re.IGNORECASE)
_OL_RE = re.compile(r"<ol\b[^>]*>(.*?)</ol\s*>", re.IGNORECASE | re.DOTALL)
_LI_RE = re.compile(r"<li\b[^>]*>(.*?)</li\s*>", re.IGNORECASE | re.DOTALL)
_PRICE_RE = re.compile(r"\$((?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?)(?!\d)")

_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&apos;": "'",
    "&#39;": "'",
    "&#x27;": "'",
    "&#47;": "/",
    "&#x2F;": "/",
    "&#x2f;": "/",
    "&nbsp;": " ",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))

FIRST_PARAGRAPH_MIN = 50
FIRST_PARAGRAPH_MAX = 300
FAQ_ANSWER_MIN = 10
FAQ_ANSWER_MAX = 500


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True, slots=True)
class FaqPair:
    question: str
    answer: str


@dataclass(frozen=True, slots=True)
class Price:
    value: str  # digits with optional ".dd", separators removed
    currency: str = "USD"


# ── Text primitives ───────────────────────────────────────────────────


def decode_entities(text: str) -> str:
    """Decode the handful of entities that show up in titles and meta tags.

    Single pass, so ``&amp;lt;`` becomes ``&lt;`` rather than ``<``.
    """
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group()], text)


def strip_html(html: str) -> str:
    """Drop script/style blocks and tags, then collapse whitespace."""
    text = _SCRIPT_STYLE_RE.sub(" ", html)
    text = _BLOCK_TAG_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    text = text.replace("&nbsp;", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def escape_attr(value: str) -> str:
    """Escape a string for use inside a double-quoted HTML attribute."""
    return (
        value.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def _text(fragment: str) -> str:
    return decode_entities(strip_html(fragment))


# ── Head signals ──────────────────────────────────────────────────────


def _meta_content(html: str, attr: str, value: str) -> str | None:
    """Return ``content`` of the first ``<meta {attr}="{value}">``, any attribute order."""
    wanted = value.lower()
    for tag in _META_TAG_RE.finditer(html):
        attrs = {m.group(1).lower(): m.group(2) if m.group(2) is not None else m.group(3) for m in _ATTR_RE.finditer(tag.group())}
        if attrs.get(attr, "").lower() == wanted and "content" in attrs:
            return decode_entities(attrs["content"].strip())
    return None


def extract_title(html: str) -> str | None:
    m = _TITLE_RE.search(html)
    if not m:
        return None
    return _text(m.group(1)) or None


def extract_meta_description(html: str) -> str | None:
    return _meta_content(html, "name", "description") or None


def extract_og_title(html: str) -> str | None:
    return _meta_content(html, "property", "og:title") or None


def extract_og_description(html: str) -> str | None:
    return _meta_content(html, "property", "og:description") or None


def extract_og_image(html: str) -> str | None:
    return _meta_content(html, "property", "og:image") or None


def extract_og_type(html: str) -> str | None:
    return _meta_content(html, "property", "og:type") or None


def extract_published_time(html: str) -> str | None:
    return _meta_content(html, "property", "article:published_time") or None


# ── Body signals ──────────────────────────────────────────────────────


def extract_first_paragraph(html: str) -> str | None:
    """First ``<p>`` with at least 50 characters of text, cut to 300."""
    for m in _PARAGRAPH_RE.finditer(html):
        text = _text(m.group(1))
        if len(text) >= FIRST_PARAGRAPH_MIN:
            return text[:FIRST_PARAGRAPH_MAX]
    return None


def extract_headings(html: str) -> list[Heading]:
    return [Heading(level=int(m.group(1)), text=_text(m.group(2))) for m in _HEADING_RE.finditer(html)]


def extract_faq_pairs(html: str) -> list[FaqPair]:
    """Question headings (h2/h3 ending in ``?``) with the content that follows.

    The answer runs until the next heading opens. Answers shorter than ten
    characters are dropped; longer ones are cut to 500.
    """
    pairs: list[FaqPair] = []
    for m in _HEADING_RE.finditer(html):
        if m.group(1) not in ("2", "3"):
            continue
        question = _text(m.group(2))
        if not question.endswith("?"):
            continue
        nxt = _HEADING_OPEN_RE.search(html, m.end())
        answer = _text(html[m.end() : nxt.start() if nxt else len(html)])
        if len(answer) < FAQ_ANSWER_MIN:
            continue
        pairs.append(FaqPair(question=question, answer=answer[:FAQ_ANSWER_MAX]))
    return pairs


def extract_ordered_list_steps(html: str) -> list[str]:
    """Item texts of the first ``<ol>`` on the page."""
    m = _OL_RE.search(html)
    if not m:
        return []
    return [text for li in _LI_RE.finditer(m.group(1)) if (text := _text(li.group(1)))]


def extract_prices(html: str) -> list[Price]:
    return [Price(value=m.group(1).replace(",", "")) for m in _PRICE_RE.finditer(html)]
