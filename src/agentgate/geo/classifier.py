# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""First-match page-type classifier.

Tiers, evaluated top to bottom; the first tier that produces a type wins and
later tiers never run:

  1. Rule    – matching page rule with an explicit ``page_type``   (high)
  2. URL     – ordered path regex table                            (medium)
  3. Meta    – ``og:type`` / ``article:published_time``            (high)
  4. Content – heading/price/list/code counting on raw HTML        (medium/low)
  5. Default – generic                                             (low)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from agentgate.geo.extract import extract_headings, extract_og_type, extract_prices, extract_published_time
from agentgate.geo.glob import find_matching_rule

if TYPE_CHECKING:
    from agentgate.config import PageRule


class PageType(StrEnum):
    PRODUCT = "product"
    ARTICLE = "article"
    DOCS = "docs"
    FAQ = "faq"
    HOW_TO = "how-to"
    PRICING = "pricing"
    COMPARISON = "comparison"
    GENERIC = "generic"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ClassificationSource(StrEnum):
    RULE = "rule"
    URL_PATTERN = "url-pattern"
    META_TAG = "meta-tag"
    CONTENT_HEURISTIC = "content-heuristic"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    page_type: PageType
    confidence: Confidence
    source: ClassificationSource


# ---------------------------------------------------------------------------
# URL table
# ---------------------------------------------------------------------------


def _url(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


URL_PATTERNS: tuple[tuple[re.Pattern[str], PageType], ...] = (
    (_url(r"/products?/"), PageType.PRODUCT),
    (_url(r"/shop/"), PageType.PRODUCT),
    (_url(r"/item/"), PageType.PRODUCT),
    (_url(r"/pricing/?$"), PageType.PRICING),
    (_url(r"/plans?/?$"), PageType.PRICING),
    (_url(r"/faq/?$"), PageType.FAQ),
    (_url(r"/frequently-asked"), PageType.FAQ),
    (_url(r"/docs?/"), PageType.DOCS),
    (_url(r"/documentation/"), PageType.DOCS),
    (_url(r"/api/"), PageType.DOCS),
    (_url(r"/guide/"), PageType.DOCS),
    (_url(r"/blog/"), PageType.ARTICLE),
    (_url(r"/articles?/"), PageType.ARTICLE),
    (_url(r"/posts?/"), PageType.ARTICLE),
    (_url(r"/news/"), PageType.ARTICLE),
    (_url(r"/how-to"), PageType.HOW_TO),
    (_url(r"/tutorial"), PageType.HOW_TO),
    (_url(r"/compar"), PageType.COMPARISON),
    (_url(r"/vs/"), PageType.COMPARISON),
    (_url(r"-vs-"), PageType.COMPARISON),
)

_OG_TYPE_MAP: dict[str, PageType] = {
    "article": PageType.ARTICLE,
    "blog": PageType.ARTICLE,
    "product": PageType.PRODUCT,
    "product.item": PageType.PRODUCT,
}

# ---------------------------------------------------------------------------
# Content heuristics
# ---------------------------------------------------------------------------

_ISO_PRICE_RE = re.compile(r"\b(?:USD|EUR|GBP)\s*\d[\d,]*")
_OL_OPEN_RE = re.compile(r"<ol[\s>]", re.IGNORECASE)
_STEP_WORDS_RE = re.compile(r"step\s+\d|how to|instructions", re.IGNORECASE)


def _question_headings(html: str) -> bool:
    return sum(1 for h in extract_headings(html) if h.level in (2, 3) and h.text.endswith("?")) >= 3


def _price_tokens(html: str) -> bool:
    return len(extract_prices(html)) >= 2 or len(_ISO_PRICE_RE.findall(html)) >= 2


def _ordered_steps(html: str) -> bool:
    return _OL_OPEN_RE.search(html) is not None and _STEP_WORDS_RE.search(html) is not None


def _code_blocks(html: str) -> bool:
    lower = html.lower()
    return lower.count("<code") + lower.count("<pre") >= 3


@dataclass(frozen=True, slots=True)
class ContentSignal:
    name: str
    page_type: PageType
    confidence: Confidence
    check: Callable[[str], bool]


CONTENT_SIGNALS: tuple[ContentSignal, ...] = (
    ContentSignal("question_headings", PageType.FAQ, Confidence.MEDIUM, _question_headings),
    ContentSignal("price_tokens", PageType.PRICING, Confidence.MEDIUM, _price_tokens),
    ContentSignal("ordered_steps", PageType.HOW_TO, Confidence.LOW, _ordered_steps),
    ContentSignal("code_blocks", PageType.DOCS, Confidence.LOW, _code_blocks),
)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def classify_by_rule(path: str, rules: Iterable[PageRule]) -> ClassificationResult | None:
    rule = find_matching_rule(path, rules)
    if rule is None or rule.page_type is None:
        return None
    return ClassificationResult(PageType(rule.page_type), Confidence.HIGH, ClassificationSource.RULE)


def classify_by_url(path: str) -> ClassificationResult | None:
    for pattern, page_type in URL_PATTERNS:
        if pattern.search(path):
            return ClassificationResult(page_type, Confidence.MEDIUM, ClassificationSource.URL_PATTERN)
    return None


def classify_by_meta(html: str) -> ClassificationResult | None:
    og_type = extract_og_type(html)
    if og_type and (page_type := _OG_TYPE_MAP.get(og_type.lower())):
        return ClassificationResult(page_type, Confidence.HIGH, ClassificationSource.META_TAG)
    if extract_published_time(html) is not None:
        return ClassificationResult(PageType.ARTICLE, Confidence.HIGH, ClassificationSource.META_TAG)
    return None


def classify_by_content(html: str) -> ClassificationResult | None:
    for signal in CONTENT_SIGNALS:
        if signal.check(html):
            return ClassificationResult(signal.page_type, signal.confidence, ClassificationSource.CONTENT_HEURISTIC)
    return None


def classify_page(path: str, html: str, rules: Iterable[PageRule] = ()) -> ClassificationResult:
    """Classify a page from its path and (possibly empty) HTML."""
    result = (
        classify_by_rule(path, rules)
        or classify_by_url(path)
        or (classify_by_meta(html) if html else None)
        or (classify_by_content(html) if html else None)
    )
    if result is not None:
        return result
    return ClassificationResult(PageType.GENERIC, Confidence.LOW, ClassificationSource.DEFAULT)
