# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""In-flight response rewriting for AI agents.

HTML gets JSON-LD and a summary meta tag before ``</head>`` plus annotated
headings. Plain text and markdown get a YAML frontmatter block instead.
Every other media type is returned untouched, as is any compressed body.

The returned response is always a fresh object, modified or not, because
the input body has already been read.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import yaml
from starlette.datastructures import URL
from starlette.responses import Response

from agentgate import headers
from agentgate.config import GeoConfig, PageRule
from agentgate.errors import SchemaValidationError
from agentgate.geo.classifier import ClassificationResult, PageType, classify_page
from agentgate.geo.extract import escape_attr
from agentgate.geo.glob import find_matching_rule
from agentgate.geo.headings import enrich_headings
from agentgate.geo.schema import synthesize_schema, to_script_json
from agentgate.geo.summary import Summary, extract_summary
from agentgate.responses import clone_response, is_encoded, media_type, rebuild_response, response_text

logger = logging.getLogger(__name__)

SUMMARY_META_NAME = "agentgate:summary"
FRONTMATTER_SUMMARY = "agentgate:summary"
FRONTMATTER_PAGE_TYPE = "agentgate:page_type"
FRONTMATTER_SCHEMA = "agentgate:schema"

HTML_MEDIA_TYPES = frozenset({"text/html", "application/xhtml+xml"})
TEXT_MEDIA_TYPES = frozenset({"text/plain", "text/markdown"})

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    response: Response
    modified: bool
    classification: ClassificationResult | None = None
    schema_type: str | None = None
    summary: Summary | None = None
    headings_enriched: bool = False

    @property
    def page_type(self) -> PageType | None:
        return self.classification.page_type if self.classification else None


def _head_close_index(html: str) -> int | None:
    """Offset of the last ``</head>``, or None."""
    last = None
    for last in _HEAD_CLOSE_RE.finditer(html):
        pass
    return last.start() if last else None


def _schema_or_none(page_type: PageType, html: str, url: str, rule: PageRule | None) -> dict[str, Any] | None:
    try:
        return synthesize_schema(page_type, html, url, rule)
    except SchemaValidationError as e:
        logger.warning("Skipping JSON-LD for %s: %s", url, e)
        return None


def _applied(response: Response, body: str, page_type: PageType) -> Response:
    return rebuild_response(
        response,
        body,
        headers={headers.GEO: headers.GEO_APPLIED, headers.PAGE_TYPE: page_type.value},
    )


# ── HTML ──────────────────────────────────────────────────────────────


def _optimize_html(response: Response, url: URL, config: GeoConfig, rule: PageRule | None) -> OptimizationResult:
    html = response_text(response)
    classification = classify_page(url.path, html, config.rules)
    page_type = classification.page_type
    if config.page_types is not None and page_type not in config.page_types:
        return OptimizationResult(clone_response(response), False, classification)

    head_close = _head_close_index(html)
    injected: list[str] = []
    schema_type = None
    summary = None

    if head_close is not None:
        if config.inject_json_ld:
            schema = _schema_or_none(page_type, html, str(url), rule)
            if schema is not None:
                injected.append(f'<script type="application/ld+json">{to_script_json(schema)}</script>\n')
                schema_type = schema["@type"]
        if config.inject_summary:
            summary = extract_summary(html, rule)
            if summary is not None:
                injected.append(f'<meta name="{SUMMARY_META_NAME}" content="{escape_attr(summary.text)}">\n')
        if injected:
            html = html[:head_close] + "".join(injected) + html[head_close:]

    enriched = False
    if config.enrich_headings:
        annotated = enrich_headings(html, page_type)
        enriched = annotated != html
        html = annotated

    if not injected and not enriched:
        return OptimizationResult(clone_response(response), False, classification)
    return OptimizationResult(
        _applied(response, html, page_type),
        True,
        classification,
        schema_type=schema_type,
        summary=summary,
        headings_enriched=enriched,
    )


# ── Plain text / markdown ─────────────────────────────────────────────


def _optimize_text(response: Response, url: URL, config: GeoConfig, rule: PageRule | None) -> OptimizationResult:
    classification = classify_page(url.path, "", config.rules)
    page_type = classification.page_type
    if config.page_types is not None and page_type not in config.page_types:
        return OptimizationResult(clone_response(response), False, classification)

    fields: dict[str, str] = {}
    summary = extract_summary("", rule) if config.inject_summary else None
    if summary is not None:
        fields[FRONTMATTER_SUMMARY] = summary.text
    fields[FRONTMATTER_PAGE_TYPE] = page_type.value
    schema_type = None
    if config.inject_json_ld:
        schema = _schema_or_none(page_type, "", str(url), rule)
        if schema is not None:
            schema_type = schema["@type"]
            fields[FRONTMATTER_SCHEMA] = schema_type

    frontmatter = yaml.safe_dump(fields, sort_keys=False, allow_unicode=True, default_flow_style=False, width=4096)
    body = f"---\n{frontmatter}---\n\n{response_text(response)}"
    return OptimizationResult(
        _applied(response, body, page_type),
        True,
        classification,
        schema_type=schema_type,
        summary=summary,
    )


# ── Entry point ───────────────────────────────────────────────────────


def optimize_response(response: Response, url: URL, config: GeoConfig) -> OptimizationResult:
    """Rewrite *response* for an AI agent according to *config*."""
    kind = media_type(response)
    if is_encoded(response) or (kind not in HTML_MEDIA_TYPES and kind not in TEXT_MEDIA_TYPES):
        return OptimizationResult(response, False)

    rule = find_matching_rule(url.path, config.rules)
    if rule is not None and rule.disabled:
        return OptimizationResult(clone_response(response), False)

    if kind in HTML_MEDIA_TYPES:
        return _optimize_html(response, url, config, rule)
    return _optimize_text(response, url, config, rule)
