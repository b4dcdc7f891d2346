# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Heading annotation with section/level/page-type data attributes."""

from __future__ import annotations

import re

from agentgate.geo.extract import escape_attr

SECTION_ATTR = "data-agentgate-section"
LEVEL_ATTR = "data-agentgate-level"
PAGE_TYPE_ATTR = "data-agentgate-page-type"

_HEADING_RE = re.compile(r"<(h([1-6]))(\s[^>]*)?>(.*?)</h\2\s*>", re.IGNORECASE | re.DOTALL)
_SECTION_ATTR_RE = re.compile(rf"\s{SECTION_ATTR}\s*=", re.IGNORECASE)


def enrich_headings(html: str, page_type: str) -> str:
    """Annotate every heading's opening tag.

    Headings are numbered by document position starting at 1. A heading that
    already carries the section attribute keeps its markup, so running this
    twice changes nothing.
    """
    counter = 0
    page_type_value = escape_attr(page_type)

    def _annotate(m: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        tag = m.group(1)
        level = m.group(2)
        attrs = m.group(3) or ""
        if _SECTION_ATTR_RE.search(attrs):
            return m.group(0)
        rest = m.group(0)[len(tag) + len(attrs) + 2 :]
        return (
            f'<{tag}{attrs} {SECTION_ATTR}="{counter}" {LEVEL_ATTR}="{level}" '
            f'{PAGE_TYPE_ATTR}="{page_type_value}">{rest}'
        )

    return _HEADING_RE.sub(_annotate, html)
