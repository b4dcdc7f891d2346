# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Short page summary for the ``agentgate:summary`` meta tag / frontmatter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from agentgate.geo.extract import extract_first_paragraph, extract_meta_description, extract_og_description

if TYPE_CHECKING:
    from agentgate.config import PageRule

DESCRIPTION_MIN = 30


class SummarySource(StrEnum):
    CUSTOM = "custom"
    META_DESCRIPTION = "meta-description"
    OG_DESCRIPTION = "og-description"
    FIRST_PARAGRAPH = "first-paragraph"


@dataclass(frozen=True, slots=True)
class Summary:
    text: str
    source: SummarySource


def extract_summary(html: str, rule: PageRule | None = None) -> Summary | None:
    """Pick the first usable summary signal.

    A rule's literal summary always wins. Descriptions need 30+ characters;
    the first paragraph is already length-gated by its extractor.
    """
    if rule is not None and rule.summary:
        return Summary(rule.summary, SummarySource.CUSTOM)
    if not html:
        return None

    meta = extract_meta_description(html)
    if meta and len(meta) >= DESCRIPTION_MIN:
        return Summary(meta, SummarySource.META_DESCRIPTION)

    og = extract_og_description(html)
    if og and len(og) >= DESCRIPTION_MIN:
        return Summary(og, SummarySource.OG_DESCRIPTION)

    paragraph = extract_first_paragraph(html)
    if paragraph:
        return Summary(paragraph, SummarySource.FIRST_PARAGRAPH)
    return None
