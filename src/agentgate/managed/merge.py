# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Text-level merging of robots.txt and sitemap documents.

Not validators: both formats are read just far enough to combine an origin
document with managed content.

robots.txt is read as agent blocks. A block is one user agent plus the
directive lines that follow it; consecutive ``User-agent`` lines share the
directives below them. Comments and blank lines are dropped. ``Sitemap``
lines are global and are collected separately.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MANAGED_SEPARATOR = "# === AgentGate Managed Rules ==="

_USER_AGENT_PREFIX = "user-agent:"
_SITEMAP_PREFIX = "sitemap:"
_LOC_RE = re.compile(r"<loc>\s*(.*?)\s*</loc>", re.IGNORECASE | re.DOTALL)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(slots=True)
class RobotsBlock:
    user_agent: str
    rules: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.user_agent.lower()


@dataclass(slots=True)
class RobotsDocument:
    blocks: list[RobotsBlock] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)


# ── robots.txt ────────────────────────────────────────────────────────


def parse_robots_txt(content: str) -> RobotsDocument:
    """Split robots.txt into per-agent blocks (first occurrence order).

    Repeated blocks for the same agent are folded into the first one.
    Directives before any ``User-agent`` line are ignored.
    """
    doc = RobotsDocument()
    by_agent: dict[str, RobotsBlock] = {}
    group: list[RobotsBlock] = []
    group_open = False  # still reading User-agent lines of the current group

    for raw in content.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        lower = line.lower()

        if lower.startswith(_SITEMAP_PREFIX):
            url = line[len(_SITEMAP_PREFIX) :].strip()
            if url and url not in doc.sitemaps:
                doc.sitemaps.append(url)
            continue

        if lower.startswith(_USER_AGENT_PREFIX):
            agent = line[len(_USER_AGENT_PREFIX) :].strip()
            if not group_open:
                group = []
                group_open = True
            block = by_agent.get(agent.lower())
            if block is None:
                block = RobotsBlock(user_agent=agent)
                by_agent[block.key] = block
                doc.blocks.append(block)
            if all(b is not block for b in group):
                group.append(block)
            continue

        group_open = False
        for block in group:
            block.rules.append(line)

    return doc


def format_robots_txt(doc: RobotsDocument) -> str:
    parts = ["\n".join([f"User-agent: {b.user_agent}", *b.rules]) for b in doc.blocks]
    if doc.sitemaps:
        parts.append("\n".join(f"Sitemap: {url}" for url in doc.sitemaps))
    return "\n\n".join(parts)


def merge_robots_txt(origin: str, managed: str) -> str:
    """Managed blocks replace origin blocks for the same agent (case-insensitive).

    Origin blocks without an override keep their position; managed-only agents
    follow all origin blocks. Sitemap lines from both sides are kept, origin first.
    """
    origin_doc = parse_robots_txt(origin)
    managed_doc = parse_robots_txt(managed)
    overrides = {b.key: b for b in managed_doc.blocks}

    merged = RobotsDocument()
    used: set[str] = set()
    for block in origin_doc.blocks:
        override = overrides.get(block.key)
        if override is not None:
            used.add(block.key)
            merged.blocks.append(override)
        else:
            merged.blocks.append(block)
    merged.blocks.extend(b for b in managed_doc.blocks if b.key not in used)

    for url in [*origin_doc.sitemaps, *managed_doc.sitemaps]:
        if url not in merged.sitemaps:
            merged.sitemaps.append(url)
    return format_robots_txt(merged)


def append_robots_txt(origin: str, managed: str) -> str:
    """Origin text, then the separator comment, then managed rules."""
    origin = origin.rstrip()
    managed = managed.strip()
    if not managed:
        return origin
    if not origin:
        return f"{MANAGED_SEPARATOR}\n{managed}\n"
    return f"{origin}\n\n{MANAGED_SEPARATOR}\n{managed}\n"


# ── Sitemap ───────────────────────────────────────────────────────────


def extract_sitemap_urls(xml: str) -> list[str]:
    return [m.group(1) for m in _LOC_RE.finditer(xml) if m.group(1)]


def merge_sitemap_xml(origin: str, managed: str) -> str:
    """Union of ``<loc>`` entries, first-seen order, as a fresh ``<urlset>``."""
    urls = list(dict.fromkeys([*extract_sitemap_urls(origin), *extract_sitemap_urls(managed)]))
    entries = "".join(f"  <url>\n    <loc>{url}</loc>\n  </url>\n" for url in urls)
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<urlset xmlns="{SITEMAP_NAMESPACE}">\n{entries}</urlset>\n'
