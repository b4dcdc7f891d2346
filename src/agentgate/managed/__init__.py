# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed files: robots.txt, sitemaps and ``.well-known`` entries."""

from __future__ import annotations

from agentgate.managed.robots_txt import ROBOTS_PATH, handle_robots_txt
from agentgate.managed.sitemap import handle_sitemap, is_sitemap_path
from agentgate.managed.well_known import handle_well_known, well_known_filename

__all__ = [
    "ROBOTS_PATH",
    "handle_robots_txt",
    "handle_sitemap",
    "handle_well_known",
    "is_sitemap_path",
    "well_known_filename",
]
