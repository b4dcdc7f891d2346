# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Content optimization for AI agents (GEO).

Leaf modules (extract, glob, classifier, schema, summary, headings, agents)
have no dependency on configuration; ``optimizer`` ties them together.
"""
