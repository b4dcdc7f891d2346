# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Response header names added by AgentGate."""

from __future__ import annotations

MANAGED = "X-AgentGate-Managed"
MODE = "X-AgentGate-Mode"
FILE = "X-AgentGate-File"
GEO = "X-AgentGate-GEO"
PAGE_TYPE = "X-AgentGate-PageType"

GEO_APPLIED = "applied"
