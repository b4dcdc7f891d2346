# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Privacy utilities for analytics events."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode

# Query parameter names that must never leave the edge
_SENSITIVE_PARAM_RE = re.compile(
    r"^(?:token|key|password|passwd|secret|auth|authorization|credential|session|jwt|bearer"
    r"|api[_-]?key|apikey|access[_-]?token|refresh[_-]?token|private[_-]?key|client[_-]?secret)$",
    re.IGNORECASE,
)


def is_sensitive_param(name: str) -> bool:
    return _SENSITIVE_PARAM_RE.match(name) is not None


def sanitize_query_string(query: str | None) -> str | None:
    """Drop credential-like parameters. Returns None when nothing is left."""
    if not query:
        return None
    kept = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if not is_sensitive_param(k)]
    return urlencode(kept) or None
