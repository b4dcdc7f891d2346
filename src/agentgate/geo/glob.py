# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Path glob matching for page rules.

Syntax:
- ``*``   one path segment (one or more characters, never ``/``)
- ``/**`` nothing, or ``/`` followed by anything (so ``/docs/**`` covers
  ``/docs`` itself as well as every path below it)
- ``**``  elsewhere, any run of characters
Everything else is literal. Matching is always against the whole path.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from typing import Protocol, TypeVar

_TOKEN_RE = re.compile(r"/\*\*|\*\*|\*")

_TOKEN_REGEX = {
    "/**": r"(?:/.*)?",
    "**": r".*",
    "*": r"[^/]+",
}


class _HasUrlPattern(Protocol):
    @property
    def url_pattern(self) -> str: ...


_R = TypeVar("_R", bound=_HasUrlPattern)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile *pattern* into a regex meant for ``fullmatch``."""
    parts: list[str] = []
    pos = 0
    for m in _TOKEN_RE.finditer(pattern):
        parts.append(re.escape(pattern[pos : m.start()]))
        parts.append(_TOKEN_REGEX[m.group()])
        pos = m.end()
    parts.append(re.escape(pattern[pos:]))
    return re.compile("".join(parts), re.DOTALL)


def glob_match(pattern: str, path: str) -> bool:
    return compile_glob(pattern).fullmatch(path) is not None


def find_matching_rule(path: str, rules: Iterable[_R]) -> _R | None:
    """First rule (in list order) whose ``url_pattern`` matches *path*."""
    for rule in rules:
        if glob_match(rule.url_pattern, path):
            return rule
    return None
