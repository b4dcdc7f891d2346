# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Bot-score adapters for upstream edge providers.

Purely additive metadata for analytics events; nothing in the pipeline
reads it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from starlette.requests import Request

from agentgate.context import edge_metadata


@dataclass(frozen=True, slots=True)
class ProviderBotData:
    provider: str
    score: float | None = None
    verified: bool | None = None
    classification: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "provider": self.provider,
            "score": self.score,
            "verified": self.verified,
            "classification": self.classification,
        }
        return {k: v for k, v in data.items() if v is not None}


class ProviderAdapter(Protocol):
    name: str

    def extract(self, request: Request) -> ProviderBotData | None: ...


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        return value.strip().lower() in ("1", "true", "yes")
    return None


class CloudflareAdapter:
    """Bot Management data from the ``cf`` mapping, else ``cf-bot-score`` headers."""

    name = "cloudflare"

    def extract(self, request: Request) -> ProviderBotData | None:
        bot_management = edge_metadata(request.scope).get("botManagement")
        if isinstance(bot_management, Mapping):
            return ProviderBotData(
                provider=self.name,
                score=_as_float(bot_management.get("score")),
                verified=_as_bool(bot_management.get("verifiedBot")),
                classification="fingerprinted" if bot_management.get("ja3Hash") else None,
            )

        score = _as_float(request.headers.get("cf-bot-score"))
        verified = _as_bool(request.headers.get("cf-verified-bot"))
        if score is None and verified is None:
            return None
        return ProviderBotData(provider=self.name, score=score, verified=verified)


class GenericAdapter:
    name = "generic"

    def extract(self, request: Request) -> ProviderBotData | None:
        return None


def create_provider_adapter(name: str | None) -> ProviderAdapter:
    if name and name.strip().lower() == CloudflareAdapter.name:
        return CloudflareAdapter()
    return GenericAdapter()
