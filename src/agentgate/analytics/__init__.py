# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Fire-and-forget analytics for requests passing through the middleware."""

from __future__ import annotations

from agentgate.analytics.client import DEFAULT_INGEST_URL, AnalyticsClient
from agentgate.analytics.events import IngestEvent, MiddlewareMetadata, build_event
from agentgate.analytics.privacy import sanitize_query_string
from agentgate.analytics.providers import (
    CloudflareAdapter,
    GenericAdapter,
    ProviderAdapter,
    ProviderBotData,
    create_provider_adapter,
)

__all__ = [
    "DEFAULT_INGEST_URL",
    "AnalyticsClient",
    "CloudflareAdapter",
    "GenericAdapter",
    "IngestEvent",
    "MiddlewareMetadata",
    "ProviderAdapter",
    "ProviderBotData",
    "build_event",
    "create_provider_adapter",
    "sanitize_query_string",
]
