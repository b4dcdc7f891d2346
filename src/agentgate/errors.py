# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AgentGate exception hierarchy.

Everything raised by this package derives from AgentGateError. Apart from
ConfigurationError (raised at construction time), none of these ever reach
the requester: the middleware recovers from them and serves the origin
response instead.
"""

from __future__ import annotations


class AgentGateError(Exception):
    """Base exception for all AgentGate errors."""


class ConfigurationError(AgentGateError):
    """Invalid middleware, analytics, or managed-rules configuration."""


class RemoteConfigError(AgentGateError):
    """Remote config bundle could not be retrieved for a hostname."""

    def __init__(self, message: str, *, hostname: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.hostname = hostname
        self.status_code = status_code


class StageError(AgentGateError):
    """A pipeline stage raised while producing its response."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class SchemaValidationError(AgentGateError):
    """Structured data did not fit any supported schema shape."""

    def __init__(self, message: str, *, schema_type: str = "") -> None:
        super().__init__(message)
        self.schema_type = schema_type


class AnalyticsDeliveryError(AgentGateError):
    """Ingest endpoint rejected or failed to accept an analytics event."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
