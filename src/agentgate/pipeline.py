# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed-rules pipeline.

Stages run in a fixed order::

    robots-txt → sitemap → well-known → geo (AI agents only)

Each managed-file stage checks its own enablement and path first; a stage
that does not apply is skipped. The first stage that produces a response
ends the pipeline (geo included). A stage that raises is logged and treated
as not handled, and the next stage still runs. Nothing here is retried and
nothing propagates: the worst outcome is the unmodified origin response.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from starlette.responses import Response

from agentgate.config import ManagedFileMode, ResolvedConfig
from agentgate.context import RequestContext
from agentgate.errors import StageError
from agentgate.geo.optimizer import optimize_response
from agentgate.managed import (
    ROBOTS_PATH,
    handle_robots_txt,
    handle_sitemap,
    handle_well_known,
    is_sitemap_path,
    well_known_filename,
)
from agentgate.managed.origin import FetchOrigin

logger = logging.getLogger(__name__)

GEO_STAGE = "geo"


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of one stage. ``handled`` implies a response."""

    handled: bool = False
    response: Response | None = None
    error: StageError | None = None

    def __post_init__(self) -> None:
        if self.handled and self.response is None:
            raise ValueError("handled stage result requires a response")

    @classmethod
    def skip(cls) -> StageResult:
        return cls()

    @classmethod
    def done(cls, response: Response) -> StageResult:
        return cls(handled=True, response=response)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    response: Response
    applied: tuple[str, ...] = ()
    errors: tuple[StageError, ...] = ()


Stage = Callable[[RequestContext, ResolvedConfig, FetchOrigin], Awaitable[StageResult]]


# ── Managed-file stages ───────────────────────────────────────────────


async def robots_txt_stage(ctx: RequestContext, config: ResolvedConfig, fetch_origin: FetchOrigin) -> StageResult:
    robots = config.robots_txt
    if not robots.active or ctx.path != ROBOTS_PATH:
        return StageResult.skip()
    return StageResult.done(await handle_robots_txt(ctx.response, robots, fetch_origin))


async def sitemap_stage(ctx: RequestContext, config: ResolvedConfig, fetch_origin: FetchOrigin) -> StageResult:
    sitemap = config.sitemap
    if not sitemap.active or not is_sitemap_path(ctx.path):
        return StageResult.skip()
    return StageResult.done(await handle_sitemap(ctx.response, sitemap, fetch_origin))


async def well_known_stage(ctx: RequestContext, config: ResolvedConfig, fetch_origin: FetchOrigin) -> StageResult:
    well_known = config.well_known
    if not well_known.enabled:
        return StageResult.skip()
    filename = well_known_filename(ctx.path)
    if filename is None:
        return StageResult.skip()
    file = well_known.files.get(filename)
    if file is None or file.mode == ManagedFileMode.DISABLED:
        return StageResult.skip()
    return StageResult.done(handle_well_known(filename, file))


STAGES: tuple[tuple[str, Stage], ...] = (
    ("robots-txt", robots_txt_stage),
    ("sitemap", sitemap_stage),
    ("well-known", well_known_stage),
)


async def _run_stage(
    name: str,
    stage: Stage,
    ctx: RequestContext,
    config: ResolvedConfig,
    fetch_origin: FetchOrigin,
) -> StageResult:
    try:
        return await stage(ctx, config, fetch_origin)
    except Exception as e:
        logger.warning("Pipeline stage %s failed, continuing", name, exc_info=True)
        error = StageError(f"{type(e).__name__}: {e}", stage=name)
        error.__cause__ = e
        return StageResult(handled=False, error=error)


# ── Orchestrator ──────────────────────────────────────────────────────


async def run_pipeline(ctx: RequestContext, config: ResolvedConfig, fetch_origin: FetchOrigin) -> PipelineResult:
    """Run all stages for one request.

    Returns the final response plus the names of the stages that took
    effect, in order.
    """
    applied: list[str] = []
    errors: list[StageError] = []

    for name, stage in STAGES:
        result = await _run_stage(name, stage, ctx, config, fetch_origin)
        if result.error is not None:
            errors.append(result.error)
        if result.handled:
            ctx.response = result.response  # type: ignore[assignment]
            applied.append(name)
            return PipelineResult(ctx.response, tuple(applied), tuple(errors))

    if config.geo.enabled and ctx.is_ai_agent:
        try:
            outcome = optimize_response(ctx.response, ctx.url, config.geo)
        except Exception as e:
            logger.warning("Content optimization failed for %s", ctx.path, exc_info=True)
            error = StageError(f"{type(e).__name__}: {e}", stage=GEO_STAGE)
            error.__cause__ = e
            errors.append(error)
        else:
            ctx.response = outcome.response
            if outcome.modified:
                applied.append(GEO_STAGE)
                ctx.page_type = outcome.page_type

    return PipelineResult(ctx.response, tuple(applied), tuple(errors))
