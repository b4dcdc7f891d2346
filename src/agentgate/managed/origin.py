# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Origin content for append/merge modes."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from starlette.responses import Response

from agentgate.responses import is_encoded, media_type, response_text

logger = logging.getLogger(__name__)

FetchOrigin = Callable[[], Awaitable[Response]]


async def fetch_origin_text(fetch_origin: FetchOrigin, *, accept: Callable[[str], bool]) -> str:
    """Body of the origin response, or "" when it is not usable.

    Non-200 responses, compressed bodies and media types rejected by *accept*
    count as empty input. A failing origin fetch does too.
    """
    try:
        response = await fetch_origin()
    except Exception:
        logger.debug("Origin fetch failed, treating origin content as empty", exc_info=True)
        return ""
    if response.status_code != 200 or is_encoded(response) or not accept(media_type(response)):
        return ""
    return response_text(response)
