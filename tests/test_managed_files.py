# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the robots.txt, sitemap and .well-known handlers."""

from __future__ import annotations

import gzip

import pytest
from starlette.responses import HTMLResponse, PlainTextResponse, Response

from agentgate.config import ManagedFileConfig, WellKnownFile
from agentgate.managed import handle_robots_txt, handle_sitemap, handle_well_known, is_sitemap_path, well_known_filename
from agentgate.managed.merge import MANAGED_SEPARATOR
from agentgate.managed.well_known import content_type_for

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Origin:
    """Lazy origin fetch callback that counts calls."""

    def __init__(self, response: Response | Exception):
        self.response = response
        self.calls = 0

    async def __call__(self) -> Response:
        self.calls += 1
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


ORIGIN_ROBOTS = "User-agent: *\nAllow: /"
MANAGED_ROBOTS = "User-agent: *\nDisallow: /private"


def _robots(mode: str, content: str | None = MANAGED_ROBOTS) -> ManagedFileConfig:
    return ManagedFileConfig(enabled=True, mode=mode, content=content)


# ---------------------------------------------------------------------------
# robots.txt
# ---------------------------------------------------------------------------


class TestRobotsTxt:
    async def test_replace_serves_content_without_origin(self):
        origin = _Origin(PlainTextResponse(ORIGIN_ROBOTS))
        response = await handle_robots_txt(PlainTextResponse(ORIGIN_ROBOTS), _robots("replace"), origin)
        assert response.body.decode() == MANAGED_ROBOTS
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.headers["x-agentgate-managed"] == "robots-txt"
        assert response.headers["x-agentgate-mode"] == "replace"
        assert origin.calls == 0

    async def test_merge(self):
        origin = _Origin(PlainTextResponse(ORIGIN_ROBOTS))
        response = await handle_robots_txt(PlainTextResponse(ORIGIN_ROBOTS), _robots("merge"), origin)
        assert response.body.decode() == "User-agent: *\nDisallow: /private"
        assert response.headers["x-agentgate-mode"] == "merge"
        assert origin.calls == 1

    async def test_append(self):
        origin = _Origin(PlainTextResponse(ORIGIN_ROBOTS))
        response = await handle_robots_txt(PlainTextResponse(ORIGIN_ROBOTS), _robots("append"), origin)
        assert response.body.decode() == f"{ORIGIN_ROBOTS}\n\n{MANAGED_SEPARATOR}\n{MANAGED_ROBOTS}\n"
        assert response.headers["x-agentgate-mode"] == "append"

    @pytest.mark.parametrize(
        "origin_response",
        [
            PlainTextResponse("Not Found", status_code=404),
            HTMLResponse("<html>User-agent: *</html>"),
            RuntimeError("origin unreachable"),
        ],
    )
    async def test_unusable_origin_counts_as_empty(self, origin_response):
        response = await handle_robots_txt(Response(), _robots("append"), _Origin(origin_response))
        assert response.body.decode() == f"{MANAGED_SEPARATOR}\n{MANAGED_ROBOTS}\n"

    async def test_compressed_origin_counts_as_empty(self):
        origin = PlainTextResponse(gzip.compress(ORIGIN_ROBOTS.encode()), headers={"Content-Encoding": "gzip"})
        response = await handle_robots_txt(Response(), _robots("append"), _Origin(origin))
        assert response.body.decode() == f"{MANAGED_SEPARATOR}\n{MANAGED_ROBOTS}\n"

    async def test_unknown_mode_returns_origin(self):
        original = PlainTextResponse(ORIGIN_ROBOTS)
        assert await handle_robots_txt(original, _robots("prepend"), _Origin(original)) is original

    async def test_missing_content_replaces_with_empty_file(self):
        response = await handle_robots_txt(Response(), _robots("replace", content=None), _Origin(Response()))
        assert response.body == b""
        assert response.status_code == 200


# ---------------------------------------------------------------------------
# Sitemaps
# ---------------------------------------------------------------------------

ORIGIN_SITEMAP = "<urlset><url><loc>https://example.com/</loc></url></urlset>"
MANAGED_SITEMAP = "<urlset><url><loc>https://example.com/pricing</loc></url></urlset>"


def _xml(body: str) -> Response:
    return Response(body, media_type="application/xml")


class TestSitemap:
    @pytest.mark.parametrize("path", ["/sitemap.xml", "/sitemap-posts.xml", "/sitemap-2026_01.xml"])
    def test_sitemap_paths(self, path):
        assert is_sitemap_path(path)

    @pytest.mark.parametrize("path", ["/sitemap.xml.gz", "/blog/sitemap.xml", "/sitemap_index.xml", "/sitemap"])
    def test_other_paths(self, path):
        assert not is_sitemap_path(path)

    async def test_replace(self):
        config = ManagedFileConfig(enabled=True, mode="replace", content=MANAGED_SITEMAP)
        origin = _Origin(_xml(ORIGIN_SITEMAP))
        response = await handle_sitemap(_xml(ORIGIN_SITEMAP), config, origin)
        assert response.body.decode() == MANAGED_SITEMAP
        assert response.headers["content-type"] == "application/xml; charset=utf-8"
        assert response.headers["x-agentgate-managed"] == "sitemap"
        assert response.headers["x-agentgate-mode"] == "replace"
        assert origin.calls == 0

    @pytest.mark.parametrize("mode", ["merge", "append"])
    async def test_merge_and_append_produce_union(self, mode):
        config = ManagedFileConfig(enabled=True, mode=mode, content=MANAGED_SITEMAP)
        response = await handle_sitemap(_xml(ORIGIN_SITEMAP), config, _Origin(_xml(ORIGIN_SITEMAP)))
        body = response.body.decode()
        assert "<loc>https://example.com/</loc>" in body
        assert "<loc>https://example.com/pricing</loc>" in body
        assert response.headers["x-agentgate-mode"] == "merge"

    async def test_non_xml_origin_ignored(self):
        config = ManagedFileConfig(enabled=True, mode="merge", content=MANAGED_SITEMAP)
        origin = _Origin(HTMLResponse("<html><loc>https://example.com/html</loc></html>"))
        response = await handle_sitemap(Response(), config, origin)
        assert "html</loc>" not in response.body.decode()

    async def test_unknown_mode_returns_origin(self):
        original = _xml(ORIGIN_SITEMAP)
        config = ManagedFileConfig(enabled=True, mode="bogus")
        assert await handle_sitemap(original, config, _Origin(original)) is original


# ---------------------------------------------------------------------------
# .well-known
# ---------------------------------------------------------------------------


class TestWellKnown:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/.well-known/llms.txt", "llms.txt"),
            ("/.well-known/ai-plugin.json", "ai-plugin.json"),
            ("/.well-known/", None),
            ("/well-known/llms.txt", None),
            ("/llms.txt", None),
        ],
    )
    def test_filename(self, path, expected):
        assert well_known_filename(path) == expected

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("ai-plugin.json", "application/json"),
            ("llms.txt", "text/plain; charset=utf-8"),
            ("security.txt", "text/plain; charset=utf-8"),
            ("openid-configuration.json", "application/json"),
            ("assetlinks.xml", "application/xml; charset=utf-8"),
            ("apple-app-site-association", "text/plain; charset=utf-8"),
        ],
    )
    def test_content_type(self, filename, expected):
        assert content_type_for(filename) == expected

    def test_serves_content(self):
        response = handle_well_known("llms.txt", WellKnownFile(content="# Example\n> Docs for agents"))
        assert response.status_code == 200
        assert response.body.decode() == "# Example\n> Docs for agents"
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.headers["x-agentgate-managed"] == "well-known"
        assert response.headers["x-agentgate-file"] == "llms.txt"

    def test_json_file(self):
        response = handle_well_known("ai-plugin.json", WellKnownFile(content='{"schema_version": "v1"}'))
        assert response.headers["content-type"] == "application/json"

    @pytest.mark.parametrize(
        "file",
        [WellKnownFile(content=None), WellKnownFile(content=""), WellKnownFile(mode="disabled", content="x")],
    )
    def test_empty_or_disabled_is_404(self, file):
        response = handle_well_known("llms.txt", file)
        assert response.status_code == 404
        assert response.body == b"Not Found"
        assert "x-agentgate-managed" not in response.headers
