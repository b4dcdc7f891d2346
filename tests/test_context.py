# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for RequestContext construction."""

from __future__ import annotations

from starlette.responses import Response

from agentgate.context import TRAFFIC_GOOD_BOT, TRAFFIC_HUMAN, build_context, edge_metadata
from agentgate.geo.agents import AgentCategory


class TestBuildContext:
    def test_ai_agent(self, make_request):
        request = make_request("/docs/intro", headers={"user-agent": "PerplexityBot/1.0"})
        ctx = build_context(request, Response("ok"))
        assert ctx.is_ai_agent
        assert ctx.agent_name == "PerplexityBot"
        assert ctx.agent_category == AgentCategory.SEARCH
        assert "perplexity" in ctx.agent_tags
        assert ctx.traffic_type == TRAFFIC_GOOD_BOT

    def test_human(self, make_request):
        ctx = build_context(make_request("/", headers={"user-agent": "Mozilla/5.0 Firefox/128.0"}), Response())
        assert not ctx.is_ai_agent
        assert ctx.agent_name is None
        assert ctx.agent_tags == ()
        assert ctx.traffic_type == TRAFFIC_HUMAN

    def test_url_properties(self, make_request):
        ctx = build_context(make_request("/a/b", host="shop.example.com", query="x=1"), Response())
        assert ctx.path == "/a/b"
        assert ctx.hostname == "shop.example.com"
        assert str(ctx.url) == "https://shop.example.com/a/b?x=1"

    def test_response_and_session(self, make_request):
        response = Response("body")
        ctx = build_context(make_request(), response, session_id="sid-1")
        assert ctx.response is response
        assert ctx.session_id == "sid-1"
        assert ctx.page_type is None


class TestClientIp:
    def test_state_wins(self, make_request):
        request = make_request(state={"client_ip": "198.51.100.1"}, headers={"cf-connecting-ip": "192.0.2.9"})
        assert build_context(request, Response()).client_ip == "198.51.100.1"

    def test_edge_header(self, make_request):
        request = make_request(headers={"cf-connecting-ip": "192.0.2.9"})
        assert build_context(request, Response()).client_ip == "192.0.2.9"

    def test_asgi_client(self, make_request):
        assert build_context(make_request(), Response()).client_ip == "203.0.113.7"

    def test_no_client(self, make_request):
        assert build_context(make_request(client=None), Response()).client_ip == ""


class TestEdgeMetadata:
    def test_country_from_cf_mapping(self, make_request):
        request = make_request(state={"cf": {"country": "DE"}}, headers={"cf-ipcountry": "FR"})
        assert build_context(request, Response()).country == "DE"

    def test_country_from_header(self, make_request):
        assert build_context(make_request(headers={"cf-ipcountry": "FR"}), Response()).country == "FR"

    def test_no_country(self, make_request):
        assert build_context(make_request(), Response()).country is None

    def test_non_mapping_cf_is_ignored(self):
        assert edge_metadata({"state": {"cf": "nope"}}) == {}
        assert edge_metadata({}) == {}


class TestRequestId:
    def test_from_state(self, make_request):
        assert build_context(make_request(state={"request_id": "req-42"}), Response()).request_id == "req-42"

    def test_generated(self, make_request):
        first = build_context(make_request(), Response()).request_id
        second = build_context(make_request(), Response()).request_id
        assert len(first) == 32
        assert first != second
