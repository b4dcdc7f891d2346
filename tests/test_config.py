# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for managed-rules models and layered resolution."""

from __future__ import annotations

import pytest

from agentgate.config import (
    DEFAULT_CONFIG,
    ManagedFileConfig,
    ManagedFileMode,
    ManagedRulesConfig,
    PageRule,
    RemoteConfigBundle,
    load_managed_rules,
    merge_rules,
    resolve_config,
)
from agentgate.errors import ConfigurationError
from agentgate.geo.classifier import PageType

# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class TestInputModels:
    def test_camel_case_wire_format(self):
        bundle = RemoteConfigBundle.model_validate(
            {
                "robotsTxt": {"enabled": True, "mode": "replace", "content": "User-agent: *"},
                "wellKnown": {"enabled": True, "files": {"llms.txt": {"content": "# Site"}}},
                "geo": {
                    "injectJsonLd": False,
                    "pageTypes": ["product", "faq"],
                    "rules": [{"urlPattern": "/p/*", "pageType": "product", "customJsonLd": {"brand": "Acme"}}],
                },
            }
        )
        assert bundle.robots_txt.mode == "replace"
        assert bundle.well_known.files["llms.txt"].content == "# Site"
        assert bundle.geo.inject_json_ld is False
        assert bundle.geo.page_types == (PageType.PRODUCT, PageType.FAQ)
        rule = bundle.geo.rules[0]
        assert rule.url_pattern == "/p/*"
        assert rule.page_type == PageType.PRODUCT
        assert rule.custom_structured_data == {"brand": "Acme"}

    def test_snake_case_accepted(self):
        config = ManagedRulesConfig.model_validate({"robots_txt": {"mode": "merge"}, "geo": {"enrich_headings": False}})
        assert config.robots_txt.mode == "merge"
        assert config.geo.enrich_headings is False

    def test_unknown_keys_ignored(self):
        bundle = RemoteConfigBundle.model_validate({"futureFeature": {"x": 1}, "sitemap": {"mode": "merge", "y": 2}})
        assert bundle.sitemap.mode == "merge"

    def test_unknown_mode_is_accepted_and_active(self):
        bundle = RemoteConfigBundle.model_validate({"robotsTxt": {"enabled": True, "mode": "prepend"}})
        resolved = resolve_config(remote=bundle)
        assert resolved.robots_txt.mode == "prepend"
        assert resolved.robots_txt.active

    def test_unknown_page_type_is_dropped(self):
        bundle = RemoteConfigBundle.model_validate(
            {
                "geo": {
                    "pageTypes": ["product", "landing"],
                    "rules": [
                        {"urlPattern": "/lp/*", "pageType": "landing", "summary": "Landing page"},
                        {"urlPattern": "/p/*", "pageType": "product"},
                    ],
                }
            }
        )
        assert bundle.geo.page_types == (PageType.PRODUCT,)
        assert bundle.geo.rules[0].page_type is None
        assert bundle.geo.rules[0].summary == "Landing page"
        assert bundle.geo.rules[1].page_type == PageType.PRODUCT


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_empty_inputs_resolve_to_defaults(self):
        assert resolve_config() == DEFAULT_CONFIG
        assert resolve_config(ManagedRulesConfig(), RemoteConfigBundle()) == DEFAULT_CONFIG

    def test_default_values(self):
        assert DEFAULT_CONFIG.robots_txt == ManagedFileConfig(enabled=False, mode=ManagedFileMode.APPEND)
        assert DEFAULT_CONFIG.sitemap.mode == ManagedFileMode.MERGE
        assert not DEFAULT_CONFIG.well_known.enabled
        assert dict(DEFAULT_CONFIG.well_known.files) == {}
        geo = DEFAULT_CONFIG.geo
        assert not geo.enabled
        assert geo.inject_json_ld and geo.inject_summary and geo.enrich_headings
        assert geo.page_types is None
        assert geo.rules == ()


class TestLayering:
    def test_remote_overrides_single_field(self):
        local = ManagedRulesConfig.model_validate({"robotsTxt": {"enabled": True, "mode": "merge", "content": "A"}})
        remote = RemoteConfigBundle.model_validate({"robotsTxt": {"mode": "replace"}})
        resolved = resolve_config(local, remote)
        assert resolved.robots_txt == ManagedFileConfig(enabled=True, mode="replace", content="A")

    def test_local_overrides_defaults(self):
        local = ManagedRulesConfig.model_validate({"geo": {"enabled": True, "injectSummary": False}})
        geo = resolve_config(local).geo
        assert geo.enabled
        assert not geo.inject_summary
        assert geo.inject_json_ld

    def test_remote_can_switch_off(self):
        local = ManagedRulesConfig.model_validate({"geo": {"enabled": True}})
        remote = RemoteConfigBundle.model_validate({"geo": {"enabled": False}})
        assert not resolve_config(local, remote).geo.enabled

    def test_resolved_config_is_immutable(self):
        resolved = resolve_config()
        with pytest.raises(AttributeError):
            resolved.geo = None  # type: ignore[misc]
        with pytest.raises(TypeError):
            resolved.well_known.files["x"] = None  # type: ignore[index]


class TestWellKnownMerge:
    def test_files_merged_by_name(self):
        local = ManagedRulesConfig.model_validate(
            {
                "wellKnown": {
                    "enabled": True,
                    "files": {
                        "llms.txt": {"mode": "replace", "content": "local llms"},
                        "security.txt": {"content": "Contact: mailto:sec@example.com"},
                    },
                }
            }
        )
        remote = RemoteConfigBundle.model_validate(
            {"wellKnown": {"files": {"llms.txt": {"mode": "disabled"}, "ai-plugin.json": {"content": "{}"}}}}
        )
        well_known = resolve_config(local, remote).well_known
        assert well_known.enabled
        assert list(well_known.files) == ["llms.txt", "security.txt", "ai-plugin.json"]
        assert well_known.files["llms.txt"].mode == "disabled"
        assert well_known.files["llms.txt"].content == "local llms"
        assert well_known.files["security.txt"].mode == ManagedFileMode.REPLACE
        assert well_known.files["ai-plugin.json"].content == "{}"


class TestRuleMerge:
    def test_keyed_by_url_pattern(self):
        local = (
            PageRule(url_pattern="/a/**", page_type="faq"),
            PageRule(url_pattern="/b"),
        )
        remote = (
            PageRule(url_pattern="/a/**", summary="S"),
            PageRule(url_pattern="/c", disabled=True),
        )
        merged = merge_rules(local, remote)
        assert [r.url_pattern for r in merged] == ["/a/**", "/b", "/c"]
        assert merged[0].page_type == PageType.FAQ
        assert merged[0].summary == "S"
        assert merged[2].disabled

    def test_patterns_compared_exactly(self):
        merged = merge_rules((PageRule(url_pattern="/a/**"),), (PageRule(url_pattern="/a/**/"),))
        assert len(merged) == 2

    def test_through_resolve_config(self):
        local = ManagedRulesConfig.model_validate({"geo": {"rules": [{"urlPattern": "/x", "summary": "local"}]}})
        remote = RemoteConfigBundle.model_validate({"geo": {"rules": [{"urlPattern": "/x", "summary": "remote"}]}})
        rules = resolve_config(local, remote).geo.rules
        assert len(rules) == 1
        assert rules[0].summary == "remote"


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------


class TestLoadManagedRules:
    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "agentgate.yaml"
        path.write_text(
            "robotsTxt:\n"
            "  enabled: true\n"
            "  mode: append\n"
            "  content: |\n"
            "    User-agent: GPTBot\n"
            "    Disallow: /private\n"
            "geo:\n"
            "  enabled: true\n"
            "  rules:\n"
            "    - url_pattern: /docs/**\n"
            "      page_type: docs\n",
            encoding="utf-8",
        )
        config = load_managed_rules(path)
        assert config.robots_txt.content == "User-agent: GPTBot\nDisallow: /private\n"
        assert config.geo.rules[0].page_type == PageType.DOCS

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_managed_rules(path) == ManagedRulesConfig()

    @pytest.mark.parametrize(
        "content",
        [
            "robotsTxt: [unclosed\n",
            "- just\n- a list\n",
            "geo:\n  enabled: sometimes\n",
        ],
    )
    def test_invalid_files_raise(self, tmp_path, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_managed_rules(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_managed_rules(tmp_path / "nope.yaml")
