# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AI agent detection from the User-Agent header.

The registry is static data shipped with each release; nothing is looked up
at request time. Matching is a case-insensitive substring test, first entry
wins, so more specific tokens must precede tokens they contain.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AgentCategory(StrEnum):
    CRAWLER = "ai-crawler"
    AGENT = "ai-agent"
    SEARCH = "ai-search"


@dataclass(frozen=True, slots=True)
class AgentDefinition:
    token: str
    name: str
    category: AgentCategory
    tags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class AgentMatch:
    is_ai_agent: bool
    name: str | None = None
    category: AgentCategory | None = None
    tags: tuple[str, ...] = ()


NOT_AN_AGENT = AgentMatch(is_ai_agent=False)

_C, _A, _S = AgentCategory.CRAWLER, AgentCategory.AGENT, AgentCategory.SEARCH

AGENT_REGISTRY: tuple[AgentDefinition, ...] = (
    # OpenAI
    AgentDefinition("GPTBot", "GPTBot", _C, ("openai", "llm-training")),
    AgentDefinition("ChatGPT-User", "ChatGPT-User", _A, ("openai", "conversational")),
    AgentDefinition("OAI-SearchBot", "OAI-SearchBot", _S, ("openai", "search")),
    # Anthropic
    AgentDefinition("ClaudeBot", "ClaudeBot", _C, ("anthropic", "llm-training")),
    AgentDefinition("Anthropic-AI", "Anthropic-AI", _C, ("anthropic", "llm-training")),
    AgentDefinition("Claude-SearchBot", "Claude-SearchBot", _S, ("anthropic", "search")),
    # Google
    AgentDefinition("Google-Extended", "Google-Extended", _C, ("google", "llm-training")),
    AgentDefinition("GoogleAgent-Mariner", "GoogleAgent-Mariner", _A, ("google", "agent")),
    AgentDefinition("Google-CloudVertexBot", "Google-CloudVertexBot", _C, ("google", "vertex")),
    # Others
    AgentDefinition("Amazonbot", "Amazonbot", _C, ("amazon", "alexa")),
    AgentDefinition("Bytespider", "Bytespider", _C, ("bytedance", "llm-training")),
    AgentDefinition("CCBot", "CCBot", _C, ("commoncrawl", "llm-training")),
    AgentDefinition("cohere-ai", "Cohere-AI", _C, ("cohere", "llm-training")),
    AgentDefinition("PerplexityBot", "PerplexityBot", _S, ("perplexity", "search")),
    AgentDefinition("Meta-ExternalAgent", "Meta-ExternalAgent", _C, ("meta", "llm-training")),
    AgentDefinition("FacebookBot", "FacebookBot", _C, ("meta", "social")),
    AgentDefinition("Applebot-Extended", "Applebot-Extended", _C, ("apple", "llm-training")),
    AgentDefinition("Bingbot", "Bingbot", _S, ("microsoft", "search")),
    AgentDefinition("MistralBot", "MistralBot", _C, ("mistral", "llm-training")),
    AgentDefinition("YouBot", "YouBot", _S, ("you.com", "search")),
    AgentDefinition("Brave-Search", "Brave-Search", _S, ("brave", "search")),
)

_LOWERED: tuple[tuple[str, AgentDefinition], ...] = tuple((d.token.lower(), d) for d in AGENT_REGISTRY)


def detect_agent(user_agent: str | None) -> AgentMatch:
    if not user_agent:
        return NOT_AN_AGENT
    ua = user_agent.lower()
    for token, definition in _LOWERED:
        if token in ua:
            return AgentMatch(
                is_ai_agent=True,
                name=definition.name,
                category=definition.category,
                tags=definition.tags,
            )
    return NOT_AN_AGENT
