"""Avaflow analytics API client."""

from api.avaflow.client import (
    build_url,
    fetch_json,
    get_conversation,
    get_conversation_analysis,
    get_conversation_heads,
    get_grammar_bar,
    get_grammar_mapper,
    get_grammar_pie,
    get_grammar_trends,
    get_team_map,
    get_tone_agent,
    get_tone_alerts,
    get_tone_analysis,
    get_tone_mapper,
    get_tone_multi_customer,
    get_tone_shift,
)

__all__ = [
    "build_url",
    "fetch_json",
    "get_conversation",
    "get_conversation_analysis",
    "get_conversation_heads",
    "get_grammar_bar",
    "get_grammar_mapper",
    "get_grammar_pie",
    "get_grammar_trends",
    "get_team_map",
    "get_tone_agent",
    "get_tone_alerts",
    "get_tone_analysis",
    "get_tone_mapper",
    "get_tone_multi_customer",
    "get_tone_shift",
]
