"""
Dashboard pages: which panels each page shows and how page filters are resolved.
A panel that fails carries its error instead of failing the whole page.
"""

import logging
from datetime import date
from typing import Callable

from api.code_maps import GRAMMAR_ERROR_TYPES
from api.dates import default_date_range, resolve_time_range
from panels.adapters.grammar import DEFAULT_ERROR_CODE
from panels.router import build_panel, get_adapter
from ui.classnames import class_names

logger = logging.getLogger(__name__)

_TONE_PANELS = [
    "tone-shift",
    "tone-table",
    "agent-tone",
    "positive-tone",
    "negative-tone",
    "multi-customer-tone",
    "tone-alerts",
]

PAGES: dict[str, dict] = {
    "overview": {"title": "Overview", "panels": _TONE_PANELS},
    "agent-tone-analysis": {"title": "Agent Tone Analysis", "panels": _TONE_PANELS},
    "grammatical-errors": {
        "title": "Grammatical Errors",
        "panels": ["error-frequency-by-agent", "error-trends", "grammar-accuracy", "error-frequency"],
    },
    "conversations": {
        "title": "Conversations",
        "panels": ["conversation-list", "conversation-thread", "conversation-analytics"],
    },
}

TIME_RANGE_LABELS = {
    "1h": "Last Hour",
    "24h": "Last 24 Hours",
    "7d": "Last 7 Days",
    "30d": "Last 30 Days",
}

ERROR_TYPES = {
    "grammatical-error": "Grammatical Error",
    "agent-error": "Agent Error",
    "tone-error": "Tone Error",
}

FILTER_KEYS = (
    "from_date",
    "to_date",
    "time_range",
    "agent_id",
    "team_id",
    "topic",
    "error_type",
    "error_code",
    "search",
    "conversation_id",
    "chart_type",
)


def resolve_filters(page: str, raw: dict, *, today: date | None = None) -> tuple[dict, list[dict]]:
    """
    Fill defaults and collect the active filter chips.

    Dates default to the first of the month through today; a time_range preset
    replaces explicit dates. The grammar page always has an error code (G_101 by default).

    Returns:
        (filters, active_filters) where each chip is {"type", "value", "label"}.
    """
    filters = {k: raw.get(k) for k in FILTER_KEYS if raw.get(k) not in (None, "")}
    chips = []

    time_range = filters.get("time_range")
    if time_range:
        filters["from_date"], filters["to_date"] = resolve_time_range(time_range, today)
        chips.append({"type": "time", "value": time_range, "label": TIME_RANGE_LABELS[time_range]})
    elif not filters.get("from_date") or not filters.get("to_date"):
        filters["from_date"], filters["to_date"] = default_date_range(today)

    if filters.get("agent_id"):
        chips.append({"type": "agent", "value": filters["agent_id"], "label": f"Agent {filters['agent_id']}"})
    if filters.get("team_id"):
        chips.append({"type": "team", "value": filters["team_id"], "label": filters["team_id"].replace("TEAM_", "Team ")})
    if filters.get("topic"):
        chips.append({"type": "topic", "value": filters["topic"], "label": filters["topic"]})
    if filters.get("error_type"):
        error_type = filters["error_type"]
        chips.append({"type": "error-type", "value": error_type, "label": ERROR_TYPES.get(error_type, error_type)})

    if page == "grammatical-errors":
        if filters.get("error_code"):
            code = filters["error_code"]
            chips.append({"type": "error-code", "value": code, "label": GRAMMAR_ERROR_TYPES.get(code, code)})
        else:
            filters["error_code"] = DEFAULT_ERROR_CODE
    return filters, chips


def _failed_panel(panel_id: str, filters: dict, error: Exception) -> dict:
    adapter = get_adapter(panel_id)
    return {
        "id": panel_id,
        "title": adapter.title,
        "kind": adapter.kind,
        "filters": filters,
        "error": str(error),
        "empty": True,
    }


def build_page(
    page: str,
    raw_filters: dict,
    *,
    today: date | None = None,
    sleep: Callable[[float], None] | None = None,
) -> dict:
    """Resolve filters and build every panel of a page, in page order."""
    page_def = PAGES.get(page)
    if page_def is None:
        raise ValueError(f"Unknown page: {page}. Expected one of {list(PAGES)}")
    filters, chips = resolve_filters(page, raw_filters, today=today)

    panels = []
    for panel_id in page_def["panels"]:
        try:
            panel = build_panel(panel_id, filters, sleep=sleep)
        except Exception as e:
            logger.warning("Panel failed page=%s panel=%s error=%s", page, panel_id, e)
            panel = _failed_panel(panel_id, filters, e)
        panel["className"] = class_names(
            "panel",
            f"panel--{panel['kind']}",
            {"panel--error": bool(panel.get("error")), "panel--empty": panel.get("empty") and not panel.get("error")},
        )
        panels.append(panel)

    return {
        "page": page,
        "title": page_def["title"],
        "filters": filters,
        "activeFilters": chips,
        "panels": panels,
    }
