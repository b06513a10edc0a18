"""
Grammar panels: accuracy across teams, error frequency by agent, error frequency (pie)
and error trends. Bar and trend panels check their filters the same way before fetching.
"""

import re
from datetime import datetime, timezone
from typing import Any

from api import proxy
from api.errors import UpstreamError, ValidationError
from panels.base import BasePanelAdapter

_ERROR_CODE_RE = re.compile(r"^G_1\d{2}$")

DEFAULT_ERROR_CODE = "G_101"


def normalize_bar_rows(result: Any) -> list[dict]:
    """[{id|agent_id, current, previous}] -> [{id, current, previous}] with numeric fallbacks."""
    if not isinstance(result, list) or not all(isinstance(item, dict) for item in result):
        raise UpstreamError("Invalid data format received from API")
    return [
        {
            "id": str(item.get("id") or item.get("agent_id") or "unknown"),
            "current": BasePanelAdapter._number(item.get("current")),
            "previous": BasePanelAdapter._number(item.get("previous")),
        }
        for item in result
    ]


class _BarPanelAdapter(BasePanelAdapter):
    is_team = False

    def validate(self, filters: dict) -> None:
        self._require_dates(filters)
        code = filters.get("error_code")
        if not code:
            raise ValidationError("error_code is required for bar data")
        if not _ERROR_CODE_RE.match(code):
            raise ValidationError("Invalid error code format. Expected format: G_1XX")

    def _fetch_bar(self, filters: dict) -> list[dict]:
        result = proxy.grammar_bar(
            filters.get("from_date"),
            filters.get("to_date"),
            filters.get("error_code"),
            self.is_team,
        )
        return normalize_bar_rows(result)


class GrammarAccuracyAdapter(_BarPanelAdapter):
    """Current vs previous error counts per team."""

    title = "Grammatical Accuracy Across Teams"
    is_team = True

    @property
    def panel_id(self) -> str:
        return "grammar-accuracy"

    def fetch_data(self, filters: dict) -> list[dict]:
        return self._fetch_bar(filters)

    def build_body(self, filters: dict, raw: list[dict]) -> dict:
        series = [{"name": r["id"], "current": r["current"], "previous": r["previous"]} for r in raw]
        return {"series": series, "empty": not series}


class ErrorFrequencyByAgentAdapter(_BarPanelAdapter):
    """Current vs previous error counts per agent, labelled with the agent's team."""

    title = "Error Frequency by Agent"

    @property
    def panel_id(self) -> str:
        return "error-frequency-by-agent"

    def fetch_data(self, filters: dict) -> dict:
        return {
            "bar": self._fetch_bar(filters),
            "teams": proxy.normalize_team_map(proxy.team_map()),
        }

    def build_body(self, filters: dict, raw: dict) -> dict:
        team_of = {agent: team for team, agents in raw["teams"].items() for agent in agents}
        series = [
            {
                "name": f"{team_of.get(r['id'], 'Unknown')} - {r['id']}",
                "current": r["current"],
                "previous": r["previous"],
            }
            for r in raw["bar"]
        ]
        return {"series": series, "empty": not series}


def _is_timestamp_based(data: dict) -> bool:
    """{timestamp: {agent: {code: count}}} rather than {code: {value, conversation_id_list}}."""
    for value in data.values():
        if isinstance(value, dict) and value and all(isinstance(v, dict) for v in value.values()):
            return True
    return False


def aggregate_error_counts(data: dict) -> dict[str, dict]:
    """Per-code {value, conversation_id_list}; timestamp-keyed data uses the latest timestamp summed over agents."""
    if not _is_timestamp_based(data):
        return {
            code: {
                "value": BasePanelAdapter._number(entry.get("value")),
                "conversation_id_list": list(entry.get("conversation_id_list") or []),
            }
            for code, entry in data.items()
            if isinstance(entry, dict)
        }
    latest = data[max(data)]
    counts: dict[str, dict] = {}
    for agent_counts in latest.values():
        for code, count in agent_counts.items():
            entry = counts.setdefault(code, {"value": 0, "conversation_id_list": []})
            entry["value"] += BasePanelAdapter._number(count)
    return counts


class ErrorFrequencyAdapter(BasePanelAdapter):
    """One slice per known grammar error type."""

    title = "Error Frequency"

    @property
    def panel_id(self) -> str:
        return "error-frequency"

    def fetch_data(self, filters: dict) -> dict:
        mapper = proxy.grammar_mapper()
        if not mapper:
            raise UpstreamError("No grammar types available")
        pie = proxy.grammar_pie(
            filters.get("from_date"),
            filters.get("to_date"),
            agent_id=filters.get("agent_id"),
        )
        if not isinstance(pie, dict) or not pie:
            raise UpstreamError("No error frequency data available")
        return {"mapper": mapper, "pie": pie}

    def build_body(self, filters: dict, raw: dict) -> dict:
        counts = aggregate_error_counts(raw["pie"])
        slices = []
        for code, name in raw["mapper"].items():
            entry = counts.get(code) or {"value": 0, "conversation_id_list": []}
            slices.append(
                {
                    "code": code,
                    "name": name,
                    "value": entry["value"],
                    "conversationCount": len(entry["conversation_id_list"]),
                }
            )
        return {"slices": slices, "empty": not any(s["value"] for s in slices)}


def _trend_date(item: dict) -> str:
    if isinstance(item.get("date"), str):
        return item["date"]
    ts = item.get("timestamp")
    if isinstance(ts, (int, float)):
        # epoch milliseconds
        return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
    if isinstance(ts, str):
        return ts[:10]
    raise UpstreamError("Invalid data format received from API")


class ErrorTrendsAdapter(BasePanelAdapter):
    """Daily count of one grammar error code."""

    title = "Error Trends Over Time"

    @property
    def panel_id(self) -> str:
        return "error-trends"

    def validate(self, filters: dict) -> None:
        self._require_dates(filters)

    def fetch_data(self, filters: dict) -> list[dict]:
        result = proxy.grammar_trends(
            filters.get("from_date"),
            filters.get("to_date"),
            filters.get("error_code") or DEFAULT_ERROR_CODE,
            False,
        )
        if not isinstance(result, list):
            raise UpstreamError("Invalid data format received from API")
        return result

    def build_body(self, filters: dict, raw: list[dict]) -> dict:
        series = [{"date": _trend_date(item), "value": self._number(item.get("value"))} for item in raw]
        return {
            "errorCode": filters.get("error_code") or DEFAULT_ERROR_CODE,
            "series": series,
            "empty": not series,
        }
