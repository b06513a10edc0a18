"""
Tone panels: tone shifts, tone analysis by agent (table and chart), positive/negative
tone breakdowns, tone vs multiple customers, and negative-tone alerts.
All of them require a from/to date pair.
"""

from typing import Any

from api import proxy
from api.code_maps import get_tone_map, is_positive_tone, tone_name
from api.errors import UpstreamError
from panels.base import BasePanelAdapter

LOW_SCORE_THRESHOLD = 40


def _agent_filter(filters: dict) -> tuple[str | None, str | None, str | None]:
    return filters.get("from_date"), filters.get("to_date"), filters.get("agent_id")


def _single_entry(item: Any) -> tuple[str, dict]:
    """Upstream lists hold one-key objects: [{"<id>": {...}}]."""
    if not isinstance(item, dict) or not item:
        raise UpstreamError("Invalid data format received from API")
    key, value = next(iter(item.items()))
    if not isinstance(value, dict):
        raise UpstreamError("Invalid data format received from API")
    return str(key), value


class _TonePanelAdapter(BasePanelAdapter):
    def validate(self, filters: dict) -> None:
        self._require_dates(filters)


class ToneShiftAdapter(_TonePanelAdapter):
    """Average tone per conversation stage, scaled to [-1, 1]."""

    title = "Tone Shifts During Conversations"

    @property
    def panel_id(self) -> str:
        return "tone-shift"

    def fetch_data(self, filters: dict) -> dict:
        return proxy.tone_shift(*_agent_filter(filters))

    def build_body(self, filters: dict, raw: dict) -> dict:
        if not isinstance(raw, dict):
            raise UpstreamError("Invalid data format received from API")
        series = []
        for stage, value in raw.items():
            try:
                num = float(value)
            except (TypeError, ValueError):
                continue
            if num != num:  # NaN
                continue
            series.append({"stage": stage, "value": min(max(num / 100, -1.0), 1.0)})
        series.sort(key=lambda s: s["stage"])
        return {"series": series, "empty": not series}


def agent_tone_rows(raw: Any, tone_map: dict[str, str]) -> list[dict]:
    """[{agentId: {data: {code: n, overall_score}, conversation_id_list}}] -> labelled rows."""
    if not isinstance(raw, list):
        raise UpstreamError("Invalid data format received from API")
    rows = []
    for item in raw:
        agent_id, agent_data = _single_entry(item)
        data = agent_data.get("data") or {}
        tones = {tone_name(code, tone_map): value for code, value in data.items() if code != "overall_score"}
        overall = BasePanelAdapter._number(data.get("overall_score"))
        rows.append(
            {
                "id": agent_id,
                "overallScore": overall,
                "tones": tones,
                "conversationIds": list(agent_data.get("conversation_id_list") or []),
                "lowScore": overall <= LOW_SCORE_THRESHOLD,
            }
        )
    return rows


class ToneTableAdapter(_TonePanelAdapter):
    """Per-agent tone counts with the overall score flagged when low."""

    title = "Tone Analysis by Agent"
    kind = "table"

    @property
    def panel_id(self) -> str:
        return "tone-table"

    def fetch_data(self, filters: dict) -> dict:
        return {"toneMap": get_tone_map(), "agents": proxy.tone_agent(*_agent_filter(filters))}

    def build_body(self, filters: dict, raw: dict) -> dict:
        rows = agent_tone_rows(raw["agents"], raw["toneMap"])
        columns = sorted({label for row in rows for label in row["tones"]})
        return {"columns": columns, "rows": rows, "empty": not rows}


class AgentToneAdapter(ToneTableAdapter):
    """Overall tone score per agent as a bar chart."""

    title = "Agent Tone Scores"
    kind = "chart"

    @property
    def panel_id(self) -> str:
        return "agent-tone"

    def build_body(self, filters: dict, raw: dict) -> dict:
        rows = agent_tone_rows(raw["agents"], raw["toneMap"])
        series = [{"name": row["id"], "value": row["overallScore"]} for row in rows]
        return {"series": series, "rows": rows, "empty": not series}


class ToneAnalysisAdapter(_TonePanelAdapter):
    """Positive or negative tone label -> message count."""

    def __init__(self, is_positive: bool):
        self.is_positive = is_positive
        self.title = "Positive Tone Analysis" if is_positive else "Negative Tone Analysis"

    @property
    def panel_id(self) -> str:
        return "positive-tone" if self.is_positive else "negative-tone"

    def fetch_data(self, filters: dict) -> dict:
        from_date, to_date, agent_id = _agent_filter(filters)
        return {
            "toneMap": get_tone_map(),
            "analysis": proxy.tone_analysis(from_date, to_date, agent_id, is_positive=self.is_positive),
        }

    def build_body(self, filters: dict, raw: dict) -> dict:
        analysis = raw["analysis"]
        if not isinstance(analysis, dict):
            raise UpstreamError("Invalid data format received from API")
        series = []
        conversation_ids = {}
        for code, entry in analysis.items():
            if is_positive_tone(code) != self.is_positive or not isinstance(entry, dict):
                continue
            label = tone_name(code, raw["toneMap"])
            series.append({"name": label, "value": self._number(entry.get("value"))})
            conversation_ids[label] = list(entry.get("conversation_id_list") or [])
        return {"series": series, "conversationIds": conversation_ids, "empty": not series}


class MultiCustomerToneAdapter(_TonePanelAdapter):
    """Positive / negative / neutral message counts per customer."""

    title = "Tone vs Multiple Customers"

    @property
    def panel_id(self) -> str:
        return "multi-customer-tone"

    def fetch_data(self, filters: dict) -> Any:
        return proxy.tone_multi_customer(*_agent_filter(filters))

    def build_body(self, filters: dict, raw: Any) -> dict:
        if not isinstance(raw, list):
            raise UpstreamError("Invalid data format received from API")
        rows = []
        for item in raw:
            customer_id, entry = _single_entry(item)
            counts = entry.get("data") or {}
            rows.append(
                {
                    "id": customer_id,
                    "positive": self._number(counts.get("Positive")),
                    "negative": self._number(counts.get("Negative")),
                    "neutral": self._number(counts.get("Neutral")),
                    "conversationIds": list(entry.get("conversation_id_list") or []),
                }
            )
        return {"rows": rows, "empty": not rows}


class ToneAlertsAdapter(_TonePanelAdapter):
    """Agents with negative-tone alerts and the conversations behind them."""

    title = "Tone Alerts"
    kind = "list"

    @property
    def panel_id(self) -> str:
        return "tone-alerts"

    def fetch_data(self, filters: dict) -> Any:
        return proxy.tone_alerts(*_agent_filter(filters))

    def build_body(self, filters: dict, raw: Any) -> dict:
        if not isinstance(raw, dict):
            raise UpstreamError("Invalid data format received from API")
        alerts = {
            str(agent_id): {
                "value": self._number(entry.get("value")),
                "conversationIds": list(entry.get("conversation_id_list") or []),
            }
            for agent_id, entry in raw.items()
            if isinstance(entry, dict)
        }
        return {"alerts": alerts, "empty": not alerts}
