"""
Default visualization hints per panel.
build_panel merges these into every panel; filters may override chartType.
"""

import copy

_DEFAULTS: dict[str, dict] = {
    "tone-shift": {
        "chartType": "area",
        "xLabel": "Conversation stage",
        "yLabel": "Tone",
        "yLimits": (-1, 1),
        "yTicks": [(-1, "Negative"), (-0.5, ""), (0, "Neutral"), (0.5, ""), (1, "Positive")],
    },
    "tone-table": {"chartType": None},
    "agent-tone": {"chartType": "bar", "xLabel": "Agent", "yLabel": "Overall score", "yLimits": (0, 100)},
    "positive-tone": {"chartType": "bar", "xLabel": "Tone", "yLabel": "Messages"},
    "negative-tone": {"chartType": "bar", "xLabel": "Tone", "yLabel": "Messages"},
    "multi-customer-tone": {"chartType": "stacked_bar", "xLabel": "Customer", "yLabel": "Messages"},
    "tone-alerts": {"chartType": None},
    "error-frequency": {"chartType": "pie"},
    "grammar-accuracy": {"chartType": "grouped_bar", "xLabel": "Team", "yLabel": "Errors"},
    "error-frequency-by-agent": {"chartType": "grouped_bar", "xLabel": "Agent", "yLabel": "Errors"},
    "error-trends": {"chartType": "line", "xLabel": "Date", "yLabel": "Errors"},
    "conversation-list": {"chartType": None},
    "conversation-thread": {"chartType": None},
    "conversation-analytics": {"chartType": None},
}

# Single-value series ({name|stage|date, value}) can be drawn as any of these
_SERIES_CHARTS = ("line", "area", "bar")

# Chart types a chart_type filter may switch each panel to; other panels keep their default
_ALLOWED_CHART_TYPES: dict[str, tuple[str, ...]] = {
    "tone-shift": _SERIES_CHARTS,
    "agent-tone": _SERIES_CHARTS,
    "positive-tone": _SERIES_CHARTS,
    "negative-tone": _SERIES_CHARTS,
    "error-trends": _SERIES_CHARTS,
}


def _default_viz_hints(panel_id: str) -> dict:
    """Return a copy of the default chartType, axis labels and limits for a panel."""
    return copy.deepcopy(_DEFAULTS.get(panel_id, {"chartType": "line", "xLabel": "", "yLabel": "Value"}))


def allowed_chart_types(panel_id: str) -> tuple[str, ...]:
    """Chart types the panel's data can be drawn as; empty for table and list panels."""
    default = _DEFAULTS.get(panel_id, {"chartType": "line"})["chartType"]
    if default is None:
        return ()
    return _ALLOWED_CHART_TYPES.get(panel_id, (default,))


def get_viz_hints(panel_id: str, filters: dict) -> dict:
    """
    Viz hints for the panel: a chart_type filter overrides the default when the panel's
    data fits that chart type, and is ignored otherwise. Table and list panels stay chartless.
    """
    hints = _default_viz_hints(panel_id)
    override = filters.get("chart_type")
    if override and override in allowed_chart_types(panel_id):
        hints["chartType"] = override
    return hints
