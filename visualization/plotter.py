"""
Render a dashboard panel with matplotlib.
Uses chartType, axis labels, yLimits/yTicks and the panel body (series, rows, slices);
no panel-specific logic beyond picking the data key for each chart type.
"""

import io
from datetime import datetime
from pathlib import Path
from typing import Any

import matplotlib
matplotlib.use("Agg")  # headless backend for server (no display)
import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import numpy as np

CURRENT_COLOR = "#0d9488"
PREVIOUS_COLOR = "#99d5cf"
TONE_COLORS = {"positive": "#16a34a", "negative": "#dc2626", "neutral": "#9ca3af"}
# Dark to light green, as in the dashboard theme
PIE_COLORS = [
    "#114342", "#195550", "#22675e", "#2b796c", "#348b7a", "#3d9d88",
    "#46af96", "#60ba9b", "#7ac5a0", "#94d0a5", "#aedbaa", "#bbf7bc",
    "#b4e9af", "#bbf7bc",
]


def _parse_dates(series: list[dict]) -> np.ndarray:
    """Parse date strings to matplotlib-friendly format."""
    dates = [datetime.strptime(ob["date"], "%Y-%m-%d") for ob in series]
    return np.array(dates)


def _get_values(series: list[dict], key: str = "value") -> np.ndarray:
    """Extract values as float array."""
    return np.array([float(ob[key]) for ob in series], dtype=float)


def _labels(series: list[dict]) -> list[str]:
    """Category label per point: name, stage or date, whichever the series carries."""
    for key in ("name", "stage", "date"):
        if all(key in ob for ob in series):
            return [str(ob[key]) for ob in series]
    raise KeyError("name")


def _draw_line(ax: Any, panel: dict) -> None:
    """Draw a line chart: date axis for series [{date, value}], categories otherwise."""
    series = panel["series"]
    if not all("date" in ob for ob in series):
        x = np.arange(len(series))
        ax.plot(x, _get_values(series), marker="o", markersize=4, linestyle="-", color=CURRENT_COLOR)
        ax.set_xticks(x)
        ax.set_xticklabels(_labels(series), rotation=30, ha="right")
        return
    dates = _parse_dates(series)
    ax.plot(dates, _get_values(series), marker="o", markersize=4, linestyle="-", color=CURRENT_COLOR)
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%b %d"))
    ax.xaxis.set_major_locator(mdates.DayLocator(interval=max(1, len(dates) // 10)))
    plt.setp(ax.get_xticklabels(), rotation=45)


def _draw_area(ax: Any, panel: dict) -> None:
    """Draw an area chart over categorical points from series [{stage|name|date, value}]."""
    series = panel["series"]
    x = np.arange(len(series))
    values = _get_values(series)
    ax.fill_between(x, values, alpha=0.4, color=CURRENT_COLOR)
    ax.plot(x, values, linewidth=1.5, color=CURRENT_COLOR)
    ax.set_xticks(x)
    ax.set_xticklabels(_labels(series), rotation=30, ha="right")


def _draw_bar(ax: Any, panel: dict) -> None:
    """Draw a bar chart from series [{name|stage|date, value}]."""
    series = panel["series"]
    x = np.arange(len(series))
    ax.bar(x, _get_values(series), color=CURRENT_COLOR)
    ax.set_xticks(x)
    ax.set_xticklabels(_labels(series), rotation=30, ha="right")


def _draw_grouped_bar(ax: Any, panel: dict) -> None:
    """Draw previous vs current side by side from series [{name, current, previous}]."""
    series = panel["series"]
    x = np.arange(len(series))
    width = 0.4
    ax.bar(x - width / 2, _get_values(series, "previous"), width, label="Previous", color=PREVIOUS_COLOR)
    ax.bar(x + width / 2, _get_values(series, "current"), width, label="Current", color=CURRENT_COLOR)
    ax.set_xticks(x)
    ax.set_xticklabels([s["name"] for s in series], rotation=30, ha="right")
    ax.legend()


def _draw_stacked_bar(ax: Any, panel: dict) -> None:
    """Draw positive / negative / neutral stacked per row from rows [{id, positive, negative, neutral}]."""
    rows = panel["rows"]
    x = np.arange(len(rows))
    bottom = np.zeros(len(rows))
    for key in ("positive", "negative", "neutral"):
        values = _get_values(rows, key)
        ax.bar(x, values, bottom=bottom, label=key.capitalize(), color=TONE_COLORS[key])
        bottom += values
    ax.set_xticks(x)
    ax.set_xticklabels([r["id"] for r in rows], rotation=30, ha="right")
    ax.legend()


def _draw_pie(ax: Any, panel: dict) -> None:
    """Draw a pie from slices [{name, value}]; zero slices are left out."""
    slices = [s for s in panel["slices"] if s["value"]]
    if not slices:
        raise ValueError(f"Panel {panel.get('id')!r} has no data to plot")
    ax.pie(
        [s["value"] for s in slices],
        labels=[s["name"] for s in slices],
        colors=PIE_COLORS[: len(slices)],
        autopct="%1.0f%%",
        startangle=90,
    )
    ax.axis("equal")


_DRAWERS = {
    "line": (_draw_line, "series"),
    "area": (_draw_area, "series"),
    "bar": (_draw_bar, "series"),
    "grouped_bar": (_draw_grouped_bar, "series"),
    "stacked_bar": (_draw_stacked_bar, "rows"),
    "pie": (_draw_pie, "slices"),
}


def plot(
    panel: dict,
    path: str | Path | io.BytesIO | None = None,
    *,
    figsize: tuple[float, float] = (10, 5),
    title: str | None = None,
) -> None:
    """
    Plot the panel using chartType, xLabel/yLabel and optional yLimits/yTicks.

    Args:
        panel: Built panel dict (see panels.build_panel).
        path: If set, save figure to this path or buffer; otherwise show interactively.
        figsize: Figure size (width, height).
        title: Chart title. If None, uses panel["title"].
    """
    chart_type = panel.get("chartType")
    if chart_type is None:
        raise ValueError(f"Panel {panel.get('id')!r} is a {panel.get('kind', 'table')} and has no chart")
    drawer, data_key = _DRAWERS.get(chart_type, _DRAWERS["line"])
    if not panel.get(data_key):
        raise ValueError(f"Panel {panel.get('id')!r} has no '{data_key}' to plot")

    fig, ax = plt.subplots(figsize=figsize)
    try:
        try:
            drawer(ax, panel)
        except KeyError as e:
            raise ValueError(
                f"Panel {panel.get('id')!r} has no {e} field for a {chart_type} chart"
            ) from e
        if chart_type != "pie":
            ax.set_xlabel(panel.get("xLabel", ""))
            ax.set_ylabel(panel.get("yLabel", "Value"))
            y_limits = panel.get("yLimits")
            if y_limits is not None:
                ax.set_ylim(*y_limits)
            y_ticks = panel.get("yTicks")
            if y_ticks:
                ax.set_yticks([t[0] for t in y_ticks])
                ax.set_yticklabels([t[1] for t in y_ticks])
            ax.grid(axis="y", alpha=0.3)
        ax.set_title(title if title is not None else panel.get("title", ""))
        fig.tight_layout()

        if path is not None:
            if isinstance(path, io.BytesIO):
                fig.savefig(path, format="png", dpi=150)
            else:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
                fig.savefig(path, dpi=150)
        else:
            plt.show()
    finally:
        plt.close(fig)


def plot_to_bytes(
    panel: dict,
    *,
    figsize: tuple[float, float] = (10, 5),
    title: str | None = None,
) -> bytes:
    """Render the panel chart to PNG bytes (e.g. for serving in a web UI)."""
    buf = io.BytesIO()
    plot(panel, path=buf, figsize=figsize, title=title)
    buf.seek(0)
    return buf.read()
