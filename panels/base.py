"""
Abstract base for dashboard panel adapters.
Each adapter knows which proxy data a panel needs and how to shape it into the canonical panel struct.
"""

import math
from abc import ABC, abstractmethod
from typing import Any

from api.dates import require_date_range
from panels.viz_hints import get_viz_hints


class BasePanelAdapter(ABC):
    """Adapter for one dashboard panel: validate filters, fetch data, build panel JSON."""

    title: str = ""
    kind: str = "chart"

    @property
    @abstractmethod
    def panel_id(self) -> str:
        """Panel identifier (e.g. 'tone-shift', 'error-trends')."""
        ...

    def validate(self, filters: dict) -> None:
        """
        Reject filters the panel cannot work with, before any fetch.
        Raises ValidationError. Default: no extra rules (the proxy still checks dates).
        """

    @abstractmethod
    def fetch_data(self, filters: dict) -> Any:
        """
        Fetch the raw data for this panel through the proxy layer.

        Args:
            filters: Page filters (from_date, to_date, agent_id, error_code, ...).

        Returns:
            Decoded upstream payload(s), in whatever shape build_panel expects.
        """
        ...

    @abstractmethod
    def build_body(self, filters: dict, raw: Any) -> dict:
        """
        Shape the raw payload into the panel body.

        Returns:
            Dict with the panel's data key ("series", "rows", "slices", ...) and "empty".
        """
        ...

    def build_panel(self, filters: dict, raw: Any) -> dict:
        """Canonical panel struct: identity + viz hints + body."""
        viz = get_viz_hints(self.panel_id, filters)
        panel = {
            "id": self.panel_id,
            "title": self.title,
            "kind": self.kind,
            "filters": {k: v for k, v in filters.items() if v not in (None, "")},
            **viz,
        }
        panel.update(self.build_body(filters, raw))
        return panel

    @staticmethod
    def _require_dates(filters: dict) -> None:
        require_date_range(filters.get("from_date"), filters.get("to_date"))

    @staticmethod
    def _number(value: Any, default: float = 0) -> float:
        """Numeric value or default for anything that is not a finite number (bools excluded)."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        if isinstance(value, float) and math.isnan(value):
            return default
        return value
