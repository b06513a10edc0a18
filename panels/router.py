"""
Route panel build requests to the registered adapter and return panel JSON.
Fetches go through bounded retry; filter validation happens once, before any fetch.
"""

import logging
from typing import TYPE_CHECKING, Callable

from api.errors import UpstreamError
from api.retry import with_retries

if TYPE_CHECKING:
    from panels.base import BasePanelAdapter

logger = logging.getLogger(__name__)

# Registry: panel_id -> adapter instance
_registry: dict[str, "BasePanelAdapter"] = {}


def register_adapter(adapter: "BasePanelAdapter") -> None:
    """Register an adapter for its panel_id. Re-registering overwrites."""
    _registry[adapter.panel_id] = adapter


def registered_panels() -> list[str]:
    return list(_registry)


def get_adapter(panel_id: str) -> "BasePanelAdapter":
    """Return adapter for panel_id; raise if unknown."""
    adapter = _registry.get(panel_id)
    if adapter is None:
        raise ValueError(f"Unknown panel: {panel_id}. Registered: {list(_registry)}")
    return adapter


def build_panel(
    panel_id: str,
    filters: dict,
    *,
    sleep: Callable[[float], None] | None = None,
    on_retry: Callable[[int, BaseException], None] | None = None,
) -> dict:
    """
    Build one panel struct from page filters.

    Validates filters, fetches the panel data with exponential-backoff retry on upstream
    failures, then shapes it. ValidationError is raised before any fetch and never retried.

    Returns:
        Panel dict: id, title, kind, filters, viz hints and the panel body, plus
        "retryCount" (how many retries the fetch needed).
    """
    adapter = get_adapter(panel_id)
    adapter.validate(filters)

    retries = 0

    def _count(attempt: int, exc: BaseException) -> None:
        nonlocal retries
        retries = attempt
        if on_retry is not None:
            on_retry(attempt, exc)

    raw = with_retries(
        lambda: adapter.fetch_data(filters),
        retry_on=(UpstreamError,),
        sleep=sleep,
        on_retry=_count,
        label=panel_id,
    )
    panel = adapter.build_panel(filters, raw)
    panel["retryCount"] = retries
    logger.info("Built panel id=%s retries=%s empty=%s", panel_id, retries, panel.get("empty"))
    return panel
