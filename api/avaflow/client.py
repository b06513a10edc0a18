"""
Avaflow analytics API client.
Plain GETs against the upstream QA analytics service; every endpoint answers JSON.
Base URL and timeout come from AVAFLOW_API_BASE / AVAFLOW_TIMEOUT (see api.config).
"""

import logging
from typing import Any

import requests

from api import config
from api.errors import UpstreamError, connection_error, describe_upstream_status

logger = logging.getLogger(__name__)


def build_url(path: str) -> str:
    return f"{config.AVAFLOW_API_BASE}/{path.lstrip('/')}"


def fetch_json(
    path: str,
    params: list[tuple[str, str]] | None = None,
    *,
    service: str = "analytics",
    route: str | None = None,
) -> Any:
    """
    GET one upstream endpoint and return the decoded JSON body.

    Args:
        path: Endpoint path, e.g. "/grammar/bar".
        params: Ordered query pairs; order is kept so cache keys stay stable.
        service: Human name used in the connection error ("grammar bar", "tone shift").
        route: Proxy route that triggered the call, recorded in log entries.

    Raises:
        UpstreamError: non-2xx status (mapped by describe_upstream_status), network
            failure (503), or a body that is not JSON (500).
    """
    url = build_url(path)
    log_extra = {"route": route, "data": {"url": url, "params": dict(params or [])}}
    logger.info("Fetching from external API path=%s", path, extra=log_extra)
    try:
        resp = requests.get(
            url,
            params=params,
            headers={"accept": "application/json"},
            timeout=config.AVAFLOW_TIMEOUT,
        )
    except (requests.ConnectionError, requests.Timeout) as e:
        logger.error("External API unreachable path=%s error=%s", path, e, extra=log_extra)
        raise connection_error(service) from e

    if not resp.ok:
        body = resp.text
        logger.error(
            "External API error path=%s status=%s body=%s",
            path,
            resp.status_code,
            body[:500],
            extra={"route": route, "data": {"status": resp.status_code, "url": url}},
        )
        raise describe_upstream_status(resp.status_code, body)

    try:
        return resp.json()
    except ValueError as e:
        logger.error("External API returned non-JSON path=%s", path, extra=log_extra)
        raise UpstreamError(f"Invalid JSON received from the {service} service") from e


def get_team_map(*, route: str | None = None) -> Any:
    """Team -> list of agent ids, e.g. {"TEAM_1": ["101", "102"]}."""
    return fetch_json("/agent/team", service="team", route=route)


def get_grammar_bar(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/grammar/bar", params, service="grammar bar", route=route)


def get_grammar_pie(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/grammar/pie", params, service="grammar pie", route=route)


def get_grammar_trends(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/grammar/trends", params, service="grammar trends", route=route)


def get_grammar_mapper(*, route: str | None = None) -> Any:
    return fetch_json("/grammar/mapper", service="grammar mapper", route=route)


def get_tone_mapper(*, route: str | None = None) -> Any:
    return fetch_json("/tone/mapper", service="tone mapper", route=route)


def get_tone_agent(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/tone/agent", params, service="agent tone", route=route)


def get_tone_analysis(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/tone/analysis", params, service="tone analysis", route=route)


def get_tone_shift(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/tone/shift", params, service="tone shift", route=route)


def get_tone_alerts(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/tone/agent/alert", params, service="tone alert", route=route)


def get_tone_multi_customer(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    return fetch_json("/tone/multi/customer", params, service="multi-customer tone", route=route)


def get_conversation_heads(params: list[tuple[str, str]], *, route: str | None = None) -> Any:
    """Latest message per conversation: [{"<conversation id>": {last_message, last_time, ...}}]."""
    return fetch_json("/conversation/head", params, service="conversation", route=route)


def get_conversation(conversation_id: str, *, route: str | None = None) -> Any:
    """All messages of one conversation: [{role, content, created_at}]."""
    return fetch_json(
        "/conversation",
        [("conversation_id", conversation_id)],
        service="conversation",
        route=route,
    )


def get_conversation_analysis(conversation_id: str, *, route: str | None = None) -> Any:
    """Analysed pieces of one conversation, each with error_details[{error_code, error_part}]."""
    return fetch_json(
        "/conversation/analysis",
        [("conversation_id", conversation_id)],
        service="conversation analysis",
        route=route,
    )
