"""
Proxy operations behind the /api/* routes.
Each one validates its query, forwards it to the analytics API and, for chart data,
keeps the decoded response in the TTL cache keyed by route prefix + query string.
The FastAPI layer (ui.app) only turns these results and errors into HTTP responses.
"""

import logging
from datetime import date
from typing import Any, Callable
from urllib.parse import urlencode

from api import avaflow, cache
from api.code_maps import GRAMMAR_ERROR_TYPES, describe_error_code, get_error_mappers, get_tone_map
from api.dates import default_trends_range, require_date_range, validate_date_range
from api.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

Params = list[tuple[str, str]]


def _flag(value: Any) -> str:
    """Upstream booleans are the strings 'true' / 'false'; only a true value or 'true' is true."""
    return "true" if value is True or str(value).lower() == "true" else "false"


def _query(*pairs: tuple[str, Any]) -> Params:
    """Ordered query pairs with empty values left out."""
    return [(k, str(v)) for k, v in pairs if v is not None and v != ""]


def _check_dates(route: str, from_date: str | None, to_date: str | None, *, required: bool = False) -> None:
    try:
        if required:
            require_date_range(from_date, to_date)
        else:
            validate_date_range(from_date, to_date)
    except ValidationError as e:
        logger.warning(
            "Date validation failed: %s",
            e,
            extra={"route": route, "data": {"from_date": from_date, "to_date": to_date}},
        )
        raise


def _cached(prefix: str, params: Params, route: str, fetch: Callable[[Params], Any]) -> Any:
    key = cache.make_key(prefix, urlencode(params))
    cached = cache.get(key)
    if cached is not None:
        logger.info("Cache hit key=%s", key, extra={"route": route, "data": {"cacheKey": key}})
        return cached
    logger.info("Cache miss, fetching from API key=%s", key, extra={"route": route, "data": {"cacheKey": key}})
    data = fetch(params)
    cache.set(key, data)
    length = len(data) if isinstance(data, (list, dict)) else "N/A"
    logger.info(
        "Successfully cached response key=%s length=%s",
        key,
        length,
        extra={"route": route, "data": {"cacheKey": key, "dataLength": length}},
    )
    return data


# Team / agents


def team_map() -> Any:
    """Upstream {team: [agent ids]}, cached like chart data."""
    route = "/api/agent/team"
    return _cached("team", [], route, lambda _: avaflow.get_team_map(route=route))


def normalize_team_map(result: Any) -> dict[str, list[str]]:
    """{team: [agent ids]} with ids as strings; a team whose value is not a list gets []."""
    if not isinstance(result, dict):
        raise UpstreamError("Invalid team data format received from API")
    out = {}
    for team, agent_ids in result.items():
        if isinstance(agent_ids, list):
            out[team] = [str(a) for a in agent_ids]
        else:
            logger.warning("Invalid agents data for team %s: %r", team, agent_ids, extra={"route": "/api/agent/team"})
            out[team] = []
    return out


def agents() -> list[dict]:
    """Flat agent list: {"id", "name": "Agent <id> (Team <n>)"} sorted by name."""
    out = []
    for team, agent_ids in normalize_team_map(team_map()).items():
        label = str(team).replace("TEAM_", "Team ")
        for agent_id in agent_ids:
            out.append({"id": str(agent_id), "name": f"Agent {agent_id} ({label})"})
    out.sort(key=lambda a: a["name"])
    return out


# Grammar


def grammar_bar(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    is_team: Any = None,
) -> Any:
    """Current vs previous error counts per agent (is_team=false) or per team (is_team=true)."""
    route = "/api/grammar/bar"
    logger.info(
        "Received bar chart request",
        extra={"route": route, "data": {"from_date": from_date, "to_date": to_date, "error_code": error_code, "is_team": is_team}},
    )
    _check_dates(route, from_date, to_date)
    params = _query(("from_date", from_date), ("to_date", to_date), ("error_code", error_code))
    params.append(("is_team", _flag(is_team)))
    return _cached("bar", params, route, lambda p: avaflow.get_grammar_bar(p, route=route))


def grammar_pie(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    agent_id: str | None = None,
) -> Any:
    """Error frequency by code, optionally narrowed to one agent."""
    route = "/api/grammar/pie"
    logger.info(
        "Received pie chart request",
        extra={"route": route, "data": {"from_date": from_date, "to_date": to_date, "agent_id": agent_id}},
    )
    _check_dates(route, from_date, to_date)
    params = _query(
        ("from_date", from_date),
        ("to_date", to_date),
        ("error_code", error_code),
        ("agent_id", agent_id),
    )
    return _cached("pie", params, route, lambda p: avaflow.get_grammar_pie(p, route=route))


def grammar_trends(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    is_team: Any = None,
    *,
    today: date | None = None,
) -> Any:
    """Daily counts for one error code; dates default to the last 30 days."""
    route = "/api/grammar/trends"
    logger.info(
        "Received trends request",
        extra={"route": route, "data": {"from_date": from_date, "to_date": to_date, "error_code": error_code}},
    )
    if not error_code:
        logger.warning("Missing required parameter: error_code", extra={"route": route})
        raise ValidationError("error_code is required")
    default_from, default_to = default_trends_range(today)
    from_date = from_date or default_from
    to_date = to_date or default_to
    _check_dates(route, from_date, to_date, required=True)
    params = _query(("from_date", from_date), ("to_date", to_date), ("error_code", error_code))
    params.append(("is_team", _flag(is_team)))
    return _cached("trends", params, route, lambda p: avaflow.get_grammar_trends(p, route=route))


def grammar_mapper() -> dict[str, str]:
    """Grammar error code -> description (local table)."""
    route = "/api/grammar/mapper"
    key = cache.make_key("mapper", "types")
    cached = cache.get(key)
    if cached is not None:
        logger.info("Cache hit key=%s", key, extra={"route": route})
        return cached
    types = dict(GRAMMAR_ERROR_TYPES)
    cache.set(key, types)
    logger.info("Successfully cached grammar types count=%s", len(types), extra={"route": route})
    return types


# Tone


def _tone_params(from_date: str | None, to_date: str | None, agent_id: str | None, route: str) -> Params:
    _check_dates(route, from_date, to_date, required=True)
    return _query(("from_date", from_date), ("to_date", to_date), ("agent_id", agent_id))


def tone_agent(from_date: str | None, to_date: str | None, agent_id: str | None = None) -> Any:
    """Per-agent tone counts plus overall_score."""
    route = "/api/tone/agent"
    params = _tone_params(from_date, to_date, agent_id, route)
    return _cached("tone-agent", params, route, lambda p: avaflow.get_tone_agent(p, route=route))


def tone_analysis(
    from_date: str | None,
    to_date: str | None,
    agent_id: str | None = None,
    is_positive: Any = False,
) -> Any:
    """Tone code -> {value, conversation_id_list} for positive or negative tones."""
    route = "/api/tone/analysis"
    _check_dates(route, from_date, to_date, required=True)
    params = [("is_positive", _flag(is_positive))]
    params += _query(("from_date", from_date), ("to_date", to_date), ("agent_id", agent_id))
    return _cached("tone-analysis", params, route, lambda p: avaflow.get_tone_analysis(p, route=route))


def tone_shift(from_date: str | None, to_date: str | None, agent_id: str | None = None) -> dict:
    """Stage -> tone score; only the upstream 'data' object is returned."""
    route = "/api/tone/shift"
    params = _tone_params(from_date, to_date, agent_id, route)

    def _fetch(p: Params) -> dict:
        payload = avaflow.get_tone_shift(p, route=route)
        if not isinstance(payload, dict) or payload.get("data") is None:
            raise UpstreamError("Invalid response format: missing data property")
        if not isinstance(payload["data"], dict):
            raise UpstreamError("Invalid data format received from API")
        return payload["data"]

    return _cached("tone-shift", params, route, _fetch)


def tone_alerts(from_date: str | None, to_date: str | None, agent_id: str | None = None) -> Any:
    route = "/api/tone/agent/alert"
    params = _tone_params(from_date, to_date, agent_id, route)
    return _cached("tone-alert", params, route, lambda p: avaflow.get_tone_alerts(p, route=route))


def tone_multi_customer(from_date: str | None, to_date: str | None, agent_id: str | None = None) -> Any:
    route = "/api/tone/multi/customer"
    params = _tone_params(from_date, to_date, agent_id, route)
    return _cached("tone-multi", params, route, lambda p: avaflow.get_tone_multi_customer(p, route=route))


def tone_mapper() -> dict[str, str]:
    return get_tone_map()


# Conversations (never cached: the viewer polls for new messages)


def conversations(
    from_date: str | None = None,
    to_date: str | None = None,
    agent_id: str | None = None,
) -> Any:
    route = "/api/conversations"
    _check_dates(route, from_date, to_date)
    params = _query(("from_date", from_date), ("to_date", to_date), ("agent_id", agent_id))
    return avaflow.get_conversation_heads(params, route=route)


def conversation(conversation_id: str | None) -> Any:
    route = "/api/conversation"
    if not conversation_id:
        raise ValidationError("Missing conversation_id parameter")
    return avaflow.get_conversation(conversation_id, route=route)


def conversation_analysis(conversation_id: str | None) -> list[dict]:
    """Analysis pieces with error_description filled in for every error_details entry."""
    route = "/api/conversation/analysis"
    if not conversation_id:
        raise ValidationError("Missing conversation_id parameter")
    mappers = get_error_mappers()
    pieces = avaflow.get_conversation_analysis(conversation_id, route=route)
    if not isinstance(pieces, list) or not all(isinstance(piece, dict) for piece in pieces):
        raise UpstreamError("Invalid conversation analysis format received from API")
    mapped = []
    for piece in pieces:
        if not all(isinstance(err, dict) for err in piece.get("error_details") or []):
            raise UpstreamError("Invalid conversation analysis format received from API")
        details = [
            {**err, "error_description": describe_error_code(str(err.get("error_code", "")), mappers)}
            for err in piece.get("error_details") or []
        ]
        mapped.append({**piece, "error_details": details})
    return mapped
