from datetime import date

import pytest

from api import cache, proxy
from api.code_maps import GRAMMAR_ERROR_TYPES
from api.errors import UpstreamError, ValidationError
from api.log_buffer import install, log_buffer


@pytest.fixture(autouse=True)
def buffered_logs():
    install()


def _params(upstream):
    return upstream.call_args.kwargs["params"]


def test_team_map_is_cached(upstream, team_payload):
    upstream.routes["/agent/team"] = team_payload
    assert proxy.team_map() == team_payload
    assert proxy.team_map() == team_payload
    assert upstream.call_count == 1


def test_agents_flattened_and_sorted(upstream):
    upstream.routes["/agent/team"] = {"TEAM_2": ["201"], "TEAM_1": ["102", "101"]}
    assert proxy.agents() == [
        {"id": "101", "name": "Agent 101 (Team 1)"},
        {"id": "102", "name": "Agent 102 (Team 1)"},
        {"id": "201", "name": "Agent 201 (Team 2)"},
    ]


def test_agents_rejects_non_object_team_map(upstream):
    upstream.routes["/agent/team"] = ["101"]
    with pytest.raises(UpstreamError, match="Invalid team data format received from API"):
        proxy.agents()


def test_agents_skip_teams_without_agent_list(upstream):
    upstream.routes["/agent/team"] = {"TEAM_1": ["101"], "TEAM_2": "201", "TEAM_3": 301}
    assert proxy.agents() == [{"id": "101", "name": "Agent 101 (Team 1)"}]
    assert {e["message"] for e in log_buffer.by_level("warn")} == {
        "Invalid agents data for team TEAM_2: '201'",
        "Invalid agents data for team TEAM_3: 301",
    }


def test_normalize_team_map():
    assert proxy.normalize_team_map({"TEAM_1": [101, "102"], "TEAM_2": None}) == {"TEAM_1": ["101", "102"], "TEAM_2": []}
    with pytest.raises(UpstreamError, match="Invalid team data format received from API"):
        proxy.normalize_team_map(["101"])


def test_grammar_bar_query_order_and_flag(upstream, dates):
    upstream.routes["/grammar/bar"] = []
    proxy.grammar_bar(dates["from_date"], dates["to_date"], "G_102", "true")
    assert _params(upstream) == [
        ("from_date", "2024-05-01"),
        ("to_date", "2024-05-31"),
        ("error_code", "G_102"),
        ("is_team", "true"),
    ]


def test_grammar_bar_omits_empty_values_and_defaults_flag(upstream):
    upstream.routes["/grammar/bar"] = []
    proxy.grammar_bar(None, "", None, None)
    assert _params(upstream) == [("is_team", "false")]


def test_grammar_bar_cache_key_includes_query(upstream, dates):
    upstream.routes["/grammar/bar"] = [{"id": "101"}]
    proxy.grammar_bar(dates["from_date"], dates["to_date"], "G_101", False)
    key = "bar:from_date=2024-05-01&to_date=2024-05-31&error_code=G_101&is_team=false"
    assert cache.get(key) == [{"id": "101"}]

    proxy.grammar_bar(dates["from_date"], dates["to_date"], "G_101", False)
    proxy.grammar_bar(dates["from_date"], dates["to_date"], "G_102", False)
    assert upstream.call_count == 2


def test_grammar_bar_rejects_bad_dates_without_fetching(upstream):
    with pytest.raises(ValidationError, match="from_date must be before or equal to to_date"):
        proxy.grammar_bar("2024-05-31", "2024-05-01")
    upstream.assert_not_called()
    assert log_buffer.by_route("/api/grammar/bar")[0]["level"] == "warn"


def test_cache_activity_is_logged_per_route(upstream, dates):
    upstream.routes["/grammar/pie"] = {"G_101": {"value": 1}}
    proxy.grammar_pie(dates["from_date"], dates["to_date"])
    proxy.grammar_pie(dates["from_date"], dates["to_date"])
    messages = [e["message"] for e in log_buffer.by_route("/api/grammar/pie")]
    assert any(m.startswith("Cache hit") for m in messages)
    assert any(m.startswith("Cache miss, fetching from API") for m in messages)
    assert any(m.startswith("Successfully cached response") for m in messages)


def test_grammar_pie_params(upstream, dates):
    upstream.routes["/grammar/pie"] = {}
    proxy.grammar_pie(dates["from_date"], dates["to_date"], agent_id="101")
    assert _params(upstream) == [("from_date", "2024-05-01"), ("to_date", "2024-05-31"), ("agent_id", "101")]


def test_grammar_trends_requires_error_code(upstream):
    with pytest.raises(ValidationError, match="error_code is required"):
        proxy.grammar_trends("2024-05-01", "2024-05-31")
    upstream.assert_not_called()


def test_grammar_trends_defaults_to_last_30_days(upstream):
    upstream.routes["/grammar/trends"] = []
    proxy.grammar_trends(error_code="G_101", today=date(2020, 3, 31))
    assert _params(upstream) == [
        ("from_date", "2020-03-01"),
        ("to_date", "2020-03-31"),
        ("error_code", "G_101"),
        ("is_team", "false"),
    ]


def test_grammar_mapper_is_local_and_cached(upstream):
    assert proxy.grammar_mapper() == GRAMMAR_ERROR_TYPES
    assert cache.get("mapper:types") == GRAMMAR_ERROR_TYPES
    upstream.assert_not_called()


@pytest.mark.parametrize(
    "operation",
    [proxy.tone_agent, proxy.tone_shift, proxy.tone_alerts, proxy.tone_multi_customer, proxy.tone_analysis],
)
def test_tone_routes_require_both_dates(upstream, operation):
    with pytest.raises(ValidationError, match="from_date and to_date are required parameters"):
        operation("2024-05-01", None)
    upstream.assert_not_called()


def test_tone_analysis_puts_is_positive_first(upstream, dates):
    upstream.routes["/tone/analysis"] = {}
    proxy.tone_analysis(dates["from_date"], dates["to_date"], "101", is_positive=True)
    assert _params(upstream) == [
        ("is_positive", "true"),
        ("from_date", "2024-05-01"),
        ("to_date", "2024-05-31"),
        ("agent_id", "101"),
    ]


def test_tone_agent_is_cached(upstream, dates, tone_agent_payload):
    upstream.routes["/tone/agent"] = tone_agent_payload
    proxy.tone_agent(dates["from_date"], dates["to_date"])
    proxy.tone_agent(dates["from_date"], dates["to_date"])
    assert upstream.call_count == 1


def test_tone_shift_returns_data_object(upstream, dates):
    upstream.routes["/tone/shift"] = {"data": {"Opening": 40, "Closing": -10}}
    assert proxy.tone_shift(dates["from_date"], dates["to_date"]) == {"Opening": 40, "Closing": -10}


def test_tone_shift_accepts_empty_data(upstream, dates):
    upstream.routes["/tone/shift"] = {"data": {}}
    assert proxy.tone_shift(dates["from_date"], dates["to_date"]) == {}


def test_tone_shift_missing_data_property(upstream, dates):
    upstream.routes["/tone/shift"] = {"result": {}}
    with pytest.raises(UpstreamError, match="Invalid response format: missing data property"):
        proxy.tone_shift(dates["from_date"], dates["to_date"])
    assert cache.size() == 0


def test_tone_mapper_uses_code_maps(upstream):
    upstream.routes["/tone/mapper"] = {"P_101": "Warm"}
    assert proxy.tone_mapper() == {"P_101": "Warm"}


def test_conversations_are_not_cached(upstream, dates, conversation_heads_payload):
    upstream.routes["/conversation/head"] = conversation_heads_payload
    proxy.conversations(dates["from_date"], dates["to_date"])
    proxy.conversations(dates["from_date"], dates["to_date"])
    assert upstream.call_count == 2


def test_conversation_requires_id(upstream):
    with pytest.raises(ValidationError, match="Missing conversation_id parameter"):
        proxy.conversation(None)
    with pytest.raises(ValidationError, match="Missing conversation_id parameter"):
        proxy.conversation_analysis("")
    upstream.assert_not_called()


def test_conversation_analysis_fills_error_descriptions(upstream):
    upstream.routes["/grammar/mapper"] = {"G_104": "Punctuation"}
    upstream.routes["/tone/mapper"] = {"T_103": "Aggressive"}
    upstream.routes["/conversation/analysis"] = [
        {"content": "hi", "role": "admin", "error_details": [{"error_code": "G_104"}, {"error_code": "T_103"}]},
        {"content": "ok", "role": "user"},
    ]
    pieces = proxy.conversation_analysis("c1")
    assert [e["error_description"] for e in pieces[0]["error_details"]] == ["Punctuation", "Aggressive"]
    assert pieces[1]["error_details"] == []


def test_conversation_analysis_rejects_non_list(upstream):
    upstream.routes["/conversation/analysis"] = {"pieces": []}
    with pytest.raises(UpstreamError, match="Invalid conversation analysis format"):
        proxy.conversation_analysis("c1")


def test_tone_shift_rejects_non_object_data(upstream, dates):
    upstream.routes["/tone/shift"] = {"data": [1, 2]}
    with pytest.raises(UpstreamError, match="Invalid data format received from API"):
        proxy.tone_shift(dates["from_date"], dates["to_date"])
    assert cache.size() == 0


@pytest.mark.parametrize("pieces", [["bad"], [{"content": "hi", "error_details": ["G_104"]}]])
def test_conversation_analysis_rejects_malformed_pieces(upstream, pieces):
    upstream.routes["/conversation/analysis"] = pieces
    with pytest.raises(UpstreamError, match="Invalid conversation analysis format"):
        proxy.conversation_analysis("c1")
