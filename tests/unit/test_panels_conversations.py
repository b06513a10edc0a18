import pytest

from api.errors import UpstreamError, ValidationError
from panels import build_panel
from panels.adapters.conversations import error_categories, format_timestamp


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2023-07-29T02:56:29", "Jul 29, 2:56 AM"),
        ("2024-05-03T14:05:00", "May 3, 2:05 PM"),
        ("2024-05-03T00:30:00", "May 3, 12:30 AM"),
        ("yesterday", "yesterday"),
    ],
)
def test_format_timestamp(value, expected):
    assert format_timestamp(value) == expected


def test_conversation_list_newest_first(upstream, dates, conversation_heads_payload):
    upstream.routes["/conversation/head"] = conversation_heads_payload
    panel = build_panel("conversation-list", dates)

    assert [r["id"] for r in panel["rows"]] == ["c2", "c1"]
    bob = panel["rows"][0]
    assert bob["timestamp"] == "May 3, 2:05 PM"
    assert bob["isLastMessageFromAgent"] is True
    assert bob["avatarUrl"].endswith("seed=Bob%20Jones")
    assert panel["activeConversation"] is None


def test_conversation_list_search_is_case_insensitive(upstream, dates, conversation_heads_payload):
    upstream.routes["/conversation/head"] = conversation_heads_payload
    panel = build_panel("conversation-list", {**dates, "search": "ALI", "conversation_id": "c1"})
    assert [r["name"] for r in panel["rows"]] == ["Alice Smith"]
    assert panel["activeConversation"] == "c1"


@pytest.mark.parametrize("panel_id", ["conversation-thread", "conversation-analytics"])
def test_single_conversation_panels_need_selection(upstream, panel_id):
    with pytest.raises(ValidationError, match="Select a conversation to view analysis"):
        build_panel(panel_id, {})
    upstream.assert_not_called()


@pytest.fixture
def conversation_upstream(upstream):
    upstream.routes["/grammar/mapper"] = {"G_104": "Punctuation"}
    upstream.routes["/tone/mapper"] = {"T_103": "Aggressive"}
    upstream.routes["/conversation"] = [
        {"role": "user", "content": "Where is my order?", "created_at": "2024-05-02T10:15:00"},
        {"role": "admin", "content": "its coming", "created_at": "2024-05-02T10:16:00"},
    ]
    upstream.routes["/conversation/analysis"] = [
        {
            "conversation_piece_id": 2,
            "role": "admin",
            "content": "its coming",
            "created_at": "2024-05-02T10:16:00",
            "error_details": [
                {"error_code": "G_104", "error_part": "its"},
                {"error_code": "T_103", "error_part": "coming"},
                {"error_code": "T_107", "error_part": "coming"},
            ],
        }
    ]
    return upstream


def test_conversation_thread_matches_errors_to_messages(conversation_upstream):
    panel = build_panel("conversation-thread", {"conversation_id": "c1"})

    user_msg, agent_msg = panel["messages"]
    assert user_msg["isUser"] and not user_msg["isAgent"]
    assert user_msg["errorDetails"] is None
    assert agent_msg["isAgent"]
    assert agent_msg["timestamp"] == "May 2, 10:16 AM"
    assert [e["error_description"] for e in agent_msg["errorDetails"]] == ["Punctuation", "Aggressive", None]


def test_conversation_thread_rejects_malformed_messages(conversation_upstream):
    conversation_upstream.routes["/conversation"] = ["Where is my order?"]
    with pytest.raises(UpstreamError, match="Invalid data format received from API"):
        build_panel("conversation-thread", {"conversation_id": "c1"})


def test_conversation_list_rejects_malformed_heads(upstream, dates):
    upstream.routes["/conversation/head"] = [{"c1": "Alice"}]
    with pytest.raises(UpstreamError, match="Invalid data format received from API"):
        build_panel("conversation-list", dates)


def test_conversation_analytics_categories_by_count(conversation_upstream):
    panel = build_panel("conversation-analytics", {"conversation_id": "c1"})

    tone, grammar = panel["categories"]
    assert (tone["title"], tone["count"]) == ("Agent Tone Error", 2)
    assert (grammar["title"], grammar["count"]) == ("Grammatical Error", 1)
    assert set(tone["subcategories"]) == {"Aggressive Language", "Impatient Tone"}
    assert grammar["subcategories"]["Punctuation Errors"]["messages"][0]["id"] == "2"


def test_error_categories_empty():
    assert error_categories([{"content": "fine"}]) == []
