import pytest

from api import cache, config
from api.log_buffer import log_buffer

FROM_DATE = "2024-05-01"
TO_DATE = "2024-05-31"


@pytest.fixture(autouse=True)
def reset_state():
    """Every test starts with an empty TTL cache and log buffer."""
    cache.clear()
    log_buffer.clear()
    yield
    cache.clear()
    log_buffer.clear()


@pytest.fixture(autouse=True)
def no_backoff(mocker):
    """Retries never actually wait."""
    return mocker.patch("api.retry.time.sleep")


@pytest.fixture
def upstream(mocker):
    """
    Stub the analytics API. Register payloads per endpoint path:

        upstream.routes["/grammar/bar"] = [...]            # 200 with JSON body
        upstream.routes["/tone/shift"] = (429, "slow down") # error status + body
        upstream.routes["/agent/team"] = requests.ConnectionError()

    Unregistered paths answer 404.
    """
    routes = {}

    def _get(url, params=None, headers=None, timeout=None):
        path = url[len(config.AVAFLOW_API_BASE):]
        resp = mocker.MagicMock()
        payload = routes.get(path, (404, "not found"))
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, tuple):
            resp.ok = False
            resp.status_code, resp.text = payload
        else:
            resp.ok = True
            resp.status_code = 200
            resp.json.return_value = payload
        return resp

    mock_get = mocker.patch("api.avaflow.client.requests.get", side_effect=_get)
    mock_get.routes = routes
    return mock_get


@pytest.fixture
def dates():
    return {"from_date": FROM_DATE, "to_date": TO_DATE}


@pytest.fixture
def team_payload():
    return {"TEAM_1": ["101", "102"], "TEAM_2": ["201"]}


@pytest.fixture
def tone_agent_payload():
    return [
        {"101": {"data": {"P_101": 5, "N_109": 2, "overall_score": 72}, "conversation_id_list": ["c1", "c2"]}},
        {"102": {"data": {"P_102": 1, "overall_score": 35}, "conversation_id_list": ["c3"]}},
    ]


@pytest.fixture
def conversation_heads_payload():
    return [
        {"c1": {"user_name": "Alice Smith", "last_message": "Thanks!", "last_time": "2024-05-02T10:15:00",
                "is_last_message_owner_agent": False, "user_email": "alice@example.com"}},
        {"c2": {"user_name": "Bob Jones", "last_message": "On it", "last_time": "2024-05-03T14:05:00",
                "is_last_message_owner_agent": True, "user_email": "bob@example.com"}},
    ]
