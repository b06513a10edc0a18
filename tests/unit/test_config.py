from api import config


def test_env_int_and_float_read_environment(monkeypatch):
    monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("RETRY_BASE_DELAY", "0.25")
    assert config._env_int("RETRY_MAX_ATTEMPTS", 3) == 5
    assert config._env_float("RETRY_BASE_DELAY", 1.0) == 0.25


def test_env_falls_back_on_missing_or_bad_values(monkeypatch):
    monkeypatch.delenv("LOG_BUFFER_SIZE", raising=False)
    monkeypatch.setenv("AVAFLOW_TIMEOUT", "soon")
    assert config._env_int("LOG_BUFFER_SIZE", 1000) == 1000
    assert config._env_float("AVAFLOW_TIMEOUT", 30.0) == 30.0


def test_base_url_has_no_trailing_slash():
    assert not config.AVAFLOW_API_BASE.endswith("/")
