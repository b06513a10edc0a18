import pytest

from api.retry import backoff_delay, with_retries


def test_backoff_doubles():
    assert [backoff_delay(n, 1.0) for n in range(3)] == [1.0, 2.0, 4.0]


def test_success_on_first_call_does_not_sleep():
    sleeps = []
    assert with_retries(lambda: "ok", sleep=sleeps.append) == "ok"
    assert sleeps == []


def test_retries_until_success():
    outcomes = iter([RuntimeError("a"), RuntimeError("b"), "done"])

    def fn():
        value = next(outcomes)
        if isinstance(value, Exception):
            raise value
        return value

    sleeps = []
    retries = []
    result = with_retries(fn, sleep=sleeps.append, on_retry=lambda n, e: retries.append((n, str(e))))
    assert result == "done"
    assert sleeps == [1.0, 2.0]
    assert retries == [(1, "a"), (2, "b")]


def test_gives_up_after_max_retries():
    calls = []

    def fn():
        calls.append(1)
        raise RuntimeError("still down")

    sleeps = []
    with pytest.raises(RuntimeError, match="still down"):
        with_retries(fn, max_retries=3, sleep=sleeps.append)
    assert len(calls) == 4
    assert sleeps == [1.0, 2.0, 4.0]


def test_non_retryable_error_propagates_immediately():
    calls = []

    def fn():
        calls.append(1)
        raise KeyError("bad")

    with pytest.raises(KeyError):
        with_retries(fn, retry_on=(RuntimeError,), sleep=lambda s: None)
    assert len(calls) == 1


def test_default_sleep_is_time_sleep(no_backoff):
    outcomes = iter([RuntimeError("x"), 1])

    def fn():
        value = next(outcomes)
        if isinstance(value, Exception):
            raise value
        return value

    assert with_retries(fn, base_delay=0.5) == 1
    no_backoff.assert_called_once_with(0.5)
