import pytest

from jobfinder import retry
from jobfinder.retry import backoff_delay, call_with_retries


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(retry.time, "sleep", recorded.append)
    return recorded


def test_backoff_doubles():
    assert [backoff_delay(n, 0.75) for n in (1, 2, 3)] == [0.75, 1.5, 3.0]


def test_returns_after_transient_failures(sleeps):
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("down")
        return "ok"

    assert call_with_retries(flaky, retries=2, backoff_base=0.5, retry_on=(ConnectionError,)) == "ok"
    assert sleeps == [0.5, 1.0]


def test_reraises_when_exhausted(sleeps):
    calls = []

    def always_down():
        calls.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        call_with_retries(always_down, retries=1, backoff_base=0, retry_on=(ConnectionError,))
    assert len(calls) == 2


def test_other_exceptions_propagate_immediately(sleeps):
    def broken():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        call_with_retries(broken, retries=3, retry_on=(ConnectionError,))
    assert sleeps == []


def test_passes_arguments_through(sleeps):
    assert call_with_retries(lambda a, b=0: a + b, 1, b=2, retries=0) == 3
