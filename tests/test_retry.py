import asyncio

import pytest

from app.middleware import retry
from app.middleware.event_collector import get_events, reset_events


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(retry, "backoff_delay", lambda *args: 0)
    reset_events()


def _flaky(failures, value="ok"):
    attempts = []

    async def call():
        attempts.append(len(attempts) + 1)
        if len(attempts) <= failures:
            raise ConnectionError("upstream reset")
        return value

    return call, attempts


def _run(call, max_attempts=3):
    return asyncio.run(
        retry.call_with_retries(
            call,
            middleware="retry_model",
            label="Model call",
            max_attempts=max_attempts,
            initial_delay=1.0,
            backoff_factor=2.0,
        )
    )


def test_first_attempt_success_records_nothing():
    call, attempts = _flaky(0)

    assert _run(call) == "ok"
    assert attempts == [1]
    assert get_events() == []


def test_recovers_after_transient_failures():
    call, attempts = _flaky(2)

    assert _run(call) == "ok"
    assert attempts == [1, 2, 3]
    assert [e["status"] for e in get_events()] == ["retrying", "retrying", "recovered"]


def test_reraises_after_last_attempt():
    call, attempts = _flaky(5)

    with pytest.raises(ConnectionError):
        _run(call, max_attempts=2)

    assert attempts == [1, 2]
    events = get_events()
    assert events[-1]["status"] == "failed"
    assert events[-1]["details"]["attempts"] == 2


def test_backoff_delay_grows_with_jitter(monkeypatch):
    monkeypatch.undo()
    for attempt, base in [(0, 1.0), (1, 2.0), (2, 4.0)]:
        delay = retry.backoff_delay(attempt, 1.0, 2.0)
        assert base <= delay <= base * 1.5
