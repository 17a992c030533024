"""
Test retry policies, backoff and retry-after handling.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from helpers import MockTransport, RecordingSleep, network_error

from zoho_client.recovery.retry import (
    RetryEngine, RetryPolicy, calculate_delay, default_retry_after, extract_retry_after,
    is_retryable, with_retry,
)
from zoho_client.runtime.errors import NetworkErrorKind, TransportError
from zoho_client.transport.http import HttpResult


def _action(transport):
    return lambda: transport.perform("GET", "https://www.zohoapis.in/crm/v8/Leads", b"", {})


def _engine(sleep, **policy):
    policy.setdefault("jitter", False)
    return RetryEngine(RetryPolicy(**policy), sleep=sleep)


class TestCalculateDelay:
    """Exponential backoff."""

    def test_first_attempt_uses_base(self):
        assert calculate_delay(0, 1000, 30000, False) == 1000

    def test_doubles_per_attempt(self):
        assert calculate_delay(1, 1000, 30000, False) == 2000
        assert calculate_delay(2, 1000, 30000, False) == 4000

    def test_capped_at_max(self):
        assert calculate_delay(5, 1000, 5000, False) == 5000

    def test_jitter_stays_within_thirty_percent(self):
        for _ in range(50):
            delay = calculate_delay(1, 1000, 30000, True)
            assert 2000 <= delay <= 2600

    def test_jitter_applies_to_capped_delay(self):
        for _ in range(50):
            delay = calculate_delay(10, 1000, 5000, True)
            assert 5000 <= delay <= 6500


class TestRetryAfter:
    """Retry-after hints on 429 responses."""

    @pytest.mark.parametrize("body,expected", [
        ({"retry_after": 2}, 2.0),
        ({"retry_after": "3"}, 3.0),
        ({"details": {"retry_after": 4}}, 4.0),
        ({"Retry-After": "5"}, 5.0),
        ({"retry_after": 1, "Retry-After": 9}, 1.0),
    ])
    def test_extracts_hint(self, body, expected):
        assert extract_retry_after(body) == expected

    @pytest.mark.parametrize("body", [
        {},
        {"retry_after": 0},
        {"retry_after": -3},
        {"retry_after": "soon"},
        {"retry_after": True},
        {"details": "nope"},
        "Too many requests",
        None,
    ])
    def test_invalid_hints_ignored(self, body):
        assert extract_retry_after(body) is None

    def test_header_fallback(self):
        result = HttpResult(429, {}, {"retry-after": "7"})
        assert default_retry_after(result) == 7.0

    def test_body_preferred_over_header(self):
        result = HttpResult(429, {"retry_after": 2}, {"Retry-After": "7"})
        assert default_retry_after(result) == 2.0


class TestPolicy:
    """Policy construction and merging."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay_ms == 1000
        assert policy.max_delay_ms == 30000
        assert policy.jitter is True
        assert policy.retryable_status_codes == {429, 500, 502, 503, 504, 529}

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_merge_ignores_unknown_and_none(self):
        policy = RetryPolicy().merge(max_retries=5, base_delay_ms=None, bogus=1)
        assert policy.max_retries == 5
        assert policy.base_delay_ms == 1000

    def test_merge_without_overrides_returns_same(self):
        policy = RetryPolicy()
        assert policy.merge() is policy

    def test_active(self):
        assert RetryPolicy().active
        assert not RetryPolicy(enabled=False).active
        assert not RetryPolicy(max_retries=0).active

    @pytest.mark.parametrize("outcome,expected", [
        (HttpResult(529), True),
        (HttpResult(503), True),
        (HttpResult(501), False),
        (HttpResult(404), False),
        (TransportError(NetworkErrorKind.TIMEOUT), True),
        (TransportError(NetworkErrorKind.NXDOMAIN), True),
        (TransportError(NetworkErrorKind.UNKNOWN), False),
    ])
    def test_is_retryable(self, outcome, expected):
        assert is_retryable(outcome, RetryPolicy()) is expected


class TestRetryEngine:
    """Engine loop behaviour."""

    @pytest.mark.parametrize("failures", [0, 1, 2, 3])
    def test_failures_then_success(self, failures):
        """k retryable failures followed by success make k + 1 calls."""
        transport = MockTransport().set_failures(failures)
        sleep = RecordingSleep()

        result = _engine(sleep).execute(_action(transport))

        assert result.status_code == 200
        assert transport.call_count == failures + 1
        assert sleep.delays == [1.0, 2.0, 4.0][:failures]

    def test_exhausted_returns_last_result(self):
        transport = MockTransport().set_failures(4)
        sleep = RecordingSleep()

        result = _engine(sleep, max_retries=3).execute(_action(transport))

        assert result.status_code == 503
        assert transport.call_count == 4
        assert len(sleep.delays) == 3

    def test_terminal_status_not_retried(self):
        transport = MockTransport(HttpResult(400, {"code": "INVALID_DATA"}))
        sleep = RecordingSleep()

        result = _engine(sleep).execute(_action(transport))

        assert result.status_code == 400
        assert transport.call_count == 1
        assert sleep.delays == []

    def test_network_error_retried(self):
        transport = MockTransport(network_error(NetworkErrorKind.ECONNREFUSED))
        result = _engine(RecordingSleep()).execute(_action(transport))

        assert result.status_code == 200
        assert transport.call_count == 2

    def test_non_retryable_network_error_reraised_unchanged(self):
        error = network_error(NetworkErrorKind.UNKNOWN)
        transport = MockTransport(error)

        with pytest.raises(TransportError) as exc_info:
            _engine(RecordingSleep()).execute(_action(transport))

        assert exc_info.value is error
        assert transport.call_count == 1

    def test_exhausted_network_errors_reraise_last(self):
        first, last = network_error(), network_error(NetworkErrorKind.CLOSED)
        transport = MockTransport(first, last)

        with pytest.raises(TransportError) as exc_info:
            _engine(RecordingSleep(), max_retries=1).execute(_action(transport))

        assert exc_info.value is last
        assert transport.call_count == 2

    def test_disabled_policy_single_attempt(self):
        transport = MockTransport().set_failures(3)
        result = _engine(RecordingSleep(), enabled=False).execute(_action(transport))

        assert result.status_code == 503
        assert transport.call_count == 1

    def test_zero_retries_single_attempt(self):
        transport = MockTransport().set_failures(3)
        result = _engine(RecordingSleep(), max_retries=0).execute(_action(transport))

        assert result.status_code == 503
        assert transport.call_count == 1

    def test_per_call_policy_overrides_engine(self):
        transport = MockTransport().set_failures(3)
        engine = _engine(RecordingSleep())

        result = engine.execute(_action(transport), RetryPolicy(max_retries=1, jitter=False))

        assert result.status_code == 503
        assert transport.call_count == 2

    def test_429_honours_body_hint(self):
        transport = MockTransport(HttpResult(429, {"retry_after": 2}))
        sleep = RecordingSleep()

        _engine(sleep).execute(_action(transport))

        assert sleep.delays == [2.0]

    def test_429_hint_capped_at_max_delay(self):
        transport = MockTransport(HttpResult(429, {"Retry-After": 100}))
        sleep = RecordingSleep()

        _engine(sleep, max_delay_ms=30000).execute(_action(transport))

        assert sleep.delays == [30.0]

    def test_429_without_hint_uses_backoff(self):
        transport = MockTransport(HttpResult(429, {"code": "TOO_MANY_REQUESTS"}))
        sleep = RecordingSleep()

        _engine(sleep).execute(_action(transport))

        assert sleep.delays == [1.0]

    def test_custom_retry_after_fn(self):
        transport = MockTransport(HttpResult(429, {}))
        sleep = RecordingSleep()
        engine = RetryEngine(RetryPolicy(jitter=False), sleep=sleep, retry_after_fn=lambda r: 7)

        engine.execute(_action(transport))

        assert sleep.delays == [7.0]

    def test_stats(self):
        transport = MockTransport().set_failures(2)
        engine = _engine(RecordingSleep())

        engine.execute(_action(transport))
        stats = engine.get_stats()

        assert stats["total_attempts"] == 3
        assert stats["total_retries"] == 2
        assert stats["total_successes"] == 1
        assert stats["total_failures"] == 0

    def test_retry_logged(self, caplog):
        transport = MockTransport().set_failures(1)
        _engine(RecordingSleep()).execute(_action(transport))

        assert "Attempt 1 failed (HTTP 503). Retrying in 1.00s..." in caplog.text


def test_with_retry_overrides():
    transport = MockTransport().set_failures(2)
    sleep = RecordingSleep()

    result = with_retry(_action(transport), RetryPolicy(jitter=False), sleep=sleep, max_retries=0)

    assert result.status_code == 503
    assert transport.call_count == 1
    assert sleep.delays == []


def test_with_retry_default_policy():
    transport = MockTransport().set_failures(1)
    sleep = RecordingSleep()

    result = with_retry(_action(transport), sleep=sleep, jitter=False)

    assert result.status_code == 200
    assert sleep.delays == [1.0]
