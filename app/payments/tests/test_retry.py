"""
Tests for the provider retry loop.

Only transient errors are retried: 1s then 2s between three attempts.
"""

import pytest

from payments.adapters.retry import RetryPolicy, call_with_retry
from payments.exceptions import ProviderRejectedError, ProviderTransientError


class Script:
    """Callable that raises the queued errors, then returns `value`."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


def transient():
    return ProviderTransientError("503", provider="mock", status_code=503)


POLICY = RetryPolicy(max_attempts=3, base_delay=1, multiplier=2, max_delay=4)


class TestRetryPolicy:
    def test_delays_double_and_cap(self):
        assert [POLICY.delay_after(n) for n in (1, 2, 3, 4)] == [1, 2, 4, 4]

    def test_from_settings(self, settings):
        settings.SETTLEMENT_MAX_ATTEMPTS = 5
        settings.SETTLEMENT_BACKOFF_BASE_SECONDS = 0.5

        policy = RetryPolicy.from_settings()

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5


class TestCallWithRetry:
    def test_first_attempt_success(self):
        sleeps = []

        outcome = call_with_retry(Script([]), policy=POLICY, sleep=sleeps.append)

        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert sleeps == []

    def test_recovers_after_transient_errors(self):
        sleeps = []
        func = Script([transient(), transient()])

        outcome = call_with_retry(func, policy=POLICY, sleep=sleeps.append)

        assert outcome.attempts == 3
        assert func.calls == 3
        assert sleeps == [1, 2]

    def test_gives_up_after_three_attempts(self):
        sleeps = []
        func = Script([transient(), transient(), transient(), transient()])

        with pytest.raises(ProviderTransientError) as exc_info:
            call_with_retry(func, policy=POLICY, sleep=sleeps.append)

        assert func.calls == 3
        assert exc_info.value.attempts == 3
        assert sleeps == [1, 2]

    def test_rejected_error_is_not_retried(self):
        sleeps = []
        func = Script([ProviderRejectedError("400", provider="mock", status_code=400)])

        with pytest.raises(ProviderRejectedError) as exc_info:
            call_with_retry(func, policy=POLICY, sleep=sleeps.append)

        assert func.calls == 1
        assert exc_info.value.attempts == 1
        assert sleeps == []

    def test_transient_then_rejected_stops(self):
        sleeps = []
        func = Script([transient(), ProviderRejectedError("404", provider="mock")])

        with pytest.raises(ProviderRejectedError) as exc_info:
            call_with_retry(func, policy=POLICY, sleep=sleeps.append)

        assert func.calls == 2
        assert exc_info.value.attempts == 2
        assert sleeps == [1]

    def test_non_provider_errors_propagate_immediately(self):
        sleeps = []

        def boom():
            raise KeyError("x")

        with pytest.raises(KeyError):
            call_with_retry(boom, policy=POLICY, sleep=sleeps.append)

        assert sleeps == []
