"""Tests del retry con backoff usado en la autenticación de arranque."""

from unittest.mock import MagicMock, patch

import pytest

from router_monitor.core.domain import AuthError, NetworkError
from router_monitor.resilience.retry import RetryConfig, retry_with_backoff


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("router_monitor.resilience.retry.time.sleep") as sleep:
        yield sleep


class TestRetryConfig:

    def test_delay_grows_and_is_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False)
        assert [config.calculate_delay(a) for a in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_jitter_stays_within_25_percent(self):
        config = RetryConfig(base_delay=4.0, max_delay=4.0)
        for _ in range(50):
            assert 3.0 <= config.calculate_delay(1) <= 5.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STARTUP_AUTH_ATTEMPTS", "5")
        monkeypatch.setenv("STARTUP_AUTH_BASE_DELAY_SEC", "0.5")
        monkeypatch.delenv("STARTUP_AUTH_MAX_DELAY_SEC", raising=False)

        config = RetryConfig.from_env(retryable_exceptions=(AuthError,))

        assert config.max_attempts == 5
        assert config.base_delay == 0.5
        assert config.max_delay == 15.0
        assert config.retryable_exceptions == (AuthError,)


class TestRetryWithBackoff:

    def test_retries_until_success(self, no_sleep):
        func = MagicMock(side_effect=[AuthError("a"), AuthError("b"), "ok"])
        func.__name__ = "authenticate"
        on_retry = MagicMock()

        wrapped = retry_with_backoff(max_attempts=3, retryable_exceptions=(AuthError,), on_retry=on_retry)(func)

        assert wrapped() == "ok"
        assert func.call_count == 3
        assert on_retry.call_count == 2
        assert no_sleep.call_count == 2

    def test_exhaustion_reraises_last_error(self):
        func = MagicMock(side_effect=AuthError("rejected"))
        func.__name__ = "authenticate"
        wrapped = retry_with_backoff(max_attempts=2, retryable_exceptions=(AuthError,))(func)

        with pytest.raises(AuthError, match="rejected"):
            wrapped()
        assert func.call_count == 2

    def test_non_retryable_propagates_immediately(self, no_sleep):
        func = MagicMock(side_effect=NetworkError("down"))
        func.__name__ = "authenticate"
        wrapped = retry_with_backoff(max_attempts=3, retryable_exceptions=(AuthError,))(func)

        with pytest.raises(NetworkError):
            wrapped()
        assert func.call_count == 1
        no_sleep.assert_not_called()

    def test_zero_attempts_is_invalid(self):
        wrapped = retry_with_backoff(max_attempts=0)(lambda: None)
        with pytest.raises(ValueError):
            wrapped()
