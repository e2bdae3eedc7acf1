"""Unit tests for backoff calculation and the bounded retry helper."""

from unittest.mock import MagicMock

import pytest

from infrastructure.resilience import RetryConfig, calculate_backoff, call_with_retry

pytestmark = pytest.mark.unit


class TestCalculateBackoff:
    """Tests for calculate_backoff."""

    def test_exponential_without_jitter(self):
        """Delay doubles with each attempt."""
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=300, jitter_ratio=0)

        delays = [calculate_backoff(n, config) for n in (1, 2, 3, 4)]

        assert delays == [5, 10, 20, 40]

    def test_capped_at_max_delay(self):
        """Delay never exceeds max_delay_seconds."""
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=30, jitter_ratio=0)

        assert calculate_backoff(10, config) == 30

    @pytest.mark.parametrize("rng_value,expected", [(0.0, 8.0), (0.5, 10.0), (0.999999, 12.0)])
    def test_jitter_bounds(self, rng_value, expected):
        """Jitter spreads the delay by +/- jitter_ratio."""
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=300, jitter_ratio=0.2)

        delay = calculate_backoff(2, config, rng=lambda: rng_value)

        assert delay == pytest.approx(expected, abs=1e-4)

    def test_jitter_never_exceeds_cap(self):
        """Upward jitter at the cap is clamped."""
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=10, jitter_ratio=0.5)

        assert calculate_backoff(5, config, rng=lambda: 0.99) <= 10

    def test_retry_after_raises_floor(self):
        """A provider retry_after hint raises the delay."""
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=300, jitter_ratio=0)

        assert calculate_backoff(1, config, retry_after=60) == 60

    def test_retry_after_still_capped(self):
        config = RetryConfig(base_delay_seconds=5, max_delay_seconds=30, jitter_ratio=0)

        assert calculate_backoff(1, config, retry_after=600) == 30

    def test_never_negative(self):
        config = RetryConfig(base_delay_seconds=0, max_delay_seconds=1, jitter_ratio=0.5)

        assert calculate_backoff(1, config, rng=lambda: 0.0) >= 0


class TestCallWithRetry:
    """Tests for call_with_retry."""

    def test_returns_first_success(self):
        func = MagicMock(return_value="ok")
        sleep = MagicMock()

        assert call_with_retry(func, attempts=3, sleep=sleep) == "ok"
        func.assert_called_once()
        sleep.assert_not_called()

    def test_retries_then_succeeds(self):
        """Listed exceptions are retried with backoff sleeps."""
        func = MagicMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])
        sleep = MagicMock()

        result = call_with_retry(
            func,
            attempts=5,
            base_delay_seconds=0.1,
            retry_on=(ConnectionError,),
            sleep=sleep,
        )

        assert result == "ok"
        assert func.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.1, 0.2]

    def test_reraises_after_exhaustion(self):
        func = MagicMock(side_effect=ConnectionError("down"))

        with pytest.raises(ConnectionError):
            call_with_retry(func, attempts=3, sleep=MagicMock())

        assert func.call_count == 3

    def test_unlisted_exception_not_retried(self):
        func = MagicMock(side_effect=ValueError("bad"))

        with pytest.raises(ValueError):
            call_with_retry(func, attempts=3, retry_on=(ConnectionError,), sleep=MagicMock())

        func.assert_called_once()
