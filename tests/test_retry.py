"""Tests for exponential backoff retry."""

import asyncio
from types import SimpleNamespace

import pytest

from wetransfer_dl.core.exceptions import DownloadError, ErrorKind, ProtocolError
from wetransfer_dl.core.retry import backoff_delay, exponential_retrying, run_with_backoff, wait_doubling


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FlakyOperation:
    """Fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result: str = "ok", error: Exception | None = None):
        self.failures = failures
        self.result = result
        self.error = error or ConnectionError("boom")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class TestBackoffDelay:
    def test_no_delay_before_first_attempt(self):
        assert backoff_delay(1.0, 0) == 0

    @pytest.mark.parametrize("attempt,expected", [(1, 0.5), (2, 1.0), (3, 2.0), (6, 16.0)])
    def test_doubles_per_attempt(self, attempt, expected):
        assert backoff_delay(0.5, attempt) == expected

    @pytest.mark.parametrize("finished_attempts", [1, 2, 5])
    def test_wait_uses_backoff_delay(self, finished_attempts):
        """Test that the tenacity wait returns backoff_delay for the next attempt."""
        state = SimpleNamespace(attempt_number=finished_attempts)
        assert wait_doubling(0.5)(state) == backoff_delay(0.5, finished_attempts)

    def test_retrying_controller_uses_doubling_wait(self):
        controller = exponential_retrying(max_retries=2, retry_delay=1.0)
        assert isinstance(controller.wait, wait_doubling)
        assert controller.wait.retry_delay == 1.0


class TestRunWithBackoff:
    """Tests for run_with_backoff."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        """Test that no sleep happens when the first attempt succeeds."""
        sleep = RecordingSleep()
        operation = FlakyOperation(failures=0)

        result = await run_with_backoff(operation, max_retries=3, retry_delay=1.0, sleep=sleep)

        assert result == "ok"
        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_success_after_failures_stops_retrying(self):
        """Test that a success on attempt k returns without further attempts."""
        sleep = RecordingSleep()
        operation = FlakyOperation(failures=2, result="direct")

        result = await run_with_backoff(operation, max_retries=5, retry_delay=1.0, sleep=sleep)

        assert result == "direct"
        assert operation.calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_retries", [0, 1, 3])
    async def test_permanent_failure_attempt_count(self, max_retries):
        """Test that N retries means N + 1 attempts and N reported retries."""
        sleep = RecordingSleep()
        operation = FlakyOperation(failures=100)

        with pytest.raises(DownloadError) as exc_info:
            await run_with_backoff(operation, max_retries=max_retries, retry_delay=0.25, sleep=sleep)

        assert operation.calls == max_retries + 1
        assert exc_info.value.retries == max_retries
        assert f"after {max_retries} retries" in str(exc_info.value)
        assert "boom" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.DOWNLOAD

    @pytest.mark.asyncio
    async def test_backoff_delays_are_exponential(self):
        """Test that the delay before attempt k is retry_delay * 2 ** (k - 1)."""
        sleep = RecordingSleep()
        operation = FlakyOperation(failures=100)

        with pytest.raises(DownloadError):
            await run_with_backoff(operation, max_retries=4, retry_delay=1.5, sleep=sleep)

        assert sleep.delays == [backoff_delay(1.5, k) for k in range(1, 5)]
        assert sleep.delays == [1.5, 3.0, 6.0, 12.0]

    @pytest.mark.asyncio
    async def test_last_error_is_kept(self):
        """Test that the last attempt's error becomes the cause."""
        error = ProtocolError("No direct link in response")
        operation = FlakyOperation(failures=100, error=error)

        with pytest.raises(DownloadError) as exc_info:
            await run_with_backoff(operation, max_retries=1, retry_delay=0, sleep=RecordingSleep())

        assert exc_info.value.last_error is error
        assert exc_info.value.__cause__ is error
        assert "No direct link in response" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        """Test that a cancelled attempt propagates immediately."""
        operation = FlakyOperation(failures=100, error=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await run_with_backoff(operation, max_retries=3, retry_delay=0, sleep=RecordingSleep())

        assert operation.calls == 1
