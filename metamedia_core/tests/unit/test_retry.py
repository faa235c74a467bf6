"""
METAMEDIA CORE — Unit Tests for Error Classification & Retry Policy
"""
import pytest

from metamedia_core.data.errors import (
    ErrorKind, FetchFailedError, UpstreamError, classify_error,
)
from metamedia_core.data.models import Domain
from metamedia_core.data.retry import with_retry


def rate_limited(message: str = "429 RESOURCE_EXHAUSTED") -> UpstreamError:
    return UpstreamError(message, kind=ErrorKind.RATE_LIMITED, status_code=429)


class Flaky:
    """Operation that raises the queued errors, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


# ─── Classification Tests ───────────────────────────────────────

class StatusError(Exception):
    def __init__(self, message, status=None, code=None):
        super().__init__(message)
        self.status = status
        self.code = code


class TestClassifyError:
    def test_structured_kind_wins(self):
        assert classify_error(rate_limited()) is ErrorKind.RATE_LIMITED
        assert classify_error(UpstreamError("429 in text but typed", kind=ErrorKind.OTHER)) is ErrorKind.OTHER

    def test_fetch_failed_carries_kind(self):
        error = FetchFailedError(Domain.NEWS, ErrorKind.RATE_LIMITED, "quota")
        assert error.is_rate_limited
        assert error.domain is Domain.NEWS
        assert classify_error(error) is ErrorKind.RATE_LIMITED

    @pytest.mark.parametrize("error", [
        Exception("HTTP 429 Too Many Requests"),
        Exception("Quota exceeded for model"),
        RuntimeError("RESOURCE_EXHAUSTED"),
        StatusError("slow down", code=429),
        StatusError("slow down", status="RESOURCE_EXHAUSTED"),
    ])
    def test_heuristic_rate_limit(self, error):
        assert classify_error(error) is ErrorKind.RATE_LIMITED

    @pytest.mark.parametrize("error", [
        ValueError("boom"),
        ConnectionError("connection reset"),
        StatusError("server error", code=500),
    ])
    def test_other_errors(self, error):
        assert classify_error(error) is ErrorKind.OTHER


# ─── Retry Policy Tests ─────────────────────────────────────────

class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self, recording_sleep):
        op = Flaky([])
        assert await with_retry(op, max_retries=3, initial_delay=4.0,
                                multiplier=2.5, sleep=recording_sleep) == "ok"
        assert op.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_two_rate_limits_then_success(self, recording_sleep):
        op = Flaky([rate_limited(), rate_limited()], value="data")
        result = await with_retry(op, max_retries=3, initial_delay=4.0,
                                  multiplier=2.5, sleep=recording_sleep)
        assert result == "data"
        assert op.calls == 3
        assert recording_sleep.delays == [4.0, 10.0]

    @pytest.mark.asyncio
    async def test_non_rate_limit_raises_immediately(self, recording_sleep):
        op = Flaky([ValueError("bad request")])
        with pytest.raises(ValueError):
            await with_retry(op, max_retries=3, initial_delay=4.0,
                             multiplier=2.5, sleep=recording_sleep)
        assert op.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhausted_reraises_last_error(self, recording_sleep):
        errors = [rate_limited(f"429 attempt {i}") for i in range(4)]
        op = Flaky(errors)
        last = errors[-1]
        with pytest.raises(UpstreamError) as exc_info:
            await with_retry(op, max_retries=3, initial_delay=4.0,
                             multiplier=2.5, sleep=recording_sleep)
        assert exc_info.value is last
        assert op.calls == 4
        assert recording_sleep.delays == [4.0, 10.0, 25.0]

    @pytest.mark.asyncio
    async def test_zero_retries(self, recording_sleep):
        op = Flaky([rate_limited()])
        with pytest.raises(UpstreamError):
            await with_retry(op, max_retries=0, sleep=recording_sleep)
        assert op.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_delay_cap(self, recording_sleep):
        op = Flaky([rate_limited()] * 3)
        await with_retry(op, max_retries=3, initial_delay=4.0, multiplier=2.5,
                         max_delay=8.0, sleep=recording_sleep)
        assert recording_sleep.delays == [4.0, 8.0, 8.0]

    @pytest.mark.asyncio
    async def test_heuristic_errors_are_retried(self, recording_sleep):
        op = Flaky([Exception("Quota exceeded")])
        assert await with_retry(op, max_retries=1, initial_delay=1.0,
                                multiplier=2.5, sleep=recording_sleep) == "ok"
        assert recording_sleep.delays == [1.0]
