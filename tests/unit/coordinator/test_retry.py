"""
Unit tests for RetryExecutor and RetryBudget.
"""

import pytest

from registry_sync.coordinator import RetryBudget, RetryExecutor, with_retries
from registry_sync.errors import EmptyRegistryError


def test_budget_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryBudget(max_attempts=0)


def test_budget_rejects_negative_interval():
    with pytest.raises(ValueError):
        RetryBudget(max_attempts=1, interval_ms=-1)


@pytest.mark.asyncio
@pytest.mark.parametrize("max_attempts", [1, 3, 5])
async def test_always_failing_operation_runs_exactly_n_times(max_attempts, recording_sleep):
    """Exhausted budget re-raises the last failure with no trailing sleep."""
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise TimeoutError(f"attempt {calls}")

    executor = RetryExecutor(RetryBudget(max_attempts, 250), sleep=recording_sleep)

    with pytest.raises(TimeoutError, match=f"attempt {max_attempts}"):
        await executor.run(op)

    assert calls == max_attempts
    assert recording_sleep.calls == [0.25] * (max_attempts - 1)


@pytest.mark.asyncio
async def test_success_short_circuits(recording_sleep):
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        if calls < 2:
            raise ConnectionError("blip")
        return "done"

    executor = RetryExecutor(RetryBudget(5, 1000), sleep=recording_sleep)
    assert await executor.run(op) == "done"
    assert calls == 2
    assert recording_sleep.calls == [1.0]


@pytest.mark.asyncio
async def test_first_try_success_never_sleeps(recording_sleep):
    async def op():
        return 42

    assert await RetryExecutor(RetryBudget(3, 5000), sleep=recording_sleep).run(op) == 42
    assert recording_sleep.calls == []


@pytest.mark.asyncio
async def test_final_failure_is_not_wrapped(recording_sleep):
    boom = ValueError("bad payload")

    async def op():
        raise boom

    with pytest.raises(ValueError) as exc_info:
        await RetryExecutor(RetryBudget(2, 0), sleep=recording_sleep).run(op)
    assert exc_info.value is boom


@pytest.mark.asyncio
async def test_with_retries_shorthand():
    results = iter([RuntimeError("x"), "ok"])

    async def op():
        value = next(results)
        if isinstance(value, Exception):
            raise value
        return value

    assert await with_retries(op, max_attempts=2, interval_ms=0) == "ok"


@pytest.mark.asyncio
async def test_fatal_error_is_not_retried(recording_sleep):
    calls = 0

    async def op():
        nonlocal calls
        calls += 1
        raise EmptyRegistryError("registry tree is empty")

    with pytest.raises(EmptyRegistryError):
        await RetryExecutor(RetryBudget(3, 5000), sleep=recording_sleep).run(op)

    assert calls == 1
    assert recording_sleep.calls == []
