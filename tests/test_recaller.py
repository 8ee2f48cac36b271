import pytest

from recaller import (
    BailedError,
    InvalidObserverError,
    Recaller,
    RetryOptions,
    decorrelated_jitter_backoff,
    recallable,
)


class MockOperation:
    def __init__(self, fail_times=0):
        self.call_count = 0
        self.fail_times = fail_times

    async def __call__(self, bail, attempt):
        self.call_count += 1
        if self.call_count <= self.fail_times:
            raise ValueError("Mock failure")
        return "success"


@pytest.mark.asyncio
async def test_recaller_success_after_retries():
    operation = MockOperation(fail_times=2)
    recaller = Recaller(retries=3)

    result = await recaller.run(operation)

    assert result == "success"
    assert operation.call_count == 3


@pytest.mark.asyncio
async def test_recaller_max_retries_exceeded():
    operation = MockOperation(fail_times=5)
    recaller = Recaller(RetryOptions(retries=2))

    with pytest.raises(ValueError, match="Mock failure"):
        await recaller(operation)

    assert operation.call_count == 3


@pytest.mark.asyncio
async def test_recaller_is_reusable():
    recaller = Recaller({"retries": 1})

    first = MockOperation(fail_times=1)
    second = MockOperation(fail_times=1)

    assert await recaller(first) == "success"
    assert await recaller(second) == "success"
    assert first.call_count == second.call_count == 2


def test_recaller_validates_observer_on_construction():
    with pytest.raises(InvalidObserverError):
        Recaller(onretry=123)


@pytest.mark.asyncio
async def test_recaller_shares_stateful_backoff(recorded_sleeps):
    backoff = decorrelated_jitter_backoff(base=10, cap=10)
    recaller = Recaller(retries=1, backoff=backoff)

    await recaller(MockOperation(fail_times=1))
    await recaller(MockOperation(fail_times=1))

    assert recorded_sleeps == [0.01, 0.01]
    assert backoff.last_sleep == 10


def test_recaller_repr():
    assert (
        repr(Recaller(retries=2))
        == "Recaller(retries=2, backoff=None, onretry=None)"
    )


@pytest.mark.asyncio
async def test_recallable_passes_arguments():
    calls = []

    @recallable(retries=2)
    async def fetch(bail, attempt, key, *, suffix=""):
        calls.append((attempt, key, suffix))
        if attempt == 1:
            raise ConnectionError("flaky")
        return f"{key}{suffix}"

    result = await fetch("item", suffix="!")

    assert result == "item!"
    assert calls == [(1, "item", "!"), (2, "item", "!")]
    assert fetch.__name__ == "fetch"


@pytest.mark.asyncio
async def test_recallable_bail():
    @recallable()
    async def lookup(bail, attempt, key):
        if key not in {"known"}:
            bail()
            return None
        return key

    assert await lookup("known") == "known"
    with pytest.raises(BailedError):
        await lookup("unknown")
