import asyncio

import pytest


@pytest.fixture
def recorded_sleeps(monkeypatch):
    """Replace asyncio.sleep inside the retrier and record requested delays."""
    sleeps = []
    real_sleep = asyncio.sleep

    async def fake_sleep(seconds, *args, **kwargs):
        sleeps.append(seconds)
        await real_sleep(0)

    monkeypatch.setattr("recaller.retrier.asyncio.sleep", fake_sleep)
    return sleeps


@pytest.fixture(autouse=True)
def _clear_retry_env(monkeypatch):
    monkeypatch.delenv("RECALLER_DEFAULT_RETRIES", raising=False)
