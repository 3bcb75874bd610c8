import asyncio

import pytest

from ambient_light.core.errors import TransportError
from ambient_light.services.pull_timer import PullTimer


class Counter:
    def __init__(self, value=1.0, error=None):
        self.calls = 0
        self.value = value
        self.error = error

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PullTimer(0, Counter(), lambda v: None)


@pytest.mark.asyncio
async def test_ticks_and_publishes_value():
    pull = Counter(value=321.0)
    published = []
    timer = PullTimer(30, pull, published.append)

    timer.start()
    await asyncio.sleep(0.2)
    await timer.stop()

    assert pull.calls >= 2
    assert published == [321.0] * pull.calls


@pytest.mark.asyncio
async def test_failed_tick_does_not_publish_or_stop_loop():
    pull = Counter(error=TransportError("down"))
    published = []
    timer = PullTimer(30, pull, published.append)

    timer.start()
    await asyncio.sleep(0.2)
    assert timer.running
    await timer.stop()

    assert pull.calls >= 2
    assert published == []


@pytest.mark.asyncio
async def test_reset_postpones_tick():
    pull = Counter()
    timer = PullTimer(150, pull, lambda v: None)

    timer.start()
    for _ in range(6):
        await asyncio.sleep(0.05)
        timer.reset_timer()
    assert pull.calls == 0

    await asyncio.sleep(0.3)
    await timer.stop()
    assert pull.calls >= 1


@pytest.mark.asyncio
async def test_start_twice_keeps_single_task():
    timer = PullTimer(1000, Counter(), lambda v: None)
    timer.start()
    first = timer._task
    timer.start()
    assert timer._task is first
    await timer.stop()
    assert not timer.running


@pytest.mark.asyncio
async def test_stop_is_prompt():
    timer = PullTimer(60_000, Counter(), lambda v: None)
    timer.start()
    await asyncio.sleep(0)
    await asyncio.wait_for(timer.stop(), timeout=1.0)
    assert not timer.running


@pytest.mark.asyncio
async def test_restart_after_stop():
    pull = Counter()
    timer = PullTimer(30, pull, lambda v: None)
    timer.start()
    await timer.stop()

    timer.start()
    await asyncio.sleep(0.15)
    await timer.stop()
    assert pull.calls >= 1
