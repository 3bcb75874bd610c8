from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

PullFunc = Callable[[], Awaitable[float]]
ValueSetter = Callable[[float], None]


class PullTimer:
    """Fires ``pull`` every ``interval_ms`` and hands the result to ``on_value``.

    ``reset_timer()`` restarts the countdown from now, so a pull triggered by
    someone else postpones the next scheduled one.
    """

    def __init__(self, interval_ms: int, pull: PullFunc, on_value: ValueSetter, name: str = "pull_timer") -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._interval_s = interval_ms / 1000.0
        self._pull = pull
        self._on_value = on_value
        self._name = name

        self._task: Optional[asyncio.Task] = None
        self._wakeup = asyncio.Event()
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping = False
        self._wakeup = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        self._stopping = True
        self._wakeup.set()
        if self._task:
            await self._task
            self._task = None

    def reset_timer(self) -> None:
        self._wakeup.set()

    async def _tick(self) -> None:
        try:
            value = await self._pull()
        except Exception as e:
            logger.warning("%s: scheduled pull failed: %s", self._name, e)
            return
        self._on_value(value)

    async def _run(self) -> None:
        logger.info("%s started (interval=%.3fs)", self._name, self._interval_s)

        while not self._stopping:
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                await self._tick()
            # woken early: reset or stop, either way the countdown restarts

        logger.info("%s stopped", self._name)
