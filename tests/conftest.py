"""Shared fixtures: fake fetch collaborator and a controllable clock."""

import asyncio
import re

import pytest

from ambient_light.core.errors import TransportError
from ambient_light.domain.cache import FreshnessCache
from ambient_light.domain.models import Bounds, FetchResult, UrlSpec
from ambient_light.domain.store import ReadingStore
from ambient_light.services.coordinator import UpdateCoordinator


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeFetcher:
    """Returns queued results in order; the last one repeats.

    Entries may be a FetchResult, an exception to raise, or a str body
    (served with status 200). When ``gate`` is set, every call waits on it.
    """

    def __init__(self, *results):
        self.results = list(results) or [FetchResult(200, "0")]
        self.calls: list[UrlSpec] = []
        self.gate: asyncio.Event | None = None

    def queue(self, *results) -> None:
        self.results = list(results)

    async def get(self, spec: UrlSpec) -> FetchResult:
        self.calls.append(spec)
        if self.gate is not None:
            await self.gate.wait()
        r = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(r, Exception):
            raise r
        if isinstance(r, str):
            return FetchResult(200, r)
        return r


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher("light=10.0 lux")


@pytest.fixture
def make_coordinator(fetcher, clock):
    """Build a coordinator with the default lux pattern and given TTL."""

    def _make(ttl_ms: int = 0, pattern: str = r"(-?[0-9]{1,3}(\.[0-9])?)", group: int = 1,
              bounds: Bounds = Bounds(), identify_url: UrlSpec | None = None):
        return UpdateCoordinator(
            name="test sensor",
            fetcher=fetcher,
            get_url=UrlSpec(url="http://sensor.local/lux"),
            pattern=re.compile(pattern),
            group_index=group,
            cache=FreshnessCache(ttl_ms, clock=clock),
            store=ReadingStore("test sensor", bounds),
            identify_url=identify_url,
        )

    return _make


@pytest.fixture
def transport_error():
    return TransportError("connection refused")
