from __future__ import annotations
from typing import Protocol, runtime_checkable
from .models import FetchResult, Reading, UrlSpec


@runtime_checkable
class Fetcher(Protocol):
    async def get(self, spec: UrlSpec) -> FetchResult:
        """Perform the request. Raise TransportError on transport failure."""
        ...


@runtime_checkable
class Repository(Protocol):
    async def init(self) -> None:
        ...

    async def insert_reading(self, reading: Reading) -> None:
        ...

    async def query_readings(self, start_ts: str, end_ts: str, limit: int) -> list[Reading]:
        ...
