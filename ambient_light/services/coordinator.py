from __future__ import annotations
import asyncio
import logging
from typing import Optional, Pattern

from ..core.errors import ExtractionError, TransportError, UnsupportedChannelError
from ..core.log import AccessoryLogger
from ..domain.cache import FreshnessCache
from ..domain.extractor import extract_value
from ..domain.interfaces import Fetcher
from ..domain.models import CURRENT_AMBIENT_LIGHT_LEVEL, PushMessage, Reading, ReadingSource, UrlSpec
from ..domain.store import ReadingStore
from .pull_timer import PullTimer

logger = logging.getLogger(__name__)

SUPPORTED_CHARACTERISTICS = frozenset({CURRENT_AMBIENT_LIGHT_LEVEL})


class UpdateCoordinator:
    """Decides when to fetch, how to parse, and which update wins.

    Reads go through the freshness cache; on a miss one pull
    (fetch -> extract -> store) runs, and concurrent readers share it.
    Pushes skip the cache and overwrite the store directly.
    """

    def __init__(
        self,
        name: str,
        fetcher: Fetcher,
        get_url: UrlSpec,
        pattern: Pattern[str],
        group_index: int,
        cache: FreshnessCache,
        store: ReadingStore,
        identify_url: Optional[UrlSpec] = None,
        debug: bool = False,
    ) -> None:
        self._name = name
        self._fetcher = fetcher
        self._get_url = get_url
        self._pattern = pattern
        self._group_index = group_index
        self._cache = cache
        self._store = store
        self._identify_url = identify_url
        self._log = AccessoryLogger(logger, name, verbose=debug)

        self._pull_timer: Optional[PullTimer] = None
        self._inflight: Optional[asyncio.Future] = None
        self._last_pulled: Optional[Reading] = None

    @property
    def cache(self) -> FreshnessCache:
        return self._cache

    @property
    def store(self) -> ReadingStore:
        return self._store

    @property
    def last_pulled(self) -> Optional[Reading]:
        """The Reading stored by the most recent successful pull."""
        return self._last_pulled

    def attach_pull_timer(self, timer: PullTimer) -> None:
        self._pull_timer = timer

    async def get_sensor_value(self, source: ReadingSource = "pull") -> float:
        if not self._cache.should_query():
            value = self._store.get()
            self._log.debug(
                "get_sensor_value() returning cached value %s%s",
                value, " (infinite cache)" if self._cache.is_infinite() else "",
            )
            return value

        if self._inflight is not None and not self._inflight.done():
            self._log.debug("get_sensor_value() joining in-flight pull")
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._pull(source))
        try:
            return await asyncio.shield(self._inflight)
        finally:
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

    async def _pull(self, source: ReadingSource) -> float:
        try:
            result = await self._fetcher.get(self._get_url)
        except TransportError as e:
            self._log.warning("get_sensor_value() failed: %s", e)
            raise
        finally:
            if self._pull_timer is not None:
                self._pull_timer.reset_timer()

        if not result.ok:
            self._log.warning("get_sensor_value() returned http error: %s", result.status_code)
            raise TransportError(f"Got http error code {result.status_code}", status_code=result.status_code)

        try:
            value = extract_value(self._pattern, result.body, self._group_index)
        except ExtractionError as e:
            self._log.warning("get_sensor_value() error occurred while extracting sensor value from body: %s", e)
            raise ExtractionError("pattern error") from e

        self._log.debug("Sensor value is currently at %s", value)
        self._cache.queried()
        self._last_pulled = self._store.write(value, source=source)
        return self._last_pulled.value

    @staticmethod
    def resolve_characteristic(name: str) -> str:
        if name not in SUPPORTED_CHARACTERISTICS:
            raise UnsupportedChannelError(name)
        return name

    def handle_push(self, message: PushMessage) -> bool:
        """Store a pushed value. Returns False when the message was dropped."""
        try:
            self.resolve_characteristic(message.characteristic)
        except UnsupportedChannelError as e:
            self._log.warning("Encountered unknown characteristic handling %s: %s", message.channel, e)
            return False

        self._log.debug("Updating '%s' to new value: %s", message.characteristic, message.value)
        self._store.set(message.value, source=message.channel)
        return True

    async def identify(self) -> None:
        self._log.info("Identify requested!")
        if self._identify_url is None:
            return

        try:
            result = await self._fetcher.get(self._identify_url)
        except TransportError as e:
            self._log.warning("identify() failed: %s", e)
            raise
        if result.status_code != 200:
            self._log.warning("identify() returned http error: %s", result.status_code)
            raise TransportError(f"Got http error code {result.status_code}", status_code=result.status_code)
