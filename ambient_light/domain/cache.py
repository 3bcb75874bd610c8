from __future__ import annotations
from typing import Any, Callable, Optional

from ..core.errors import ConfigError
from ..core.timeutil import monotonic_ms

INFINITE_TTL = -1


def parse_ttl(value: Any, default: int = 0) -> int:
    """Accept milliseconds, ``-1`` or ``"infinite"``; ``None`` means default."""
    if value is None:
        return default
    if isinstance(value, str):
        if value.strip().lower() in ("infinite", "infinity", "-1"):
            return INFINITE_TTL
        try:
            value = int(value)
        except ValueError:
            raise ConfigError(f"Invalid cache time: {value!r}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Invalid cache time: {value!r}")
    if value == INFINITE_TTL:
        return INFINITE_TTL
    if value < 0:
        raise ConfigError(f"Cache time must be >= 0 or -1 (infinite), got {value}")
    return int(value)


class FreshnessCache:
    def __init__(self, ttl_ms: int = 0, clock: Callable[[], float] = monotonic_ms) -> None:
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._last_queried_ms: Optional[float] = None

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    @property
    def last_queried_ms(self) -> Optional[float]:
        return self._last_queried_ms

    def is_infinite(self) -> bool:
        return self._ttl_ms == INFINITE_TTL

    def should_query(self) -> bool:
        if self._last_queried_ms is None or self._ttl_ms == 0:
            return True
        if self.is_infinite():
            return False
        return self._clock() - self._last_queried_ms >= self._ttl_ms

    def queried(self) -> None:
        self._last_queried_ms = self._clock()
