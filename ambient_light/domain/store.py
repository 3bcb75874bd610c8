from __future__ import annotations
import logging
from typing import Callable, Optional

from .models import Bounds, Reading, ReadingSource
from ..core.timeutil import now_utc

logger = logging.getLogger(__name__)

Listener = Callable[[Reading], None]


class ReadingStore:
    """Last known value of one sensor; what the accessory layer reads."""

    def __init__(self, sensor_id: str, bounds: Bounds = Bounds(), initial: Optional[float] = None) -> None:
        self._sensor_id = sensor_id
        self._bounds = bounds
        self._listeners: list[Listener] = []
        value = bounds.min_value if initial is None else bounds.clamp(float(initial))
        self._reading = Reading(ts_utc=now_utc(), sensor_id=sensor_id, value=value, source="initial")

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def reading(self) -> Reading:
        return self._reading

    def get(self) -> float:
        return self._reading.value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set(self, value: float, source: ReadingSource = "pull") -> float:
        return self.write(value, source).value

    def write(self, value: float, source: ReadingSource = "pull") -> Reading:
        """Overwrite the current reading and return the Reading stored."""
        raw = float(value)
        clamped = self._bounds.clamp(raw)
        if clamped != raw:
            logger.warning(
                "%s: %s value %s outside [%s, %s], clamped to %s",
                self._sensor_id, source, raw,
                self._bounds.min_value, self._bounds.max_value, clamped,
            )

        changed = clamped != self._reading.value
        reading = Reading(ts_utc=now_utc(), sensor_id=self._sensor_id, value=clamped, source=source)
        self._reading = reading

        if changed:
            for listener in list(self._listeners):
                try:
                    listener(reading)
                except Exception:
                    logger.exception("%s: reading listener failed", self._sensor_id)
        return reading

    def publish(self, value: float, source: ReadingSource, expected: Optional[Reading]) -> bool:
        """Write ``value`` only if ``expected`` is still the current reading.

        Returns False when a newer write superseded ``expected``.
        """
        if expected is None or self._reading is not expected:
            return False
        self.write(value, source)
        return True
