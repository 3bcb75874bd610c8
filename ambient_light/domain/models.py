from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

CURRENT_AMBIENT_LIGHT_LEVEL = "CurrentAmbientLightLevel"

MIN_LUX_VALUE = 0.0
MAX_LUX_VALUE = 2.0 ** 16 - 1.0  # BH1750 16-bit lux range

ReadingSource = Literal["pull", "schedule", "notification", "mqtt", "initial"]
ChannelKind = Literal["notification", "mqtt"]


@dataclass(frozen=True)
class Reading:
    ts_utc: datetime
    sensor_id: str
    value: float
    source: ReadingSource = "pull"
    unit: str = "lux"


@dataclass(frozen=True)
class PushMessage:
    channel: ChannelKind
    characteristic: str
    value: float


@dataclass(frozen=True)
class FetchResult:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class Bounds:
    min_value: float = MIN_LUX_VALUE
    max_value: float = MAX_LUX_VALUE

    def clamp(self, value: float) -> float:
        return min(self.max_value, max(self.min_value, value))


@dataclass(frozen=True)
class UrlSpec:
    url: str
    method: str = "GET"
    body: Optional[str] = None
    headers: Optional[dict[str, str]] = None
    username: Optional[str] = None
    password: Optional[str] = None
    timeout_s: Optional[float] = None
