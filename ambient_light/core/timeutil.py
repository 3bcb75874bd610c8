import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0
