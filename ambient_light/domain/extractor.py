"""Turn an arbitrary response body into a numeric reading.

Patterns come from accessory configuration either as a plain regular
expression string or as a JavaScript-style literal (``/body/flags``), which
is how most existing configurations were written.
"""
from __future__ import annotations

import re
from typing import Any, Pattern

from ..core.errors import ConfigError, ExtractionError

DEFAULT_STATUS_PATTERN = re.compile(r"(-?[0-9]{1,3}(\.[0-9])?)")

_LITERAL = re.compile(r"^/(?P<body>.*)/(?P<flags>[a-z]*)$", re.DOTALL)
_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "g": 0,  # global has no meaning for a single search
    "u": 0,
}


def parse_pattern(value: Any) -> Pattern[str]:
    if isinstance(value, re.Pattern):
        return value
    if not isinstance(value, str):
        raise ConfigError(f"Unsupported pattern type: {type(value).__name__}")

    source, flags = value, 0
    m = _LITERAL.match(value)
    if m:
        source = m.group("body")
        for ch in m.group("flags"):
            if ch not in _FLAGS:
                raise ConfigError(f"Unsupported pattern flag: {ch!r}")
            flags |= _FLAGS[ch]

    try:
        return re.compile(source, flags)
    except re.error as e:
        raise ConfigError(f"Invalid pattern {value!r}: {e}") from e


def extract_value(pattern: Pattern[str], body: str, group_index: int = 1) -> float:
    """Apply ``pattern`` to ``body`` and parse capture group ``group_index``.

    Raises ExtractionError when nothing matches, when the group does not
    exist or did not take part in the match, or when the captured text is
    not a number. The result is not clamped.
    """
    m = pattern.search(body)
    if m is None:
        raise ExtractionError("no match")

    if group_index < 1 or group_index > pattern.groups:
        raise ExtractionError("missing group")
    captured = m.group(group_index)
    if captured is None:
        raise ExtractionError("missing group")

    try:
        return float(captured)
    except ValueError as e:
        raise ExtractionError(f"not a number: {captured!r}") from e
