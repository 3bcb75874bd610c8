from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

ACCESSORY_TYPE = "HTTP-AMBIENT-LIGHT"


class AccessoryConfig(BaseModel):
    """One entry of the accessories file.

    Loosely typed on purpose where bad values are recovered from with a
    warning (statusPattern, patternGroupToExtract, mqtt) instead of
    disabling the accessory.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    accessory: str = ACCESSORY_TYPE
    name: str
    debug: bool = False

    get_url: Any = Field(default=None, alias="getUrl")
    identify_url: Any = Field(default=None, alias="identifyUrl")

    min_value: Optional[float] = Field(default=None, alias="minValue")
    max_value: Optional[float] = Field(default=None, alias="maxValue")

    status_cache: Any = Field(default=None, alias="statusCache")
    status_pattern: Any = Field(default=None, alias="statusPattern")
    pattern_group: Any = Field(default=None, alias="patternGroupToExtract")

    pull_interval: Optional[int] = Field(default=None, alias="pullInterval")

    notification_id: Optional[str] = Field(default=None, alias="notificationID")
    notification_password: Optional[str] = Field(default=None, alias="notificationPassword")

    mqtt: Any = None


def parse_accessory_config(raw: Any) -> AccessoryConfig:
    try:
        return AccessoryConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def load_accessory_configs(path: str | Path) -> list[AccessoryConfig]:
    """Load ``{"accessories": [...]}`` (or a bare list) and keep the entries
    for this accessory type. Invalid entries are logged and skipped."""
    p = Path(path)
    if not p.exists():
        logger.warning("Accessories file %s not found, no sensors configured", p)
        return []

    data = json.loads(p.read_text())
    entries = data.get("accessories", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ConfigError(f"{p}: 'accessories' must be a list")

    out: list[AccessoryConfig] = []
    for i, entry in enumerate(entries):
        if isinstance(entry, dict) and entry.get("accessory", ACCESSORY_TYPE) != ACCESSORY_TYPE:
            continue
        try:
            out.append(parse_accessory_config(entry))
        except ConfigError as e:
            logger.warning("Skipping accessory #%d in %s: %s", i, p, e)
    return out
