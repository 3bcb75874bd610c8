from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.errors import ExtractionError, TransportError
from ..core.timeutil import now_utc
from ..services.accessory import AmbientLightAccessory
from ..services.notifications import (
    NotificationAuthError,
    NotificationRegistry,
    UnknownNotificationError,
)
from ..storage.sqlite_repo import SQLiteRepository
from .schemas import NotificationRequest, SensorValueResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters (main.py wires the real ones via app.dependency_overrides) ---
def get_accessories() -> dict[str, AmbientLightAccessory]:  # overridden in main
    raise RuntimeError("Accessories dependency not configured")

def get_notifications() -> NotificationRegistry:  # overridden in main
    raise RuntimeError("Notification registry dependency not configured")

def get_repo() -> SQLiteRepository:  # overridden in main
    raise RuntimeError("Repo dependency not configured")


def _lookup(name: str, accessories: dict[str, AmbientLightAccessory]) -> AmbientLightAccessory:
    acc = accessories.get(name)
    if acc is None:
        raise HTTPException(status_code=404, detail=f"Unknown accessory: {name}")
    return acc


@router.get("/accessories")
async def list_accessories(accessories: dict[str, AmbientLightAccessory] = Depends(get_accessories)):
    return {
        "app": settings.app_name,
        "accessories": [
            {"name": name, "inert": acc.inert, "services": acc.get_services()}
            for name, acc in accessories.items()
        ],
    }


@router.get("/accessories/{name}")
async def get_accessory(name: str, accessories: dict[str, AmbientLightAccessory] = Depends(get_accessories)):
    acc = _lookup(name, accessories)
    return {"name": name, "inert": acc.inert, "services": acc.get_services()}


@router.get("/accessories/{name}/value", response_model=SensorValueResponse)
async def get_sensor_value(name: str, accessories: dict[str, AmbientLightAccessory] = Depends(get_accessories)):
    acc = _lookup(name, accessories)
    if acc.inert:
        raise HTTPException(status_code=503, detail=f"Accessory {name} is not configured correctly")

    try:
        value = await acc.get_sensor_value()
    except (TransportError, ExtractionError) as e:
        return JSONResponse(status_code=502, content=SensorValueResponse(name=name, error=str(e)).model_dump())
    return SensorValueResponse(name=name, value=value)


@router.post("/accessories/{name}/identify")
async def identify(name: str, accessories: dict[str, AmbientLightAccessory] = Depends(get_accessories)):
    acc = _lookup(name, accessories)
    try:
        await acc.identify()
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"ok": True}


@router.post("/notifications/{notification_id}")
async def notify(
    notification_id: str,
    req: NotificationRequest,
    x_notification_password: Optional[str] = Header(default=None),
    registry: NotificationRegistry = Depends(get_notifications),
):
    password = req.password if req.password is not None else x_notification_password
    try:
        accepted = registry.deliver(notification_id, password, req.characteristic, req.value)
    except UnknownNotificationError:
        raise HTTPException(status_code=404, detail=f"Unknown notification id: {notification_id}")
    except NotificationAuthError:
        raise HTTPException(status_code=401, detail="Invalid notification password")
    return {"ok": True, "accepted": accepted}


@router.get("/readings")
async def readings(
    minutes: int = 60,
    limit: int = 5000,
    sensor: Optional[str] = None,
    repo: SQLiteRepository = Depends(get_repo),
):
    end = now_utc()
    start = end - timedelta(minutes=max(1, minutes))
    rows = await repo.query_readings(start.isoformat(), end.isoformat(), limit=min(limit, 20000), sensor_id=sensor)
    return {
        "start_utc": start.isoformat(),
        "end_utc": end.isoformat(),
        "rows": [
            {"ts_utc": r.ts_utc.isoformat(), "sensor": r.sensor_id, "value": r.value, "source": r.source}
            for r in rows
        ],
    }
