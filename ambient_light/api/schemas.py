from __future__ import annotations
from pydantic import BaseModel
from typing import Optional


class NotificationRequest(BaseModel):
    characteristic: str
    value: float
    password: Optional[str] = None


class SensorValueResponse(BaseModel):
    name: str
    value: Optional[float] = None
    error: Optional[str] = None
