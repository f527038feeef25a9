from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class DatabaseHealthOut(BaseModel):
    status: Literal["healthy", "unhealthy"]
    error: str = ""


class HealthOut(BaseModel):
    status: Literal["healthy", "degraded", "unhealthy"]
    service: str
    version: str
    timestamp: datetime
    database: DatabaseHealthOut
