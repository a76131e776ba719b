"""
Schemas for the demo access API
"""
from typing import Optional

from pydantic import BaseModel


class DemoAccessResponse(BaseModel):
    sessionToken: str
    expiresAt: str  # ISO-8601 UTC, e.g. "2024-05-01T12:10:00.000Z"
    durationMinutes: int
    proxyUrl: str


class DemoSessionStatus(BaseModel):
    valid: bool
    appId: str
    appName: str
    startTime: str
    expiresAt: str
    remainingSeconds: int
    proxyUrl: Optional[str] = None
