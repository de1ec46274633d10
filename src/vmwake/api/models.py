"""Pydantic request/response models for the vmwake API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class WakeRequestBody(BaseModel):
    target: str
    wait: bool = False
    timeout: Optional[int] = Field(default=None, ge=1)


class HostResponse(BaseModel):
    name: str
    mac_address: str
    ip_address: Optional[str]


class HostsResponse(BaseModel):
    hosts: list[HostResponse]


class HostStatusResponse(BaseModel):
    name: str
    host: str
    status: str
    latency_ms: Optional[float]
    ssh: str


class WakeResultResponse(BaseModel):
    target: str
    mac_address: str
    success: bool
    outcome: Optional[str]
    transport: Optional[str]
    started_at: datetime
    finished_at: Optional[datetime]
    duration_seconds: Optional[float]
    wait_skipped: bool
    error: Optional[str]
