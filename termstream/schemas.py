from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from termstream.enums import RunKind, StreamState


class RunFileRequest(BaseModel):
    file_path: str


class RunCommandRequest(BaseModel):
    command: str
    path: str | None = None


class SessionRead(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    kind: RunKind
    state: StreamState
    created_at: datetime


class ScreenRead(BaseModel):
    id: str
    state: StreamState
    ended: bool
    lines: list[str]
