from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from termstream.enums import RunKind
from termstream.schemas import RunCommandRequest, RunFileRequest, ScreenRead, SessionRead
from termstream.services import session_registry
from termstream.services.sessions import StreamSession
from termstream.services.sources import command_run_source, file_run_source

router = APIRouter(prefix="/console", tags=["console"])


def _relay(session: StreamSession) -> StreamingResponse:
    async def body():
        try:
            async for text in session.fragments():
                yield text
        finally:
            # Client went away before the run finished.
            session.cancel()

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"X-Session-Id": session.id},
    )


def _require_session(session_id: str) -> StreamSession:
    session = session_registry.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/run_file")
async def run_file(payload: RunFileRequest) -> StreamingResponse:
    session = session_registry.open(RunKind.file, file_run_source(payload.file_path))
    return _relay(session)


@router.post("/run_command")
async def run_command(payload: RunCommandRequest) -> StreamingResponse:
    session = session_registry.open(RunKind.command, command_run_source(payload.command, payload.path))
    return _relay(session)


@router.get("/sessions", response_model=List[SessionRead])
async def list_sessions() -> list[SessionRead]:
    return [SessionRead.model_validate(session) for session in session_registry.list()]


@router.get("/sessions/{session_id}", response_model=SessionRead)
async def get_session(session_id: str) -> SessionRead:
    return SessionRead.model_validate(_require_session(session_id))


@router.get("/sessions/{session_id}/screen", response_model=ScreenRead)
async def get_screen(session_id: str) -> ScreenRead:
    session = _require_session(session_id)
    return ScreenRead(
        id=session.id,
        state=session.state,
        ended=session.view.ended,
        lines=session.view.screen(),
    )


@router.delete("/sessions/{session_id}", response_model=SessionRead)
async def cancel_session(session_id: str) -> SessionRead:
    session = _require_session(session_id)
    session.cancel()
    return SessionRead.model_validate(session)
