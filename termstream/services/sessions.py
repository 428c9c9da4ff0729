from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import AsyncIterator
from uuid import uuid4

from termstream.config import settings
from termstream.enums import RunKind, StreamState
from termstream.services.console_view import ConsoleView
from termstream.services.pipeline import ChunkSource, StreamPipeline
from termstream.services.terminal_emulator import TerminalDimensions


class StreamSession:
    """One console run: a pipeline, its rendered view and a relay queue."""

    def __init__(
        self,
        kind: RunKind,
        source: ChunkSource,
        dimensions: TerminalDimensions | None = None,
    ) -> None:
        self.id = str(uuid4())
        self.kind = kind
        self.created_at = datetime.now(timezone.utc)
        self.view = ConsoleView(dimensions)
        self.pipeline = StreamPipeline(source, self._sink)
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> StreamState:
        return self.pipeline.state

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.pipeline.run())
        return self._task

    def cancel(self) -> None:
        if self.state.terminal:
            return
        logging.info("Cancelling console session %s", self.id)
        self.pipeline.cancel()
        # The pipeline stays silent after cancellation; unblock relay readers directly.
        self._queue.put_nowait(None)

    async def wait(self) -> StreamState:
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        return self.state

    async def fragments(self) -> AsyncIterator[str]:
        while True:
            text = await self._queue.get()
            if text is None:
                return
            yield text

    def _sink(self, text: str | None) -> None:
        self.view(text)
        self._queue.put_nowait(text)


class SessionRegistry:
    """Tracks console sessions; keeps a bounded history of finished ones."""

    def __init__(self, history: int | None = None) -> None:
        self.history = history if history is not None else settings.session_history
        self._sessions: OrderedDict[str, StreamSession] = OrderedDict()

    def open(
        self,
        kind: RunKind,
        source: ChunkSource,
        dimensions: TerminalDimensions | None = None,
    ) -> StreamSession:
        session = StreamSession(kind, source, dimensions)
        self._sessions[session.id] = session
        session.start().add_done_callback(lambda _: self._prune())
        logging.info("Started %s session %s", kind.value, session.id)
        return session

    def get(self, session_id: str) -> StreamSession | None:
        return self._sessions.get(session_id)

    def list(self) -> list[StreamSession]:
        return list(self._sessions.values())

    def cancel(self, session_id: str) -> StreamSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.cancel()
        return session

    def _prune(self) -> None:
        finished = [s.id for s in self._sessions.values() if s.state.terminal]
        for session_id in finished[: max(0, len(finished) - self.history)]:
            del self._sessions[session_id]
