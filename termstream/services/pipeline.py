from __future__ import annotations

import asyncio
import inspect
import logging
from typing import AsyncIterator, Awaitable, Callable, Protocol, Union

from termstream.config import settings
from termstream.enums import StreamState
from termstream.services.byte_accumulator import ByteAccumulator
from termstream.services.normalizer import EscapeSequenceNormalizer

Sink = Callable[[Union[str, None]], Union[None, Awaitable[None]]]

DEFAULT_FAILURE_MESSAGE = "Error: Failed to read process output\n"


class ChunkSourceError(RuntimeError):
    """Raised by chunk sources; ``message`` is safe to show in the console."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(detail or message)
        self.message = message


class ChunkSource(Protocol):
    failure_message: str

    async def open(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class StreamPipeline:
    """Drives one run: read chunk, decode, normalize, forward.

    The sink receives zero or more non-empty text fragments followed by
    exactly one ``None``. After :meth:`cancel` the sink is never called.
    """

    def __init__(
        self,
        source: ChunkSource,
        sink: Sink,
        accumulator: ByteAccumulator | None = None,
        normalizer: EscapeSequenceNormalizer | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.accumulator = accumulator or ByteAccumulator(errors=settings.decode_errors)
        self.normalizer = normalizer or EscapeSequenceNormalizer(
            marker=settings.panel_marker,
            track_headers=settings.track_headers_across_fragments,
        )
        self.state = StreamState.init
        self._task: asyncio.Task | None = None

    async def run(self) -> StreamState:
        if self.state is StreamState.cancelled:
            await self.source.aclose()
            return self.state
        if self.state is not StreamState.init:
            raise RuntimeError(f"Pipeline already used (state={self.state.value})")
        self._task = asyncio.current_task()
        try:
            failure = await self._pump()
            if failure is None:
                self._transition(StreamState.finalizing)
                await self._forward(self.accumulator.finalize())
                self._transition(StreamState.done)
            else:
                logging.error("Stream failed in state %s: %s", self.state.value, failure)
                self.accumulator.reset()
                await self._emit(self._failure_text(failure))
                self._transition(StreamState.errored)
        except asyncio.CancelledError:
            self._transition(StreamState.cancelled)
            self.accumulator.reset()
            raise
        finally:
            await self.source.aclose()
        await self._emit(None)
        return self.state

    async def _pump(self) -> Exception | None:
        """Read the source to exhaustion; return the source failure, if any.

        Only errors raised by the source are caught here. Sink errors
        propagate to the caller.
        """
        try:
            await self.source.open()
        except Exception as exc:
            return exc
        self._transition(StreamState.streaming)
        chunks = self.source.__aiter__()
        while self.state is not StreamState.cancelled:
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                return None
            except Exception as exc:
                return exc
            await self._forward(self.accumulator.append(chunk))
        return None

    def cancel(self) -> None:
        if self.state.terminal:
            return
        self._transition(StreamState.cancelled)
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _forward(self, fragment: str) -> None:
        if not fragment:
            return
        text = self.normalizer.normalize(fragment)
        if text:
            await self._emit(text)

    async def _emit(self, text: str | None) -> None:
        if self.state is StreamState.cancelled:
            return
        result = self.sink(text)
        if inspect.isawaitable(result):
            await result

    def _failure_text(self, exc: Exception) -> str:
        if isinstance(exc, ChunkSourceError):
            return exc.message
        return getattr(self.source, "failure_message", None) or DEFAULT_FAILURE_MESSAGE

    def _transition(self, state: StreamState) -> None:
        if self.state is StreamState.cancelled:
            return
        logging.debug("Stream state %s -> %s", self.state.value, state.value)
        self.state = state
