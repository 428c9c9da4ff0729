from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Iterator

import requests

from termstream.config import settings
from termstream.schemas import RunCommandRequest, RunFileRequest
from termstream.services.pipeline import ChunkSourceError

FILE_FAILURE_MESSAGE = "Error: Failed to execute file\n"
COMMAND_FAILURE_MESSAGE = "Error: Failed to execute command\n"
NO_FILE_MESSAGE = "Error: No file selected\n"


class HttpChunkSource:
    """Streams a POST response body from the local execution service.

    ``requests`` blocks on every read, so each read runs in a worker thread
    and the event loop only ever waits on one chunk at a time.
    """

    def __init__(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        failure_message: str,
        chunk_size: int | None = None,
        timeout: tuple[float, float | None] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.payload = payload
        self.failure_message = failure_message
        self.chunk_size = chunk_size if chunk_size is not None else settings.read_chunk_size
        self.timeout = timeout or (settings.connect_timeout, settings.read_timeout)
        self._session = session
        self._owns_session = session is None
        self._response: requests.Response | None = None
        self._chunks: Iterator[bytes] | None = None
        self._closed = False
        self._lock = threading.Lock()

    async def open(self) -> None:
        if self._closed:
            raise ChunkSourceError(self.failure_message, "source already closed")
        if self._session is None:
            self._session = requests.Session()
        try:
            response = await asyncio.to_thread(self._post)
            if response is None:
                raise ChunkSourceError(self.failure_message, "source closed while connecting")
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ChunkSourceError(self.failure_message, f"POST {self.url} failed: {exc}") from exc
        logging.info("Streaming output from %s", self.url)
        self._chunks = response.iter_content(chunk_size=self.chunk_size)

    def _post(self) -> requests.Response | None:
        # Runs in a worker thread; the caller may have been cancelled meanwhile.
        response = self._session.post(
            self.url,
            json=self.payload,
            stream=True,
            timeout=self.timeout,
        )
        with self._lock:
            if not self._closed:
                self._response = response
                return response
        logging.info("Discarding response from %s after cancellation", self.url)
        response.close()
        return None

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._chunks is None:
            raise ChunkSourceError(self.failure_message, "source was not opened")
        while not self._closed:
            try:
                chunk = await asyncio.to_thread(next, self._chunks, None)
            except requests.RequestException as exc:
                raise ChunkSourceError(self.failure_message, f"read from {self.url} failed: {exc}") from exc
            if chunk is None:
                return
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            response = self._response
        if response is not None:
            response.close()
        if self._owns_session and self._session is not None:
            self._session.close()


def _endpoint(path: str) -> str:
    return settings.execution_base_url.rstrip("/") + path


class NoFileSource:
    """Stands in for a file run when no file is selected."""

    failure_message = NO_FILE_MESSAGE

    async def open(self) -> None:
        raise ChunkSourceError(NO_FILE_MESSAGE, "no file path given")

    async def __aiter__(self) -> AsyncIterator[bytes]:
        return
        yield b""

    async def aclose(self) -> None:
        return None


def file_run_source(file_path: str, **kwargs: Any) -> HttpChunkSource | NoFileSource:
    if not file_path:
        return NoFileSource()
    request = RunFileRequest(file_path=file_path)
    return HttpChunkSource(
        _endpoint(settings.run_file_path),
        request.model_dump(),
        failure_message=FILE_FAILURE_MESSAGE,
        **kwargs,
    )


def command_run_source(command: str, path: str | None = None, **kwargs: Any) -> HttpChunkSource:
    request = RunCommandRequest(command=command, path=path or settings.default_command_path)
    return HttpChunkSource(
        _endpoint(settings.run_command_path),
        request.model_dump(),
        failure_message=COMMAND_FAILURE_MESSAGE,
        **kwargs,
    )
