from __future__ import annotations

import asyncio
from typing import Callable

import pytest


class FakeSource:
    """In-memory chunk source; exceptions in ``events`` are raised when reached."""

    failure_message = "Error: Failed to execute command\n"

    def __init__(self, events: list[bytes | Exception], open_error: Exception | None = None, stall: bool = False) -> None:
        self.events = list(events)
        self.open_error = open_error
        self.stall = stall
        self.opened = False
        self.closed = False
        self.consumed = 0

    async def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def __aiter__(self):
        for event in self.events:
            if self.closed:
                return
            self.consumed += 1
            if isinstance(event, Exception):
                raise event
            yield event
        if self.stall:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    return FakeSource
