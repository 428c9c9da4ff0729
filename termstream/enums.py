from __future__ import annotations

from enum import Enum


class StreamState(str, Enum):
    init = "init"
    streaming = "streaming"
    finalizing = "finalizing"
    done = "done"
    errored = "errored"
    cancelled = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (StreamState.done, StreamState.errored, StreamState.cancelled)


class RunKind(str, Enum):
    file = "file"
    command = "command"
