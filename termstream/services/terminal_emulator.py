from __future__ import annotations

from dataclasses import dataclass

import pyte


@dataclass
class TerminalDimensions:
    width: int
    height: int


class TerminalEmulator:
    """Feeds relayed console text into a pyte screen."""

    def __init__(self, dimensions: TerminalDimensions) -> None:
        self.dimensions = dimensions
        self._screen = pyte.Screen(dimensions.width, dimensions.height)
        self._stream = pyte.Stream(self._screen)
        self._prev = ""

    def feed(self, text: str) -> None:
        self._stream.feed(self._ensure_crlf(text))

    def lines(self) -> list[str]:
        lines = [line.rstrip() for line in self._screen.display]
        while lines and not lines[-1]:
            lines.pop()
        return lines

    def _ensure_crlf(self, raw_text: str) -> str:
        # The execution service streams bare LF; a terminal needs CR to return to column 0.
        if not raw_text:
            return raw_text
        chars: list[str] = []
        prev = self._prev
        for ch in raw_text:
            if ch == "\n" and prev != "\r":
                chars.append("\r\n")
            else:
                chars.append(ch)
            prev = ch
        self._prev = prev
        return "".join(chars)
