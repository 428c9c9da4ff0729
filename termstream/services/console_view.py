from __future__ import annotations

from termstream.config import settings
from termstream.services.terminal_emulator import TerminalDimensions, TerminalEmulator


class ConsoleView:
    """Pipeline sink that keeps a rendered screen of everything received.

    ``ended`` flips once the end sentinel arrives, which is when the console
    accepts input again.
    """

    def __init__(self, dimensions: TerminalDimensions | None = None) -> None:
        self.emulator = TerminalEmulator(
            dimensions or TerminalDimensions(width=settings.screen_width, height=settings.screen_height)
        )
        self.fragments: list[str] = []
        self.ended = False

    def __call__(self, text: str | None) -> None:
        if self.ended:
            return
        if text is None:
            self.ended = True
            return
        self.fragments.append(text)
        self.emulator.feed(text)

    @property
    def transcript(self) -> str:
        return "".join(self.fragments)

    def screen(self) -> list[str]:
        return self.emulator.lines()
