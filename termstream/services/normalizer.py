from __future__ import annotations

import logging
import re

BOX_DRAWING_RE = re.compile(r"[─-╿]")
CURSOR_SAVE_RESTORE_RE = re.compile(r"\x1b\[s.*?\x1b\[u", re.DOTALL)
CURSOR_POSITION_RE = re.compile(r"\x1b\[\d+;\d+H")
LINE_CLEAR = "\x1b[2K\x1b[1G"
LINE_CLEAR_RUN_RE = re.compile(r"(?:\x1b\[2K\x1b\[1G)+")
PANEL_CORNERS = "┏┌╭╔"


class EscapeSequenceNormalizer:
    """Collapses redraw noise from Rich-style live panels.

    Panel libraries repaint in place with cursor save/restore and absolute
    positioning. Replayed into a plain output sink those repaints show up as
    stacked copies of the same panel, so they are folded here.

    Rules operate on one fragment at a time. With ``track_headers`` the
    normalizer also remembers that a panel header has already been emitted
    and strips every later one, across fragment boundaries.
    """

    def __init__(self, marker: str = "streaming", track_headers: bool = False) -> None:
        self.marker = marker
        self.track_headers = track_headers
        self._header_seen = False
        self._header_re = re.compile(
            r"(?:\x1b\[\d+;\d+H)?[^\n]*[" + PANEL_CORNERS + r"][^\n]*\n"
            r"[^\n]*" + re.escape(marker) + r"[^\n]*\n"
        )

    def needs_normalizing(self, fragment: str) -> bool:
        return bool(
            (self.marker and self.marker in fragment)
            or BOX_DRAWING_RE.search(fragment)
            or CURSOR_SAVE_RESTORE_RE.search(fragment)
            or CURSOR_POSITION_RE.search(fragment)
        )

    def normalize(self, fragment: str) -> str:
        if not fragment or not self.needs_normalizing(fragment):
            return fragment
        logging.debug("Panel redraw patterns detected in %d-char fragment", len(fragment))
        text = CURSOR_SAVE_RESTORE_RE.sub(_collapse_saved_region, fragment)
        text = LINE_CLEAR_RUN_RE.sub(LINE_CLEAR, text)

        seen = self._header_seen if self.track_headers else False

        def drop_repeated_header(match: re.Match[str]) -> str:
            nonlocal seen
            if seen:
                return ""
            seen = True
            return match.group(0)

        text = self._header_re.sub(drop_repeated_header, text)
        if self.track_headers:
            self._header_seen = seen
        return text

    def reset(self) -> None:
        self._header_seen = False


def _collapse_saved_region(match: re.Match[str]) -> str:
    region = match.group(0)
    lines = region[len("\x1b[s") : -len("\x1b[u")].split("\n")
    if len(lines) < 2:
        return region
    for line in reversed(lines):
        if line.strip():
            return line
    return region
