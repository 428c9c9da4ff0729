from __future__ import annotations

import codecs
import logging

REPLACEMENT_CHAR = "�"


class ByteAccumulator:
    """Turns arbitrarily split UTF-8 byte chunks into complete text fragments.

    Bytes that do not yet form a complete character stay in an internal
    buffer and are retried when the next chunk arrives. The buffer is a
    single ``bytearray`` that grows and shrinks in place.
    """

    def __init__(self, errors: str = "replace") -> None:
        self.errors = errors
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def append(self, chunk: bytes) -> str:
        self._buffer.extend(chunk)
        if not self._buffer:
            return ""
        pieces: list[str] = []
        while True:
            try:
                text, consumed = codecs.utf_8_decode(self._buffer, self.errors, False)
            except UnicodeDecodeError as exc:
                text, consumed = self._longest_valid_prefix(exc.start)
                if not consumed and exc.reason != "unexpected end of data":
                    # Invalid bytes at the front: surface them and keep decoding.
                    text, consumed = REPLACEMENT_CHAR, exc.end
                pieces.append(text)
                del self._buffer[:consumed]
                if consumed:
                    continue
                break
            pieces.append(text)
            del self._buffer[:consumed]
            break
        text = "".join(pieces)
        if REPLACEMENT_CHAR in text:
            logging.warning("Malformed UTF-8 in stream; %d replacement character(s)", text.count(REPLACEMENT_CHAR))
        return text

    def finalize(self) -> str:
        if not self._buffer:
            return ""
        text = self._buffer.decode("utf-8", errors="replace")
        if REPLACEMENT_CHAR in text:
            logging.warning(
                "Stream ended mid-sequence; %d trailing byte(s) decoded lossily", len(self._buffer)
            )
        self._buffer.clear()
        return text

    def reset(self) -> None:
        self._buffer.clear()

    def _longest_valid_prefix(self, limit: int) -> tuple[str, int]:
        # Bytes past the first invalid offset can never be part of a valid
        # prefix, so the backward scan starts there.
        start = min(limit, len(self._buffer))
        with memoryview(self._buffer) as view:
            for end in range(start, 0, -1):
                try:
                    text, _ = codecs.utf_8_decode(view[:end], "strict", True)
                except UnicodeDecodeError:
                    continue
                return text, end
        return "", 0
