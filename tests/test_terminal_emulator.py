from termstream.services.console_view import ConsoleView
from termstream.services.terminal_emulator import TerminalDimensions, TerminalEmulator


def test_styled_fragments_render_as_plain_lines() -> None:
    view = ConsoleView(TerminalDimensions(width=60, height=6))
    view("\x1b[1;33m$ python run.py\x1b[0m\n")
    view("\x1b[38;2;10;200;10mготово\x1b[0m: ")
    view("3 files\n")
    assert view.screen() == ["$ python run.py", "готово: 3 files"]


def test_spinner_redraw_across_fragments_keeps_final_frame() -> None:
    emulator = TerminalEmulator(TerminalDimensions(width=40, height=3))
    for frame in ("Working |", "\rWorking /", "\rWorking -", "\rDone     "):
        emulator.feed(frame)
    assert emulator.lines() == ["Done"]


def test_feed_keeps_crlf_split_across_fragments() -> None:
    emulator = TerminalEmulator(TerminalDimensions(width=40, height=5))
    emulator.feed("first\r")
    emulator.feed("\nsecond\n")
    emulator.feed("third")
    assert emulator.lines() == ["first", "second", "third"]


def test_console_view_collects_until_end() -> None:
    view = ConsoleView(TerminalDimensions(width=40, height=5))
    view("$ echo hi\n")
    view("hi\n")
    assert not view.ended
    view(None)
    view("ignored")
    assert view.ended
    assert view.transcript == "$ echo hi\nhi\n"
    assert view.screen() == ["$ echo hi", "hi"]
