import pytest
from pydantic import ValidationError

from termstream.config import Settings


def test_decode_errors_accepts_replace_and_strict() -> None:
    assert Settings(decode_errors="strict").decode_errors == "strict"
    assert Settings().decode_errors == "replace"


def test_decode_errors_rejects_lossy_handlers(monkeypatch) -> None:
    monkeypatch.setenv("TERMSTREAM_DECODE_ERRORS", "ignore")
    with pytest.raises(ValidationError):
        Settings()
