from __future__ import annotations

from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Runtime configuration for the console streaming relay."""

    execution_base_url: str = "http://localhost:8000"
    run_file_path: str = "/ws/run_fractalic"
    run_command_path: str = "/ws/run_command"
    default_command_path: str = "/"
    read_chunk_size: int | None = None
    connect_timeout: float = 10.0
    read_timeout: float | None = None
    decode_errors: Literal["replace", "strict"] = "replace"
    panel_marker: str = "streaming"
    track_headers_across_fragments: bool = False
    screen_width: int = 120
    screen_height: int = 40
    session_history: int = 20
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "TERMSTREAM_"
        extra = "ignore"


settings = Settings()
