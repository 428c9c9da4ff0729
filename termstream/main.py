from __future__ import annotations

import logging

from fastapi import FastAPI

from termstream.api import console
from termstream.config import settings

app = FastAPI(title="Console Stream Relay", version="0.1.0")

app.include_router(console.router)


@app.on_event("startup")
async def setup_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
