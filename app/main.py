from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.file_view import build_default_view
from services.journal import build_default_journal


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    view = build_default_view()
    journal = build_default_journal()
    journal.data_view = view
    view.refresh()
    try:
        yield
    finally:
        journal.data_view = None
        build_default_journal.cache_clear()
        build_default_view.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="IoT Data View",
        description="Sensor, model and historical-data accessors with change notifications.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
