"""FastAPI application exposing the documentation lookups."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from refdocs.config import AppConfig
from refdocs.errors import InvalidArgumentError, StorageUnavailableError
from refdocs.index.search import DocLookup
from refdocs.index.storage import SQLiteDocIndex

LOGGER = logging.getLogger(__name__)


class LookupDocsPayload(BaseModel):
    query: str
    category: str | None = None
    max_tokens: int | None = None


class LookupClassPayload(BaseModel):
    class_name: str


def _lookup(request: Request) -> DocLookup:
    return request.app.state.lookup


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the app; the index is opened at startup and closed at shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = config or AppConfig.from_env()
        logging.basicConfig(level=settings.log_level, format="[%(levelname)s] %(message)s")
        index_path = settings.resolve_index_path()
        index = SQLiteDocIndex.open_or_create(index_path)
        LOGGER.info("Documentation index loaded from %s (%d docs)", index_path, index.count())
        app.state.index = index
        app.state.lookup = DocLookup(
            index,
            default_max_tokens=settings.default_max_tokens,
            chars_per_token=settings.chars_per_token,
        )
        try:
            yield
        finally:
            index.close()

    app = FastAPI(title="refdocs", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument(_: Request, exc: InvalidArgumentError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable(_: Request, exc: StorageUnavailableError) -> JSONResponse:
        LOGGER.error("Index unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.post("/lookup_docs")
    async def lookup_docs(payload: LookupDocsPayload, request: Request) -> dict[str, Any]:
        """Search reference docs, returning snippets that fit a token budget."""
        result = await asyncio.to_thread(
            _lookup(request).lookup_docs,
            payload.query,
            payload.category,
            payload.max_tokens,
        )
        return result.as_dict()

    @app.post("/lookup_class")
    async def lookup_class(payload: LookupClassPayload, request: Request) -> dict[str, Any]:
        """Return the structured reference for one class."""
        result = await asyncio.to_thread(_lookup(request).lookup_class, payload.class_name)
        return result.as_dict()

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        count = await asyncio.to_thread(request.app.state.index.count)
        return {"status": "ok", "documents": count}

    return app


app = create_app()
