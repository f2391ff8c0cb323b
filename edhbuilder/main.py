import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edhbuilder.api import health_router, imports_router
from edhbuilder.config import settings
from edhbuilder.db.database import async_session_factory, init_db
from edhbuilder.models.failure import KnownError, create_unknown_failure
from edhbuilder.services.card_cache import CardCacheWriter
from edhbuilder.services.card_catalog import ScryfallCatalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the shared catalog client and cache writer; drain them on shutdown."""
    await init_db()
    app.state.catalog = ScryfallCatalog()
    app.state.cache_writer = CardCacheWriter(async_session_factory)
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout)
    try:
        yield
    finally:
        await app.state.cache_writer.drain()
        await app.state.catalog.aclose()
        await app.state.http_client.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("edhbuilder"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(imports_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content=create_unknown_failure(exc).model_dump(mode="json"),
    )
