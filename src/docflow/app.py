"""FastAPI application for DocFlow."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docflow import __version__
from docflow.api import contragent, documents
from docflow.db import init_db
from docflow.errors import DocflowError, InvalidArgumentError, NotFoundError


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    await init_db()
    yield


app = FastAPI(
    title="DocFlow",
    description="Counterparty registry and document registration",
    version=__version__,
    lifespan=lifespan,
)
app.include_router(contragent.router)
app.include_router(documents.router_in)
app.include_router(documents.router_out)


def _error_response(status_code: int, exc: DocflowError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    return _error_response(400, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, exc)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}
