# network_api/interfaces/api/main.py
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from network_api.domain.network.errors import UpstreamUnavailableError
from network_api.infrastructure.config import get_settings
from network_api.interfaces.api.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    from network_api.infrastructure.duckdb_connection import close_connection, get_connection
    get_connection()  # fail at startup, not on the first request
    yield
    close_connection()


app = FastAPI(
    title="Entity Network API",
    debug=get_settings().debug,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url=None,
)


@app.exception_handler(UpstreamUnavailableError)
async def upstream_unavailable(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    logger.warning("Upstream unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Relationship data temporarily unavailable"},
        headers={"Retry-After": "5"},
    )


app.add_middleware(RateLimitMiddleware)


# Registered after the rate limit so 429 responses carry the headers too.
@app.middleware("http")
async def add_security_headers(request: Request, call_next: object) -> Response:
    response = await call_next(request)  # type: ignore[misc]
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response  # type: ignore[return-value]


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

from network_api.interfaces.api.routes.network_routes import router as network_router  # noqa: E402

app.include_router(network_router, prefix="/api")
