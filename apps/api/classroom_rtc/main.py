"""FastAPI application issuing RTC/RTM access tokens for lesson rooms."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .core.config import settings
from .routers import rtc as rtc_router
from .schemas.rtc import ErrorResponse

PACKAGE_LOGGER = "classroom_rtc"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Apply the configured level to this package's loggers only.

    Handlers and formatting stay with the host (uvicorn or the embedding app).
    """

    logging.getLogger(PACKAGE_LOGGER).setLevel(settings.log_level.upper())
    yield


app = FastAPI(title="Classroom RTC Token API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(rtc_router.router, prefix="/api/rtc", tags=["rtc"])


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies with the same envelope as other caller errors."""

    fields = ", ".join(".".join(str(part) for part in error["loc"][1:]) or "body" for error in exc.errors())
    logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=f"Invalid request parameters: {fields}").model_dump(),
    )


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness check."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)
