"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal Server Error"


class MovieNightError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(MovieNightError):
    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required env vars: {', '.join(missing)}")
        self.missing = missing


class UpstreamError(MovieNightError):
    """TMDB call failed: transport error, timeout or non-success status."""

    def __init__(self, message: str, path: str, upstream_status: int | None = None):
        super().__init__(message, status_code=500)
        self.path = path
        self.upstream_status = upstream_status


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error(
            "Upstream failure serving %s %s: %s (path=%s, upstream_status=%s)",
            request.method,
            request.url.path,
            exc,
            exc.path,
            exc.upstream_status,
        )
        return JSONResponse({"error": GENERIC_SERVER_ERROR}, status_code=exc.status_code)

    @app.exception_handler(MovieNightError)
    async def handle_movie_night_error(_request: Request, exc: MovieNightError):
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc)
            return JSONResponse({"error": GENERIC_SERVER_ERROR}, status_code=exc.status_code)
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": GENERIC_SERVER_ERROR},
            status_code=500,
        )
