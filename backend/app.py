"""FastAPI application entry point for the Movie Night API."""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, settings as default_settings
from errors import ConfigurationError, register_error_handlers
from services.cache import TTLCache
from services.metrics import Metrics, install_metrics_middleware
from services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Structured logging: JSON for production, human-readable for local."""
    if settings.is_production:
        logging.basicConfig(
            level=logging.INFO,
            format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
            stream=sys.stdout,
        )
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def create_app(
    settings: Settings | None = None,
    cache: TTLCache | None = None,
    tmdb_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app with its own cache, TMDB client and metrics registry.

    Raises:
        ConfigurationError: if a required setting (TMDB_TOKEN) is missing.
    """
    settings = settings or default_settings
    missing = settings.validate()
    if missing:
        raise ConfigurationError(missing)

    metrics = Metrics()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        lag_task = asyncio.create_task(metrics.monitor_event_loop_lag(settings.event_loop_lag_interval_seconds))
        try:
            yield
        finally:
            lag_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await lag_task
            await app.state.tmdb.aclose()

    app = FastAPI(title="Movie Night API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    if cache is None:
        cache = TTLCache(
            ttl_seconds=settings.cache_ttl_seconds,
            maxsize=settings.cache_max_entries,
            coalesce=settings.cache_coalesce,
        )
    app.state.cache = cache
    app.state.tmdb = TMDBClient(
        api_key=settings.tmdb_token,
        base_url=settings.tmdb_base_url,
        timeout=settings.tmdb_timeout_seconds,
        transport=tmdb_transport,
    )
    app.state.metrics = metrics

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request count + latency for every route, including /metrics and /health
    install_metrics_middleware(app, metrics)

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.metrics import router as metrics_router
    from routes.movies import router as movies_router

    app.include_router(health_router)
    app.include_router(movies_router)
    app.include_router(metrics_router)

    return app


def main() -> None:
    """Run the API under uvicorn; exit non-zero before binding if misconfigured."""
    configure_logging(default_settings)
    try:
        app = create_app(default_settings)
    except ConfigurationError as e:
        logger.error("Error: %s. Refusing to start.", e)
        sys.exit(1)

    logger.info("Server is starting on port %d", default_settings.port)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    main()
