"""Prometheus instrumentation for inbound HTTP traffic.

Every request is counted and timed, labelled by method, route and status
code. ``route`` is the matched route template (``/movies/{movie_id}``), so
path parameters don't turn into label values; requests that match no route
fall back to the raw path.

Each ``Metrics`` instance owns its own ``CollectorRegistry`` with the default
process, platform and GC collectors plus an event-loop lag gauge, so two apps
in one process (tests) never share samples.
"""

import asyncio
import logging
import time

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

logger = logging.getLogger(__name__)

LATENCY_BUCKETS = (0.05, 0.1, 0.3, 1, 2, 5)
LABELS = ("method", "route", "status_code")


class Metrics:
    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            LABELS,
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            LABELS,
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )
        self.event_loop_lag_seconds = Gauge(
            "event_loop_lag_seconds",
            "How late the event loop woke a sleeping task, in seconds",
            registry=self.registry,
        )

    def observe_request(self, method: str, route: str, status_code: int, duration: float) -> None:
        labels = {"method": method, "route": route, "status_code": str(status_code)}
        self.http_requests_total.labels(**labels).inc()
        self.http_request_duration_seconds.labels(**labels).observe(duration)

    def render(self) -> tuple[bytes, str]:
        """Text exposition of every metric in this registry."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST

    async def monitor_event_loop_lag(self, interval: float = 1.0) -> None:
        """Sleep ``interval`` forever and record how late each wakeup was."""
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            await asyncio.sleep(interval)
            lag = loop.time() - started - interval
            self.event_loop_lag_seconds.set(max(0.0, lag))


def route_label(request: Request) -> str:
    """Matched route template, or the raw path when nothing matched."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path


def install_metrics_middleware(app: FastAPI, metrics: Metrics) -> None:
    """Count and time every request on ``app``."""

    @app.middleware("http")
    async def record_request_metrics(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            metrics.observe_request(
                request.method,
                route_label(request),
                status_code,
                time.perf_counter() - started,
            )
