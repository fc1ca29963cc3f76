"""FastAPI dependencies resolving the per-app services stored on ``app.state``."""

from fastapi import Request

from config import Settings
from services.cache import TTLCache
from services.metrics import Metrics
from services.tmdb_client import TMDBClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_tmdb_client(request: Request) -> TMDBClient:
    return request.app.state.tmdb


def get_metrics(request: Request) -> Metrics:
    return request.app.state.metrics
