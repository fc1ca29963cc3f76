"""Movie routes — trending list and movie details, served through the cache.

GET /movies/trending   → up to TRENDING_MAX_PAGES upstream pages, concatenated
GET /movies/{movie_id} → one upstream call, raw TMDB body
"""

import logging

from fastapi import APIRouter, Depends, Query

from config import Settings
from dependencies import get_cache, get_settings, get_tmdb_client
from services import movies
from services.cache import TTLCache
from services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/movies")


# Registered before /{movie_id} so "trending" isn't taken as an id.
@router.get("/trending")
async def trending(
    window: str | None = Query("day"),
    cache: TTLCache = Depends(get_cache),
    tmdb: TMDBClient = Depends(get_tmdb_client),
    settings: Settings = Depends(get_settings),
) -> list[dict]:
    """Trending movies for ``day`` or ``week``; other values mean ``day``."""
    window = movies.normalize_window(window)
    max_pages = settings.trending_max_pages
    key = movies.trending_cache_key(window, max_pages)
    logger.debug("Trending request: window=%s key=%s", window, key)

    return await cache.get_or_fetch(
        key,
        lambda: movies.fetch_trending(tmdb, window, max_pages, settings.tmdb_language),
    )


@router.get("/{movie_id}")
async def movie_details(
    movie_id: str,
    cache: TTLCache = Depends(get_cache),
    tmdb: TMDBClient = Depends(get_tmdb_client),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Details for one movie, passed through from TMDB."""
    key = movies.movie_cache_key(movie_id)
    logger.debug("Movie details request: id=%s key=%s", movie_id, key)
    return await cache.get_or_fetch(
        key,
        lambda: movies.fetch_movie_details(tmdb, movie_id, settings.tmdb_language),
    )
