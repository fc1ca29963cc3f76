"""Movie lookups against TMDB: trending aggregation and movie details.

Trending results are paginated upstream. ``fetch_trending`` walks pages in
order and concatenates their ``results`` until it has seen the last page or
hit the page ceiling, whichever comes first. A failed page fails the whole
aggregation; callers never get a truncated list.
"""

import logging

from services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)

TRENDING_WINDOWS = ("day", "week")
MAX_PAGES = 5
LANGUAGE = "en-US"


def normalize_window(window: str | None) -> str:
    """Coerce anything other than ``week`` to ``day``."""
    return window if window in TRENDING_WINDOWS else "day"


def trending_cache_key(window: str, max_pages: int = MAX_PAGES) -> str:
    return f"trending_movies_{window}_{max_pages}"


def movie_cache_key(movie_id: str | int) -> str:
    return f"movie_details_{movie_id}"


async def fetch_trending(
    client: TMDBClient,
    window: str = "day",
    max_pages: int = MAX_PAGES,
    language: str = LANGUAGE,
) -> list[dict]:
    """Fetch trending movies for ``window`` across up to ``max_pages`` pages."""
    window = normalize_window(window)
    movies: list[dict] = []
    page = 1
    total_pages = 1

    while page <= total_pages and page <= max_pages:
        data = await client.call(
            f"/trending/movie/{window}",
            {"language": language, "page": page},
        )
        movies.extend(data.get("results") or [])
        # No total_pages means there's nothing past this page.
        total_pages = data.get("total_pages") or page
        page += 1

    logger.info("Aggregated %d trending movies (%s) from %d page(s)", len(movies), window, page - 1)
    return movies


async def fetch_movie_details(client: TMDBClient, movie_id: str | int, language: str = LANGUAGE) -> dict:
    """Fetch one movie's details; the TMDB body is returned unchanged."""
    return await client.call(f"/movie/{movie_id}", {"language": language})
