"""TMDB API client.

One ``httpx.AsyncClient`` bound to the TMDB base URL, shared by every request
for the lifetime of the app. The API key is sent as the ``api_key`` query
parameter on each call. Every call carries an explicit timeout; nothing is
retried.
"""

import logging
from typing import Any

import httpx

from config import TMDB_BASE_URL
from errors import UpstreamError

logger = logging.getLogger(__name__)


class TMDBClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = TMDB_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def call(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises:
            UpstreamError: on network failure, timeout, non-2xx status or a
                body that isn't JSON.
        """
        query = dict(params or {})
        query["api_key"] = self._api_key

        try:
            resp = await self._client.get(path, params=query)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("TMDB returned %d for %s", status, path)
            raise UpstreamError(f"TMDB returned {status} for {path}", path, status) from e
        except httpx.HTTPError as e:
            logger.warning("TMDB request failed for %s: %s", path, e)
            raise UpstreamError(f"TMDB request failed for {path}: {type(e).__name__}", path) from e

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"TMDB returned a non-JSON body for {path}", path, resp.status_code) from e

    async def aclose(self) -> None:
        await self._client.aclose()
