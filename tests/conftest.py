import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings


class FakeTMDB:
    """Stand-in for the TMDB API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.total_pages = 1
        self.movies: dict[str, dict] = {}
        self.status_overrides: dict[str, int] = {}

    def page_results(self, window: str, page: int) -> list[dict]:
        return [{"id": page * 100 + i, "title": f"{window}-p{page}-{i}"} for i in range(2)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/3")

        if path in self.status_overrides:
            return httpx.Response(self.status_overrides[path], json={"status_message": "nope"})

        if path.startswith("/trending/movie/"):
            window = path.rsplit("/", 1)[-1]
            page = int(request.url.params.get("page", "1"))
            return httpx.Response(
                200,
                json={
                    "page": page,
                    "results": self.page_results(window, page),
                    "total_pages": self.total_pages,
                },
            )

        if path.startswith("/movie/"):
            movie_id = path.rsplit("/", 1)[-1]
            if movie_id in self.movies:
                return httpx.Response(200, json=self.movies[movie_id])
            return httpx.Response(404, json={"status_message": "The resource you requested could not be found."})

        return httpx.Response(404)

    def calls_to(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.removeprefix("/3").startswith(prefix)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("TMDB_TOKEN", "test-token")
    monkeypatch.setenv("ENVIRONMENT", "test")
    for var in ("HOST", "PORT", "TMDB_BASE_URL", "TRENDING_MAX_PAGES", "CACHE_TTL_SECONDS", "CACHE_COALESCE"):
        monkeypatch.delenv(var, raising=False)
    return Settings()


@pytest.fixture
def fake_tmdb():
    return FakeTMDB()


@pytest.fixture
def app(settings, fake_tmdb):
    return create_app(settings, tmdb_transport=fake_tmdb.transport)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
