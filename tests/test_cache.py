import asyncio

import pytest

import services.cache as cache_mod
from services.cache import TTLCache


@pytest.fixture
def clock(monkeypatch):
    t = {"now": 1000.0}
    monkeypatch.setattr(cache_mod.time, "monotonic", lambda: t["now"])
    return t


def test_get_before_ttl_returns_stored_value(clock):
    c = TTLCache(ttl_seconds=60)
    payload = [{"id": 1, "title": "Heat"}]

    c.set("trending_movies_day_5", payload)
    clock["now"] += 59.9

    assert c.get("trending_movies_day_5") is payload


def test_get_after_ttl_is_absent_and_evicts(clock):
    c = TTLCache(ttl_seconds=60)
    c.set("movie_details_1", {"id": 1})

    clock["now"] += 60
    assert c.get("movie_details_1") is None
    assert "movie_details_1" not in c
    assert len(c) == 0


def test_expired_entries_linger_until_looked_up(clock):
    c = TTLCache(ttl_seconds=1)
    c.set("a", 1)
    c.set("b", 2)

    clock["now"] += 5
    assert c.get("a") is None
    assert "b" in c


def test_set_overwrites_and_refreshes_expiry(clock):
    c = TTLCache(ttl_seconds=10)
    c.set("k", "old")
    clock["now"] += 8
    c.set("k", "new")
    clock["now"] += 8

    assert c.get("k") == "new"


def test_missing_key_is_none():
    assert TTLCache().get("nope") is None


def test_lru_eviction_when_full(clock):
    c = TTLCache(ttl_seconds=100, maxsize=2)
    c.set("a", 1)
    c.set("b", 2)
    assert c.get("a") == 1

    c.set("c", 3)

    assert c.get("b") is None
    assert c.get("a") == 1
    assert c.get("c") == 3


def test_falsy_values_are_cached(clock):
    c = TTLCache()
    c.set("trending_movies_week_5", [])
    assert c.get("trending_movies_week_5") == []


def test_clear():
    c = TTLCache()
    c.set("a", 1)
    c.clear()
    assert len(c) == 0


@pytest.mark.asyncio
async def test_get_or_fetch_caches_success():
    c = TTLCache()
    calls = []

    async def fetch():
        calls.append(1)
        return {"id": 7}

    assert await c.get_or_fetch("movie_details_7", fetch) == {"id": 7}
    assert await c.get_or_fetch("movie_details_7", fetch) == {"id": 7}
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_get_or_fetch_does_not_cache_failure():
    c = TTLCache()

    async def fetch():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        await c.get_or_fetch("movie_details_7", fetch)
    assert "movie_details_7" not in c


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_fetch():
    c = TTLCache()
    release = asyncio.Event()
    calls = []

    async def fetch():
        calls.append(1)
        await release.wait()
        return ["movie"]

    tasks = [asyncio.create_task(c.get_or_fetch("k", fetch)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks)

    assert results == [["movie"]] * 3
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_concurrent_misses_share_failure():
    c = TTLCache()
    release = asyncio.Event()
    calls = []

    async def fetch():
        calls.append(1)
        await release.wait()
        raise RuntimeError("boom")

    tasks = [asyncio.create_task(c.get_or_fetch("k", fetch)) for _ in range(2)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert len(calls) == 1
    assert "k" not in c


@pytest.mark.asyncio
async def test_without_coalescing_each_miss_fetches():
    c = TTLCache(coalesce=False)
    release = asyncio.Event()
    calls = []

    async def fetch():
        calls.append(1)
        await release.wait()
        return "v"

    tasks = [asyncio.create_task(c.get_or_fetch("k", fetch)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    await asyncio.gather(*tasks)

    assert len(calls) == 3
    assert c.get("k") == "v"


@pytest.mark.asyncio
async def test_cancelled_first_caller_does_not_fail_waiters():
    c = TTLCache()
    release = asyncio.Event()
    calls = []

    async def fetch():
        calls.append(1)
        await release.wait()
        return ["movie"]

    first = asyncio.create_task(c.get_or_fetch("k", fetch))
    await asyncio.sleep(0)
    waiter = asyncio.create_task(c.get_or_fetch("k", fetch))
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    release.set()
    assert await waiter == ["movie"]
    assert c.get("k") == ["movie"]
    assert len(calls) == 1
