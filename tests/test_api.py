"""Tests for the HTTP layer: digest read, refresh trigger, conflicts, errors."""

from __future__ import annotations

import asyncio

import pytest
from aiohttp import test_utils, web

from newsdigest.api.app import (
    ALREADY_GENERATING,
    EMPTY_MESSAGE,
    GENERATOR_KEY,
    create_app,
)
from newsdigest.connectors.base import SearchConnector
from newsdigest.digest.generator import DigestGenerator
from newsdigest.digest.models import ArticleResult, NewsDigest
from newsdigest.digest.state import DigestState
from newsdigest.pipeline.scheduler import DigestScheduler


class StaticSearch(SearchConnector):
    async def search(self, topic, api_key, engine_id):
        return [ArticleResult(title=f"{topic} news", link="https://x", snippet="s", source="x.org")]


class BlockingSearch(SearchConnector):
    """Holds every search open until ``release`` is set."""

    def __init__(self):
        self.release = asyncio.Event()
        self.topics = []

    async def search(self, topic, api_key, engine_id):
        self.topics.append(topic)
        await self.release.wait()
        return [ArticleResult(title=f"{topic} news", link="https://x", snippet="s", source="x.org")]


@pytest.fixture
def config(tmp_path):
    interests = tmp_path / "interests.txt"
    interests.write_text("alpha\nbeta\n", encoding="utf-8")
    return {
        "digest": {"interests_path": str(interests), "topic_delay_seconds": 0},
        "search": {"api_key": "k", "engine_id": "cx"},
        "llm": {"provider": "mock", "api_key": ""},
    }


@pytest.fixture
def state():
    return DigestState()


@pytest.fixture
def generator(config, state):
    return DigestGenerator(config, state=state, search=StaticSearch())


@pytest.fixture
async def client(config, generator):
    app = create_app(config, generator=generator)
    async with test_utils.TestClient(test_utils.TestServer(app)) as c:
        yield c


async def wait_idle(generator: DigestGenerator, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while generator.is_digest_generating():
        assert loop.time() < deadline, "generation did not finish"
        await asyncio.sleep(0.01)


class TestGetDigest:
    @pytest.mark.asyncio
    async def test_empty_placeholder_before_first_run(self, client):
        resp = await client.get("/api/news-digest")
        assert resp.status == 200
        data = await resp.json()
        assert data == {
            "generatedAt": None,
            "topics": [],
            "status": "empty",
            "message": EMPTY_MESSAGE,
        }

    @pytest.mark.asyncio
    async def test_returns_cached_digest(self, client, state):
        state.store(NewsDigest.failed("boom"))
        data = await (await client.get("/api/news-digest")).json()
        assert data["status"] == "error"
        assert data["error"] == "boom"


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_starts_generation(self, client, generator):
        resp = await client.post("/api/news-digest/refresh")
        assert resp.status == 202
        assert "message" in await resp.json()

        await asyncio.sleep(0)
        await wait_idle(generator)

        data = await (await client.get("/api/news-digest")).json()
        assert data["status"] == "ready"
        assert [t["topic"] for t in data["topics"]] == ["alpha", "beta"]
        assert data["topics"][0]["articleCount"] == 1

    @pytest.mark.asyncio
    async def test_refresh_conflict_while_generating(self, client, state):
        state.is_generating = True
        resp = await client.post("/api/news-digest/refresh")
        assert resp.status == 409
        assert (await resp.json())["error"] == ALREADY_GENERATING

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_start_one_pass(self, config, state):
        search = BlockingSearch()
        generator = DigestGenerator(config, state=state, search=search)
        app = create_app(config, generator=generator)
        async with test_utils.TestClient(test_utils.TestServer(app)) as c:
            responses = await asyncio.gather(
                *(c.post("/api/news-digest/refresh") for _ in range(5))
            )
            statuses = sorted(resp.status for resp in responses)
            assert statuses == [202, 409, 409, 409, 409]
            assert generator.is_digest_generating() is True

            search.release.set()
            await wait_idle(generator)

            data = await (await c.get("/api/news-digest")).json()
        assert data["status"] == "ready"
        # One pass: each topic searched exactly once
        assert search.topics == ["alpha", "beta"]

    @pytest.mark.asyncio
    async def test_refresh_requires_keys(self, config, generator):
        config["search"]["api_key"] = ""
        config["llm"]["provider"] = "gemini"
        app = create_app(config, generator=generator)
        async with test_utils.TestClient(test_utils.TestServer(app)) as c:
            resp = await c.post("/api/news-digest/refresh")
            assert resp.status == 500
            error = (await resp.json())["error"]
        assert "search.api_key" in error
        assert "llm.api_key" in error
        assert generator.get_cached_digest() is None
        assert generator.is_digest_generating() is False


class TestHealthAndErrors:
    @pytest.mark.asyncio
    async def test_health(self, client, state):
        data = await (await client.get("/api/health")).json()
        assert data == {"status": "ok", "generating": False}
        state.is_generating = True
        data = await (await client.get("/api/health")).json()
        assert data["generating"] is True

    @pytest.mark.asyncio
    async def test_unhandled_error_is_json_500(self, config, generator):
        app = create_app(config, generator=generator)

        async def broken(request):
            raise RuntimeError("kaboom")

        app.router.add_get("/broken", broken)
        async with test_utils.TestClient(test_utils.TestServer(app)) as c:
            resp = await c.get("/broken")
            assert resp.status == 500
            assert await resp.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, client):
        resp = await client.get("/api/nope")
        assert resp.status == 404


class TestAppWiring:
    def test_generator_shared_through_app(self, config, generator):
        app = create_app(config, generator=generator)
        assert app[GENERATOR_KEY] is generator

    @pytest.mark.asyncio
    async def test_scheduler_started_and_stopped_with_app(self, config, generator):
        scheduler = DigestScheduler(generator, ("k", "cx", ""), interval_hours=24)
        app = create_app(config, generator=generator, scheduler=scheduler)
        async with test_utils.TestClient(test_utils.TestServer(app)):
            assert scheduler.running
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_scheduler_not_started_without_keys(self, config, generator):
        config["search"]["engine_id"] = ""
        scheduler = DigestScheduler(generator, ("k", "", ""), interval_hours=24)
        app = create_app(config, generator=generator, scheduler=scheduler)
        async with test_utils.TestClient(test_utils.TestServer(app)):
            assert not scheduler.running

    def test_app_is_web_application(self, config):
        assert isinstance(create_app(config), web.Application)
