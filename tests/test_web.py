"""
Unit Tests for the status and control API
"""

from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from music.dispatch import CommandDispatcher
from web.app import create_app

GUILD = 77


@pytest_asyncio.fixture
async def client(registry):
    dispatcher = CommandDispatcher(registry, MagicMock())
    async with TestClient(TestServer(create_app(dispatcher=dispatcher))) as c:
        yield c


@pytest_asyncio.fixture
async def session(registry, voice_channel, reply_channel, tracks):
    for track in tracks[:3]:
        s = await registry.enqueue(GUILD, voice_channel, reply_channel, track)
    return s


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client, session):
        resp = await client.get("/health")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok", "guilds": 0, "sessions": 1}


class TestQueue:
    @pytest.mark.asyncio
    async def test_queue_snapshot(self, client, session, tracks):
        resp = await client.get(f"/api/guilds/{GUILD}/queue")

        assert resp.status == 200
        body = await resp.json()
        assert body["current"]["title"] == tracks[0].title
        assert [t["url"] for t in body["queue"]] == [tracks[1].url, tracks[2].url]
        assert body["paused"] is False

    @pytest.mark.asyncio
    async def test_no_session(self, client):
        resp = await client.get("/api/guilds/1/queue")
        assert resp.status == 404

    @pytest.mark.asyncio
    async def test_bad_guild_id(self, client):
        resp = await client.get("/api/guilds/abc/queue")
        assert resp.status == 400


class TestControl:
    @pytest.mark.asyncio
    async def test_pause(self, client, session):
        resp = await client.post(f"/api/guilds/{GUILD}/pause")

        assert resp.status == 200
        assert await resp.json() == {"status": "pause"}
        assert session.paused

    @pytest.mark.asyncio
    async def test_stop(self, client, registry, session):
        resp = await client.post(f"/api/guilds/{GUILD}/stop")

        assert resp.status == 200
        assert registry.get(GUILD) is None

    @pytest.mark.asyncio
    async def test_unknown_action(self, client, session):
        resp = await client.post(f"/api/guilds/{GUILD}/shuffle")
        assert resp.status == 404

    @pytest.mark.asyncio
    async def test_no_session(self, client):
        resp = await client.post("/api/guilds/1/skip")
        assert resp.status == 404
