"""Embedded status and control API.

Shares the bot process and talks to the same CommandDispatcher the slash
commands use. Started by ``bot.py`` when WEB_PORT is set.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiohttp.web as web

if TYPE_CHECKING:
    from discord.ext import commands

    from music.audio_source import Track
    from music.dispatch import CommandDispatcher

log = logging.getLogger(__name__)

routes = web.RouteTableDef()

_ACTIONS = ("skip", "pause", "resume", "stop")


def _get_dispatcher(request: web.Request) -> CommandDispatcher:
    dispatcher = request.app.get("dispatcher")
    if dispatcher is None:
        bot: commands.Bot = request.app["bot"]
        cog = bot.get_cog("MusicCog")
        if cog is None:
            raise web.HTTPServiceUnavailable(text="MusicCog not loaded")
        dispatcher = cog.dispatcher  # type: ignore[attr-defined]
    return dispatcher


def _guild_id(request: web.Request) -> int:
    try:
        return int(request.match_info["guild_id"])
    except ValueError:
        raise web.HTTPBadRequest(text="guild_id must be an integer") from None


def _track(t: Track) -> dict:
    return {"title": t.title, "url": t.url, "duration": t.duration,
            "requester": t.requester}


# ── Health ───────────────────────────────────────────────────────────────

@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    dispatcher = _get_dispatcher(request)
    bot = request.app.get("bot")
    return web.json_response({
        "status": "ok",
        "guilds": len(bot.guilds) if bot is not None else 0,
        "sessions": len(dispatcher.registry),
    })


# ── Queue ────────────────────────────────────────────────────────────────

@routes.get("/api/guilds/{guild_id}/queue")
async def get_queue(request: web.Request) -> web.Response:
    dispatcher = _get_dispatcher(request)
    session = dispatcher.registry.get(_guild_id(request))
    if session is None:
        raise web.HTTPNotFound(text="No active session")
    current, queue = session.status()
    return web.json_response({
        "current": _track(current) if current else None,
        "queue": [_track(t) for t in queue],
        "paused": session.paused,
    })


@routes.post("/api/guilds/{guild_id}/{action}")
async def control(request: web.Request) -> web.Response:
    action = request.match_info["action"]
    if action not in _ACTIONS:
        raise web.HTTPNotFound(text=f"Unknown action {action!r}")
    dispatcher = _get_dispatcher(request)
    guild_id = _guild_id(request)
    if dispatcher.registry.get(guild_id) is None:
        raise web.HTTPNotFound(text="No active session")
    await getattr(dispatcher, action)(guild_id)
    log.info("Web API: %s in guild %s", action, guild_id)
    return web.json_response({"status": action})


# ── Server lifecycle ─────────────────────────────────────────────────────

def create_app(bot: commands.Bot | None = None,
               dispatcher: CommandDispatcher | None = None) -> web.Application:
    app = web.Application()
    app["bot"] = bot
    app["dispatcher"] = dispatcher
    app.router.add_routes(routes)
    return app


async def start_web_server(bot: commands.Bot, port: int = 8080) -> web.AppRunner:
    runner = web.AppRunner(create_app(bot))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    return runner
