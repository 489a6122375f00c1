"""Moves a session from one track to the next.

Advancement runs when the transport reports it went idle and when a track
is enqueued into a session with nothing current. Either way it runs under
the session lock, so a guild never has two advancements in flight while
other guilds advance independently.

A track whose stream cannot be opened, or that the transport refuses to
play, is reported once in the reply channel and skipped. After
``max_failures`` consecutive failures the session is torn down.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import discord

from .i18n import t
from .metrics import forget_guild, playback_errors_total, queue_size, tracks_played_total

if TYPE_CHECKING:
    from .registry import SessionRegistry
    from .session import PlaybackSession

log = logging.getLogger(__name__)

StreamOpener = Callable[[str], Awaitable[Any]]


class AdvancementController:
    def __init__(
        self,
        registry: SessionRegistry,
        open_stream: StreamOpener,
        *,
        max_failures: int = 10,
        locale: str = "en",
    ) -> None:
        self._registry = registry
        self._open_stream = open_stream
        self._max_failures = max(1, max_failures)
        self._locale = locale
        self._tasks: set[asyncio.Task] = set()

    def notify_idle(self, session: PlaybackSession, error: Exception | None = None) -> None:
        """Idle callback handed to the transport; must be called on the event loop."""
        task = asyncio.get_running_loop().create_task(self.on_idle(session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def on_idle(self, session: PlaybackSession) -> None:
        async with session.lock:
            # Stopping a torn-down session's player still fires idle.
            if session.closed:
                return
            await self.advance(session)

    async def advance(self, session: PlaybackSession) -> None:
        """Play the front of the queue, or tear down when it is empty.

        The caller must hold ``session.lock``.
        """
        failures = 0
        while session.queue:
            track = session.queue.popleft()
            session.current = track
            queue_size.labels(guild_id=str(session.guild_id)).set(len(session.queue))
            try:
                source = await self._open_stream(track.url)
                session.handle.play(source)
            except Exception as exc:
                log.error("Failed to play %s in guild %s: %s", track.title, session.guild_id, exc)
                playback_errors_total.inc()
                await self._notify(session, t("play_failed", self._locale, title=track.title))
                failures += 1
                if failures >= self._max_failures:
                    await self._notify(session, t("too_many_failures", self._locale))
                    break
                continue

            tracks_played_total.inc()
            log.info("Guild %s now playing %s", session.guild_id, track.title)
            await self._notify(session, t("now_playing", self._locale, title=track.title))
            return

        await self.teardown(session)

    async def teardown(self, session: PlaybackSession) -> None:
        """Close the session and release its voice connection. Caller holds the lock."""
        session.closed = True
        session.queue.clear()
        session.current = None
        forget_guild(session.guild_id)
        session.handle.stop()
        await self._registry.release(session)

    async def _notify(self, session: PlaybackSession, msg: str) -> None:
        try:
            await session.reply_channel.send(msg)
        except discord.HTTPException as exc:
            log.warning("Could not post to reply channel in guild %s: %s", session.guild_id, exc)

    async def join(self) -> None:
        """Wait for in-flight idle handling to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
