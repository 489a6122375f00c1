from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterator

import discord

from .advancement import AdvancementController, StreamOpener
from .audio_source import Track
from .errors import EmptySessionOperation, SessionClosed, TransportUnavailable
from .metrics import active_sessions, voice_connections
from .session import PlaybackSession
from .transport import VoiceTransport

log = logging.getLogger(__name__)


class SessionRegistry:
    """Holds the live playback session of every guild.

    A guild has an entry only while its session has something current or
    queued. Creation is serialized per guild so concurrent first requests
    open a single voice connection; different guilds never wait on each
    other.
    """

    def __init__(
        self,
        transport: VoiceTransport,
        open_stream: StreamOpener,
        *,
        max_playback_failures: int = 10,
        locale: str = "en",
    ) -> None:
        self._transport = transport
        self._sessions: dict[int, PlaybackSession] = {}
        self._creating: dict[int, asyncio.Lock] = {}
        self.advancer = AdvancementController(
            self, open_stream, max_failures=max_playback_failures, locale=locale
        )

    def __len__(self) -> int:
        return sum(1 for s in self._sessions.values() if not s.closed)

    def __contains__(self, guild_id: int) -> bool:
        return self.get(guild_id) is not None

    def __iter__(self) -> Iterator[PlaybackSession]:
        return iter([s for s in self._sessions.values() if not s.closed])

    def get(self, guild_id: int) -> PlaybackSession | None:
        session = self._sessions.get(guild_id)
        if session is None or session.closed:
            return None
        return session

    def require(self, guild_id: int) -> PlaybackSession:
        session = self.get(guild_id)
        if session is None:
            raise EmptySessionOperation(guild_id)
        return session

    async def enqueue(
        self, guild_id: int, voice_channel: Any, reply_channel: Any, track: Track
    ) -> PlaybackSession:
        """Add *track* to the guild's session, creating the session if needed.

        Raises TransportUnavailable when a new session cannot connect; in that
        case nothing is registered.
        """
        while True:
            session = await self._session_for(guild_id, voice_channel, reply_channel)
            try:
                await session.enqueue(track)
            except SessionClosed:
                log.debug("Guild %s session closed under enqueue, starting a new one", guild_id)
                continue
            return session

    async def _live(self, guild_id: int) -> PlaybackSession | None:
        session = self._sessions.get(guild_id)
        while session is not None and session.closed:
            await session.released.wait()
            session = self._sessions.get(guild_id)
        return session

    async def _session_for(
        self, guild_id: int, voice_channel: Any, reply_channel: Any
    ) -> PlaybackSession:
        session = await self._live(guild_id)
        if session is not None:
            return session

        while True:
            lock = self._creating.setdefault(guild_id, asyncio.Lock())
            async with lock:
                # A release may have dropped this lock while we waited on it.
                if self._creating.get(guild_id) is not lock:
                    continue
                session = await self._live(guild_id)
                if session is None:
                    try:
                        session = await self._create(guild_id, voice_channel, reply_channel)
                    except TransportUnavailable:
                        del self._creating[guild_id]
                        raise
                return session

    async def _create(
        self, guild_id: int, voice_channel: Any, reply_channel: Any
    ) -> PlaybackSession:
        handle = await self._transport.connect(voice_channel)
        voice_connections.inc()
        session = PlaybackSession(guild_id, voice_channel, reply_channel, handle, self.advancer)
        handle.on_idle(lambda error: self.advancer.notify_idle(session, error))
        self._sessions[guild_id] = session
        active_sessions.inc()
        log.info("Created playback session for guild %s", guild_id)
        return session

    async def release(self, session: PlaybackSession) -> None:
        """Disconnect a closed session and drop its entry."""
        try:
            await session.handle.disconnect()
        except (discord.DiscordException, asyncio.TimeoutError, OSError) as exc:
            log.warning("Voice disconnect failed in guild %s: %s", session.guild_id, exc)
        finally:
            if self._sessions.get(session.guild_id) is session:
                del self._sessions[session.guild_id]
            lock = self._creating.get(session.guild_id)
            if lock is not None and not lock.locked():
                del self._creating[session.guild_id]
            voice_connections.dec()
            active_sessions.dec()
            session.released.set()
            log.info("Tore down playback session for guild %s", session.guild_id)

    async def close(self) -> None:
        """Stop every session and wait for outstanding advancements."""
        for session in list(self):
            await session.stop()
        await self.advancer.join()
