from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING, Any, NamedTuple

from .audio_source import Track
from .errors import SessionClosed
from .metrics import queue_size
from .transport import VoiceHandle

if TYPE_CHECKING:
    from .advancement import AdvancementController


class SessionStatus(NamedTuple):
    current: Track | None
    queue: tuple[Track, ...]


class PlaybackSession:
    """Per-guild playback state.

    Every mutation, advancement included, runs under ``lock``. Once
    ``closed`` is set the session is finished for good; a later ``play``
    in the same guild gets a new session.
    """

    def __init__(
        self,
        guild_id: int,
        voice_channel: Any,
        reply_channel: Any,
        handle: VoiceHandle,
        advancer: AdvancementController,
    ) -> None:
        self.guild_id = guild_id
        self.voice_channel = voice_channel
        self.reply_channel = reply_channel
        self.handle = handle
        self.queue: deque[Track] = deque()
        self.current: Track | None = None
        self.closed: bool = False
        self.lock = asyncio.Lock()
        self.released = asyncio.Event()
        self._advancer = advancer

    def __repr__(self) -> str:
        state = "closed" if self.closed else "live"
        return f"<PlaybackSession guild={self.guild_id} {state} queued={len(self.queue)}>"

    async def enqueue(self, track: Track) -> None:
        """Append a track, starting playback right away if nothing is current."""
        async with self.lock:
            if self.closed:
                raise SessionClosed(f"session for guild {self.guild_id} is closed")
            self.queue.append(track)
            queue_size.labels(guild_id=str(self.guild_id)).set(len(self.queue))
            if self.current is None:
                await self._advancer.advance(self)

    async def skip(self) -> bool:
        """Stop the current track; the idle notification plays the next one."""
        async with self.lock:
            if self.closed or self.current is None:
                return False
            self.handle.stop()
            return True

    async def pause(self) -> None:
        async with self.lock:
            if not self.closed:
                self.handle.pause()

    async def resume(self) -> None:
        async with self.lock:
            if not self.closed:
                self.handle.resume()

    async def stop(self) -> None:
        """Drop the queue, stop playback and release the voice connection."""
        async with self.lock:
            if self.closed:
                return
            await self._advancer.teardown(self)

    @property
    def paused(self) -> bool:
        return not self.closed and self.handle.is_paused()

    def status(self) -> SessionStatus:
        return SessionStatus(self.current, tuple(self.queue))
