"""Voice transport primitives.

A :class:`VoiceTransport` opens one :class:`VoiceHandle` per session. The
handle is both the connection and the player: it renders one audio source
at a time and reports through its idle callback whenever a source stops,
whether it ran out, errored, or was stopped.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import discord

from .errors import TransportUnavailable

log = logging.getLogger(__name__)

IdleCallback = Callable[[Optional[Exception]], None]


class VoiceHandle(ABC):
    @abstractmethod
    def on_idle(self, callback: IdleCallback) -> None:
        """Register the callback fired on the event loop when playback stops."""

    @abstractmethod
    def play(self, source: Any) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def resume(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def is_paused(self) -> bool: ...

    @abstractmethod
    async def disconnect(self) -> None: ...


class VoiceTransport(ABC):
    @abstractmethod
    async def connect(self, voice_channel: Any) -> VoiceHandle:
        """Open a handle on *voice_channel* or raise TransportUnavailable."""


class DiscordVoiceHandle(VoiceHandle):
    def __init__(self, vc: discord.VoiceClient, loop: asyncio.AbstractEventLoop) -> None:
        self._vc = vc
        self._loop = loop
        self._callback: IdleCallback | None = None

    def on_idle(self, callback: IdleCallback) -> None:
        self._callback = callback

    def _after(self, error: Exception | None) -> None:
        # Runs on discord.py's audio thread.
        if error:
            log.error("Playback error in guild %s: %s", self._vc.guild.id, error)
        if self._callback is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._callback, error)

    def play(self, source: discord.AudioSource) -> None:
        self._vc.play(source, after=self._after)

    def pause(self) -> None:
        self._vc.pause()

    def resume(self) -> None:
        self._vc.resume()

    def stop(self) -> None:
        self._vc.stop()

    def is_paused(self) -> bool:
        return self._vc.is_paused()

    async def disconnect(self) -> None:
        await self._vc.disconnect()


class DiscordVoiceTransport(VoiceTransport):
    async def connect(self, voice_channel: discord.VoiceChannel) -> DiscordVoiceHandle:
        vc: Optional[discord.VoiceClient] = voice_channel.guild.voice_client  # type: ignore[assignment]
        try:
            if vc is None:
                vc = await voice_channel.connect(self_deaf=True)
            elif vc.channel != voice_channel:
                await vc.move_to(voice_channel)
        except (discord.DiscordException, asyncio.TimeoutError, OSError) as exc:
            log.warning(
                "Could not connect to voice channel %s in guild %s: %s",
                voice_channel.id, voice_channel.guild.id, exc,
            )
            raise TransportUnavailable(str(exc)) from exc
        return DiscordVoiceHandle(vc, asyncio.get_running_loop())
