from __future__ import annotations

import dataclasses
import logging
from typing import Any

from .audio_source import Track, format_duration
from .errors import EmptySessionOperation, ResolutionError, TransportUnavailable
from .i18n import t
from .registry import SessionRegistry
from .resolver import TrackResolver

log = logging.getLogger(__name__)

QUEUE_LISTING_LIMIT = 20


def _label(track: Track) -> str:
    if track.duration > 0:
        return f"{track.title} [{format_duration(track.duration)}]"
    return track.title


class CommandDispatcher:
    """Runs chat commands against the session registry and returns the reply text.

    Every failure a command can meet ends here as a message; nothing is
    raised to the caller.
    """

    def __init__(
        self, registry: SessionRegistry, resolver: TrackResolver, locale: str = "en"
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.locale = locale

    def _t(self, key: str, **kwargs) -> str:
        return t(key, self.locale, **kwargs)

    async def play(
        self,
        guild_id: int,
        voice_channel: Any,
        reply_channel: Any,
        query: str,
        requester: str = "",
    ) -> str:
        if voice_channel is None:
            return self._t("join_voice_first")

        # Resolve before touching any session state.
        try:
            track = await self.resolver.resolve(query)
        except ResolutionError as exc:
            log.warning("Could not resolve %r for guild %s: %s", query, guild_id, exc)
            return self._t("unable_to_add")

        if requester:
            track = dataclasses.replace(track, requester=requester)

        try:
            session = await self.registry.enqueue(guild_id, voice_channel, reply_channel, track)
        except TransportUnavailable:
            return self._t("voice_unavailable")
        if session.closed:
            # The track could not be started and the new session shut down.
            return self._t("unable_to_add")
        return self._t("queued_track", title=track.title)

    async def skip(self, guild_id: int) -> str:
        try:
            session = self.registry.require(guild_id)
        except EmptySessionOperation:
            return self._t("nothing_to_skip")
        if not await session.skip():
            return self._t("nothing_to_skip")
        return self._t("skipped")

    async def pause(self, guild_id: int) -> str:
        try:
            session = self.registry.require(guild_id)
        except EmptySessionOperation:
            return self._t("nothing_playing")
        await session.pause()
        return self._t("paused")

    async def resume(self, guild_id: int) -> str:
        try:
            session = self.registry.require(guild_id)
        except EmptySessionOperation:
            return self._t("nothing_to_resume")
        await session.resume()
        return self._t("resumed")

    async def stop(self, guild_id: int) -> str:
        try:
            session = self.registry.require(guild_id)
        except EmptySessionOperation:
            return self._t("nothing_playing")
        await session.stop()
        return self._t("stopped")

    def queue(self, guild_id: int) -> str:
        session = self.registry.get(guild_id)
        if session is None:
            return self._t("queue_empty")
        current, pending = session.status()
        if current is None and not pending:
            return self._t("queue_empty")

        lines: list[str] = []
        if current is not None:
            lines.append(self._t("queue_now_playing", title=_label(current)))
        for i, track in enumerate(pending[:QUEUE_LISTING_LIMIT]):
            lines.append(self._t("queue_entry", pos=i + 1, title=_label(track)))
        if len(pending) > QUEUE_LISTING_LIMIT:
            lines.append(self._t("queue_more", count=len(pending) - QUEUE_LISTING_LIMIT))
        return "\n".join(lines)

    def now_playing(self, guild_id: int) -> str:
        session = self.registry.get(guild_id)
        if session is None or session.current is None:
            return self._t("nothing_current")
        return self._t("now_playing", title=session.current.title)
