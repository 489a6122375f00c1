"""Turns a user query into a playable :class:`Track`.

Spotify track links are looked up for their artist and name, and the
derived ``"Artist - Title"`` string is searched on YouTube. Anything else
is searched as-is. The first hit flagged playable wins; there is no retry.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from yt_dlp.utils import YoutubeDLError

from .audio_source import SearchHit, Track, YTDLSource
from .errors import MetadataLookupFailed, NoPlayableResultFound
from .metrics import resolve_seconds
from .spotify_resolver import SpotifyResolver
from .url_parser import InputType, classify

log = logging.getLogger(__name__)

SearchFn = Callable[[str, int], Awaitable[list[SearchHit]]]


async def youtube_search(text: str, limit: int) -> list[SearchHit]:
    return await YTDLSource.search(text, limit=limit)


class TrackResolver:
    def __init__(
        self,
        catalog: SpotifyResolver,
        search: SearchFn = youtube_search,
        search_limit: int = 5,
    ) -> None:
        self._catalog = catalog
        self._search = search
        self._limit = search_limit

    async def resolve(self, query: str) -> Track:
        started = time.monotonic()
        try:
            return await self._resolve(query)
        finally:
            resolve_seconds.observe(time.monotonic() - started)

    async def _resolve(self, query: str) -> Track:
        input_type, value = classify(query)

        if input_type is InputType.SPOTIFY_TRACK:
            title = await self._catalog_title(query, value)
            hit = await self._first_playable(query, f"{title} audio")
            return Track(title=title, url=hit.url, duration=hit.duration)

        if not value:
            raise NoPlayableResultFound(query, "empty query")
        hit = await self._first_playable(query, value)
        return Track(title=hit.title, url=hit.url, duration=hit.duration)

    async def _catalog_title(self, query: str, track_id: str) -> str:
        if not self._catalog.available:
            raise MetadataLookupFailed(query, "Spotify credentials are not configured")
        loop = asyncio.get_running_loop()
        try:
            item = await loop.run_in_executor(None, self._catalog.lookup_track, track_id)
        except Exception as exc:
            log.warning("Spotify lookup for %s failed: %s", track_id, exc)
            raise MetadataLookupFailed(query, str(exc)) from exc
        return item.search_title

    async def _first_playable(self, query: str, text: str) -> SearchHit:
        try:
            hits = await self._search(text, self._limit)
        except YoutubeDLError as exc:
            log.warning("Search for %r failed: %s", text, exc)
            raise NoPlayableResultFound(query, "search failed") from exc
        for hit in hits:
            if hit.is_playable:
                return hit
        raise NoPlayableResultFound(query, "no playable search result")
