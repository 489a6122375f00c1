from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import discord
import yt_dlp

log = logging.getLogger(__name__)

YTDL_OPTIONS = {
    "format": "bestaudio[acodec=opus]/bestaudio/best",
    "noplaylist": True,
    "nocheckcertificate": True,
    "ignoreerrors": False,
    "quiet": True,
    "no_warnings": True,
    "default_search": "ytsearch",
    "source_address": "0.0.0.0",
}

FFMPEG_OPTIONS = {
    "before_options": (
        "-reconnect 1 -reconnect_streamed 1 -reconnect_on_network_error 1"
        " -reconnect_on_http_error 5xx -reconnect_delay_max 5"
    ),
    "options": "-vn -ar 48000 -bufsize 64k",
}


@dataclass(frozen=True)
class Track:
    """A resolved, playable queue entry."""

    title: str
    url: str
    duration: int = 0  # seconds, 0 when unknown
    requester: str = ""


@dataclass(frozen=True)
class SearchHit:
    title: str
    url: str
    is_playable: bool
    duration: int = 0


def _is_video_entry(entry: dict, url: str) -> bool:
    # Channels, playlists and live streams come back as flat entries too.
    if entry.get("_type") not in (None, "url", "video"):
        return False
    if entry.get("live_status") == "is_live" or entry.get("is_live"):
        return False
    return "watch?v=" in url or "youtu.be/" in url


def format_duration(seconds: int) -> str:
    if seconds <= 0:
        return "?:??"
    m, s = divmod(seconds, 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


class YTDLSource(discord.PCMVolumeTransformer):
    """Wraps FFmpegPCMAudio with volume control and metadata."""

    def __init__(
        self,
        source: discord.AudioSource,
        *,
        data: dict,
        volume: float = 0.5,
    ) -> None:
        super().__init__(source, volume)
        self.title: str = data.get("title", "Unknown")
        self.url: str = data.get("webpage_url", "")
        self.duration: int = int(data.get("duration", 0) or 0)

    @classmethod
    async def from_url(
        cls,
        url: str,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        volume: float = 0.5,
    ) -> YTDLSource:
        """Open an audio-only stream for a track URL."""
        loop = loop or asyncio.get_running_loop()
        ytdl = yt_dlp.YoutubeDL(YTDL_OPTIONS)
        data = await loop.run_in_executor(
            None, lambda: ytdl.extract_info(url, download=False)
        )
        if data is None:
            raise yt_dlp.utils.DownloadError(f"No media information for {url}")

        if "entries" in data:
            entries = [e for e in data["entries"] if e]
            if not entries:
                raise yt_dlp.utils.DownloadError(f"No playable entry for {url}")
            data = entries[0]

        source = discord.FFmpegPCMAudio(
            data["url"],
            before_options=FFMPEG_OPTIONS["before_options"],
            options=FFMPEG_OPTIONS["options"],
        )
        return cls(source, data=data, volume=volume)

    @staticmethod
    async def search(
        query: str,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        limit: int = 5,
    ) -> list[SearchHit]:
        """Search YouTube and return hits in result order, flagged by playability."""
        loop = loop or asyncio.get_running_loop()
        opts = {**YTDL_OPTIONS, "extract_flat": "in_playlist"}
        ytdl = yt_dlp.YoutubeDL(opts)

        data = await loop.run_in_executor(
            None, lambda: ytdl.extract_info(f"ytsearch{limit}:{query}", download=False)
        )

        hits: list[SearchHit] = []
        for entry in (data or {}).get("entries", []) or []:
            if entry is None:
                continue
            url = entry.get("webpage_url") or entry.get("url", "")
            hits.append(
                SearchHit(
                    title=entry.get("title", "Unknown"),
                    url=url,
                    is_playable=_is_video_entry(entry, url),
                    duration=int(entry.get("duration", 0) or 0),
                )
            )
        return hits
