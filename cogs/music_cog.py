from __future__ import annotations

import logging
from typing import Awaitable, Callable

import discord
from discord import app_commands
from discord.ext import commands

from music.audio_source import YTDLSource
from music.config import Settings
from music.dispatch import CommandDispatcher
from music.registry import SessionRegistry
from music.resolver import TrackResolver
from music.spotify_resolver import SpotifyResolver
from music.transport import DiscordVoiceTransport

log = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, settings: Settings) -> None:
        self.bot = bot
        self.settings = settings
        self.registry = SessionRegistry(
            DiscordVoiceTransport(),
            self._open_stream,
            max_playback_failures=settings.max_playback_failures,
            locale=settings.locale,
        )
        resolver = TrackResolver(
            SpotifyResolver(settings.spotify_client_id, settings.spotify_client_secret),
            search_limit=settings.search_limit,
        )
        self.dispatcher = CommandDispatcher(self.registry, resolver, settings.locale)

    async def _open_stream(self, url: str) -> YTDLSource:
        return await YTDLSource.from_url(url, loop=self.bot.loop, volume=self.settings.volume)

    async def cog_unload(self) -> None:
        await self.registry.close()

    async def _reply(self, interaction: discord.Interaction, msg: str) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(msg)
        else:
            await interaction.response.send_message(msg)

    async def _session_command(
        self, interaction: discord.Interaction, command: Callable[[int], Awaitable[str]]
    ) -> None:
        # The session lock can be held while the next track's stream opens.
        await interaction.response.defer()
        await self._reply(interaction, await command(interaction.guild.id))  # type: ignore[union-attr]

    # ── commands ─────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play from a YouTube search or a Spotify track URL")
    @app_commands.describe(query="Spotify track URL or search keywords")
    @app_commands.guild_only()
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        voice = getattr(interaction.user, "voice", None)
        voice_channel = voice.channel if voice else None
        if voice_channel is not None:
            # Resolution can take a few seconds.
            await interaction.response.defer()
        msg = await self.dispatcher.play(
            interaction.guild.id,  # type: ignore[union-attr]
            voice_channel,
            interaction.channel,
            query,
            requester=interaction.user.display_name,
        )
        await self._reply(interaction, msg)

    @app_commands.command(name="skip", description="Skip the current track")
    @app_commands.guild_only()
    async def skip(self, interaction: discord.Interaction) -> None:
        await self._session_command(interaction, self.dispatcher.skip)

    @app_commands.command(name="pause", description="Pause playback")
    @app_commands.guild_only()
    async def pause(self, interaction: discord.Interaction) -> None:
        await self._session_command(interaction, self.dispatcher.pause)

    @app_commands.command(name="resume", description="Resume playback")
    @app_commands.guild_only()
    async def resume(self, interaction: discord.Interaction) -> None:
        await self._session_command(interaction, self.dispatcher.resume)

    @app_commands.command(name="stop", description="Stop playback, clear the queue, and disconnect")
    @app_commands.guild_only()
    async def stop(self, interaction: discord.Interaction) -> None:
        await self._session_command(interaction, self.dispatcher.stop)

    @app_commands.command(name="queue", description="Show the current queue")
    @app_commands.guild_only()
    async def queue(self, interaction: discord.Interaction) -> None:
        await self._reply(interaction, self.dispatcher.queue(interaction.guild.id))  # type: ignore[union-attr]

    @app_commands.command(name="nowplaying", description="Show the currently playing track")
    @app_commands.guild_only()
    async def nowplaying(self, interaction: discord.Interaction) -> None:
        await self._reply(interaction, self.dispatcher.now_playing(interaction.guild.id))  # type: ignore[union-attr]

    @app_commands.command(name="np", description="Show the currently playing track")
    @app_commands.guild_only()
    async def np(self, interaction: discord.Interaction) -> None:
        await self._reply(interaction, self.dispatcher.now_playing(interaction.guild.id))  # type: ignore[union-attr]


async def setup(bot: commands.Bot) -> None:
    settings = getattr(bot, "settings", None) or Settings.from_env()
    await bot.add_cog(MusicCog(bot, settings))
