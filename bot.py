import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

from music.config import Settings
from music.i18n import load_locales
from music.metrics import start_metrics_server
from web.app import start_web_server

log = logging.getLogger("tunequeue")


class TuneQueue(commands.AutoShardedBot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.voice_states = True
        super().__init__(command_prefix=settings.command_prefix, intents=intents)
        self.settings = settings
        self._web_runner = None

    async def setup_hook(self) -> None:
        load_locales()

        await self.load_extension("cogs.music_cog")
        await self.tree.sync()
        log.info("Command tree synced.")

        if self.settings.metrics_port:
            start_metrics_server(self.settings.metrics_port)
            log.info("Prometheus metrics server started on :%s", self.settings.metrics_port)

        if self.settings.web_port:
            self._web_runner = await start_web_server(self, self.settings.web_port)
            log.info("Web API started on :%s", self.settings.web_port)

    async def close(self) -> None:
        # Unloading the cog stops every session before the gateway goes away.
        if "cogs.music_cog" in self.extensions:
            await self.unload_extension("cogs.music_cog")
        if self._web_runner is not None:
            await self._web_runner.cleanup()
        await super().close()

    async def on_ready(self) -> None:
        guild_count = len(self.guilds)
        log.info("Logged in as %s (ID: %s), %d guilds, %s shard(s)",
                 self.user, self.user.id, guild_count,
                 self.shard_count or 1)
        activity = discord.Activity(
            type=discord.ActivityType.listening,
            name=f"music in {guild_count} servers",
        )
        await self.change_presence(activity=activity)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not settings.discord_token:
        raise SystemExit("DISCORD_TOKEN not set in .env")

    bot = TuneQueue(settings)
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
