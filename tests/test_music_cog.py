"""
Unit Tests for MusicCog

Interaction handling only; the commands' behaviour is covered by the
dispatcher tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from cogs.music_cog import MusicCog
from music.config import Settings


@pytest.fixture
def cog():
    cog = MusicCog(MagicMock(), Settings())
    cog.dispatcher = MagicMock()
    return cog


@pytest.fixture
def interaction():
    interaction = MagicMock()
    interaction.guild.id = 5
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=True)
    interaction.followup.send = AsyncMock()
    return interaction


class TestSessionCommands:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["skip", "pause", "resume", "stop"])
    async def test_defers_before_waiting_on_session(self, cog, interaction, name):
        async def run(guild_id):
            assert interaction.response.defer.await_count == 1
            return f"{name} done"

        setattr(cog.dispatcher, name, AsyncMock(side_effect=run))

        await getattr(cog, name).callback(cog, interaction)

        getattr(cog.dispatcher, name).assert_awaited_once_with(5)
        interaction.followup.send.assert_awaited_once_with(f"{name} done")
        interaction.response.send_message.assert_not_awaited()


class TestReadOnlyCommands:
    @pytest.mark.asyncio
    async def test_queue_replies_directly(self, cog, interaction):
        interaction.response.is_done.return_value = False
        cog.dispatcher.queue.return_value = "📭 The queue is empty."

        await cog.queue.callback(cog, interaction)

        interaction.response.defer.assert_not_awaited()
        interaction.response.send_message.assert_awaited_once_with("📭 The queue is empty.")
