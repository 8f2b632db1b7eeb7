"""
Media Log Cog

Feeds message events into the media cache and runs the periodic sweep
that evicts expired media.
"""

import discord
from discord.ext import commands, tasks

from commands.base_cog import BaseCog
from logging_config import get_logger

logger = get_logger(__name__)


class MediaLog(BaseCog):
    """Caches attachments on arrival and replays them when messages are deleted."""

    def __init__(self, bot: commands.Bot):
        super().__init__(bot)
        self.media_cache = bot.media_cache

    async def cog_load(self):
        await super().cog_load()
        self.sweep_media.change_interval(seconds=self.bot.config_manager.config.media_sweep_interval_seconds)
        self.sweep_media.start()

    async def cog_unload(self):
        self.sweep_media.cancel()
        await super().cog_unload()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or not message.attachments:
            return
        await self.media_cache.on_message(message)

    @commands.Cog.listener()
    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent):
        message = payload.cached_message
        await self.media_cache.on_message_deleted(
            payload.message_id,
            payload.channel_id,
            author=message.author if message else None,
            content=message.content if message else None
        )

    @tasks.loop(minutes=1)
    async def sweep_media(self):
        await self.media_cache.sweep()

    @sweep_media.before_loop
    async def before_sweep_media(self):
        await self.bot.wait_until_ready()

    @sweep_media.error
    async def sweep_media_error(self, error: BaseException):
        logger.error(f"Media sweep failed: {error}", exc_info=error)


async def setup(bot: commands.Bot):
    """Setup function for loading the cog."""
    await bot.add_cog(MediaLog(bot))
