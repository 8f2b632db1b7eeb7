#!/usr/bin/env python3
"""
Support Bot - Main Entry Point

Runs the support ticket system and the deleted-media audit log for a
Discord server.
"""

import asyncio
import os
import signal
import sys
from pathlib import Path
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from logging_config import setup_logging, get_logger, get_audit_logger
from config.config_manager import ConfigManager, ConfigurationError
from core.audit_emitter import AuditEmitter
from core.media_cache import MediaCache
from core.ticket_manager import TicketManager
from core.ticket_registry import TicketRegistry
from commands.ticket_views import build_ticket_controls

# Setup logging
log_level = os.getenv('LOG_LEVEL', 'INFO')
setup_logging(log_dir="logs", log_level=log_level)
logger = get_logger(__name__)
audit_logger = get_audit_logger()

# Modules under commands/ that are not extensions
NON_EXTENSION_MODULES = {"base_cog.py", "ticket_views.py"}


class SupportBot(commands.Bot):
    """Main Discord bot class for the support system."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.guild_messages = True
        intents.members = True

        super().__init__(
            command_prefix=os.getenv('COMMAND_PREFIX', '!'),
            intents=intents,
            help_command=None
        )

        self.config_manager: Optional[ConfigManager] = None
        self.registry: Optional[TicketRegistry] = None
        self.audit: Optional[AuditEmitter] = None
        self.media_cache: Optional[MediaCache] = None
        self.ticket_manager: Optional[TicketManager] = None
        self._shutdown_initiated = False

    async def setup_hook(self):
        """Initialize bot components and load extensions."""
        logger.info("Starting bot setup...")

        try:
            self._initialize_config()
            await self._initialize_media_cache()
            self._initialize_ticket_manager()

            await self.load_extensions()

            await self.tree.sync()
            logger.info("Slash commands synced successfully")

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            await self._cleanup_on_error()
            raise

    def _initialize_config(self):
        """Initialize configuration manager."""
        logger.info("Initializing configuration manager...")

        config_file = os.getenv('CONFIG_FILE', 'config.json')
        self.config_manager = ConfigManager(config_file)

        errors = self.config_manager.validate_configuration()
        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        config = self.config_manager.config
        self.audit = AuditEmitter(self, config.log_channel_id, audit_logger)
        logger.info("Configuration manager initialized successfully")

    async def _initialize_media_cache(self):
        """Start the media cache, discarding anything left by an unclean shutdown."""
        config = self.config_manager.config
        self.media_cache = MediaCache(
            config.media_cache_dir,
            self.audit,
            retention_seconds=config.media_retention_seconds,
            download_timeout=config.download_timeout_seconds,
            audit_logger=audit_logger
        )
        await self.media_cache.start()
        await self.media_cache.purge_all()
        logger.info(f"Media cache ready in {config.media_cache_dir}")

    def _initialize_ticket_manager(self):
        config = self.config_manager.config
        self.registry = TicketRegistry(cooldown_seconds=config.ticket_cooldown_seconds)
        self.ticket_manager = TicketManager(
            self,
            self.registry,
            config,
            self.audit,
            controls_factory=build_ticket_controls,
            audit_logger=audit_logger
        )
        logger.info("Ticket manager initialized successfully")

    async def _cleanup_on_error(self):
        """Cleanup resources when initialization fails."""
        logger.info("Cleaning up resources due to initialization error...")

        if self.media_cache:
            await self.media_cache.close()

        self.media_cache = None
        self.ticket_manager = None
        self.registry = None

    async def load_extensions(self):
        """Dynamically load all command modules from the commands directory."""
        commands_dir = Path(__file__).parent / "commands"

        if not commands_dir.exists():
            logger.warning("Commands directory not found")
            return

        loaded_count = 0
        failed_count = 0

        for file_path in sorted(commands_dir.glob("*.py")):
            if file_path.name.startswith("__") or file_path.name in NON_EXTENSION_MODULES:
                continue

            module_name = f"commands.{file_path.stem}"

            try:
                await self.load_extension(module_name)
                logger.info(f"✅ Loaded extension: {module_name}")
                loaded_count += 1
            except commands.ExtensionError as e:
                logger.error(f"❌ Failed to load extension {module_name}: {e}")
                failed_count += 1

        logger.info(f"Extension loading complete: {loaded_count} loaded, {failed_count} failed")

        if failed_count > 0:
            logger.warning("Some extensions failed to load. Bot will continue with available commands.")

    async def on_ready(self):
        """Called when the bot is ready and connected to Discord."""
        logger.info(f"{self.user} has connected to Discord!")
        logger.info(f"Bot is in {len(self.guilds)} guilds")

        activity = discord.Activity(type=discord.ActivityType.watching, name="for tickets")
        await self.change_presence(activity=activity)

    async def on_error(self, event, *args, **kwargs):
        """Global error handler for bot events."""
        logger.error(f"Error in event {event}: {args}", exc_info=True)

    async def close(self):
        """Cleanup when bot is shutting down."""
        if self._shutdown_initiated:
            return

        self._shutdown_initiated = True
        logger.info("Bot is shutting down...")

        try:
            if self.ticket_manager:
                await self.ticket_manager.drain_deletions()

            if self.media_cache:
                await self.media_cache.purge_all()
                await self.media_cache.close()
                logger.info("Media cache purged")

        except (OSError, discord.HTTPException) as e:
            logger.error(f"Error during shutdown cleanup: {e}")
        finally:
            await super().close()


def validate_environment() -> bool:
    """
    Validate required environment variables.

    Returns:
        bool: True if environment is valid, False otherwise
    """
    logger.info("Validating environment configuration...")

    missing_vars = [var for var in ['DISCORD_TOKEN'] if not os.getenv(var)]
    if missing_vars:
        logger.error(f"Missing required environment variables: {', '.join(missing_vars)}")
        logger.error("Please check your .env file or environment configuration")
        return False

    log_level = os.getenv('LOG_LEVEL', 'INFO')
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    if log_level.upper() not in valid_log_levels:
        logger.warning(f"Invalid LOG_LEVEL: {log_level}. Using INFO instead")

    logger.info("Environment validation completed successfully")
    return True


async def shutdown_handler(bot: SupportBot, signal_name: Optional[str] = None):
    """
    Handle graceful shutdown of the bot.

    Args:
        bot: The bot instance to shutdown
        signal_name: Name of the signal that triggered shutdown (if any)
    """
    if signal_name:
        logger.info(f"Received {signal_name}, initiating graceful shutdown...")
    else:
        logger.info("Initiating graceful shutdown...")

    await bot.close()
    logger.info("Graceful shutdown completed")


def setup_signal_handlers(bot: SupportBot):
    """
    Setup signal handlers for graceful shutdown.

    Args:
        bot: The bot instance
    """
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: asyncio.create_task(shutdown_handler(bot, s.name)))
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass


async def main():
    """Main function to start the bot with proper initialization and error handling."""
    logger.info("Starting Support Bot...")

    if not validate_environment():
        logger.error("Environment validation failed. Exiting.")
        sys.exit(1)

    token = os.getenv('DISCORD_TOKEN')
    bot = SupportBot()
    setup_signal_handlers(bot)

    try:
        logger.info("Connecting to Discord...")
        await bot.start(token)

    except discord.LoginFailure:
        logger.error("Invalid Discord token. Please check your DISCORD_TOKEN environment variable.")
        sys.exit(1)

    except discord.HTTPException as e:
        logger.error(f"HTTP error connecting to Discord: {e}")
        sys.exit(1)

    finally:
        if not bot._shutdown_initiated:
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error during bot startup: {e}", exc_info=True)
        sys.exit(1)
