"""
Bot entry point - BOOTSTRAP ONLY.
This module should contain no business logic, only orchestration.
"""
import asyncio
import os
import sys

import aiohttp
import discord

from assist.config import load_config, validate_required_env
from assist.core.bot import AssistBot
from assist.core.cli import parse_arguments, show_version_info, validate_configuration_only
from assist.exceptions import ConfigurationError
from assist.plugins import build_plugins
from assist.shutdown import setup_signal_handlers
from assist.utils.logging import get_logger, init_logging, shutdown_logging_and_exit


async def main() -> None:
    args = parse_arguments()
    if args.debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
    init_logging()
    logger = get_logger(__name__)

    if args.version:
        show_version_info()
        shutdown_logging_and_exit(0)

    if args.config_check:
        shutdown_logging_and_exit(0 if validate_configuration_only() else 1)

    try:
        validate_required_env()
        config = load_config(force=True)
    except ConfigurationError as e:
        logger.critical(f"Configuration error during startup: {e}", extra={"subsys": "core"})
        shutdown_logging_and_exit(1)

    bot = AssistBot(config=config, plugins=build_plugins(config), help_command=None)

    try:
        setup_signal_handlers(bot)
    except Exception as e:
        logger.warning(f"Failed to setup signal handlers: {e}", exc_info=True)

    max_retries = 3
    base_delay = 5  # seconds
    async with bot:
        for attempt in range(max_retries):
            try:
                logger.info(f"Connecting to Discord... (Attempt {attempt + 1}/{max_retries})")
                await bot.start(config["DISCORD_TOKEN"])
                return
            except discord.LoginFailure:
                logger.critical("Failed to log in. Please check DISCORD_TOKEN.")
                shutdown_logging_and_exit(1)
            except (discord.HTTPException, aiohttp.ClientConnectorError):
                if attempt == max_retries - 1:
                    logger.error("Giving up connecting to Discord.")
                    shutdown_logging_and_exit(1)
                delay = base_delay * (2 ** attempt)
                logger.warning(f"Connection failed, retrying in {delay}s...")
                await asyncio.sleep(delay)


def run_bot() -> None:
    """Entry point for running the bot with proper error handling."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot shutdown requested by user.")
        shutdown_logging_and_exit(0)
    except Exception as e:
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        shutdown_logging_and_exit(1)


if __name__ == "__main__":
    run_bot()
