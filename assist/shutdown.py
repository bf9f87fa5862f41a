"""
Graceful shutdown handling for the bot.
"""
import asyncio
import signal
from typing import Optional

from discord.ext import commands

from .utils.logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_TIMEOUT_S = 30.0


class GracefulShutdown:
    """Closes the bot (which stops the notification engine) once, with a timeout."""

    def __init__(self, bot: commands.Bot, timeout: float = SHUTDOWN_TIMEOUT_S):
        self.bot = bot
        self.timeout = timeout
        self.shutdown_in_progress = False

    async def execute_shutdown(self, signal_num: Optional[int] = None) -> None:
        if self.shutdown_in_progress:
            logger.warning("Shutdown already in progress")
            return
        self.shutdown_in_progress = True

        if signal_num:
            logger.info(f"🔄 Received signal {signal_num}, initiating graceful shutdown...")
        else:
            logger.info("🔄 Initiating graceful shutdown...")

        try:
            if not self.bot.is_closed():
                await asyncio.wait_for(self.bot.close(), timeout=self.timeout)
            logger.info("✔ Shutdown complete")
        except asyncio.TimeoutError:
            logger.warning(f"Shutdown timed out after {self.timeout}s")


def setup_signal_handlers(bot: commands.Bot) -> GracefulShutdown:
    """Route SIGINT/SIGTERM into a graceful shutdown on the running loop."""
    handler = GracefulShutdown(bot)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(
                sig, lambda s=sig: asyncio.create_task(handler.execute_shutdown(s))
            )
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            logger.debug(f"Signal handler for {sig} not supported on this platform")
    return handler
