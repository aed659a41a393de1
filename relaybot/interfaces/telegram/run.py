"""
relaybot Telegram Bot

Entry point for running the Telegram bridge as a service.

Usage:
    python -m relaybot.interfaces.telegram.run
"""

import asyncio
import logging
import sys

from relaybot.core.config import Config, get_config
from relaybot.core.errors import ConfigurationError
from relaybot.core.logging import setup_logging
from relaybot.core.router import Router, create_router
from relaybot.interfaces.telegram.channel import TelegramChannel

logger = logging.getLogger(__name__)


class RelayTelegramBot:
    """Connects a TelegramChannel to the Router."""

    def __init__(self, config: Config):
        if not config.telegram.bot_token:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN is not set")

        self.config = config
        self.router: Router = create_router(config)
        self.telegram = TelegramChannel(
            bot_token=config.telegram.bot_token,
            known_user_ids=config.telegram.known_user_ids,
        )
        if not config.telegram.known_user_ids:
            logger.warning("No known Telegram users configured; every direct sender will be answered")

    async def start(self):
        """Start the bot and block until interrupted."""
        logger.info("Starting relaybot Telegram bridge...")

        if not await self.router.llm_client.health_check():
            logger.warning(f"Backend at {self.config.llm.base_url} did not answer the health check")

        self.telegram.register_handler(self.router.handle_incoming)

        try:
            await self.telegram.start()
            logger.info("Telegram bot is running. Press Ctrl+C to stop.")

            while True:
                await asyncio.sleep(1)
        finally:
            logger.info("Shutting down...")
            await self.telegram.stop()


def main():
    """Main entry point."""
    try:
        config = get_config()
        setup_logging(config.system.log_level, config.paths.logs)
        bot = RelayTelegramBot(config)
    except ConfigurationError as e:
        logging.getLogger("relaybot").error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        asyncio.run(bot.start())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
