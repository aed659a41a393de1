"""
Telegram Channel Implementation

Bridges Telegram chats to the Router using python-telegram-bot.
"""

from pathlib import Path
from typing import Iterable, Optional

from telegram import Bot, Message as TelegramMessage, MessageEntity, Update
from telegram.constants import ChatType
from telegram.error import TelegramError
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from relaybot.core.errors import TransportError
from relaybot.interfaces.base import (
    Channel,
    ChannelNotAvailableError,
    IncomingMessage,
    MessageType,
)

GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP)


class TelegramChannel(Channel):
    """
    Telegram bot channel.

    - Group and supergroup chats count as groups; the bot is mentioned by an
      @username entity, a text mention, or a reply to one of its messages.
    - Known contacts are the configured user ids. An empty list accepts
      every direct sender.
    """

    def __init__(
        self,
        bot_token: str,
        known_user_ids: Optional[Iterable[int]] = None,
        channel_id: str = "telegram",
    ):
        super().__init__(channel_id, {"bot_token": bot_token})

        self.bot_token = bot_token
        self.known_user_ids = {int(uid) for uid in (known_user_ids or [])}
        self.application: Optional[Application] = None
        self.bot: Optional[Bot] = None

    def is_available(self) -> bool:
        """Check if Telegram is configured."""
        return bool(self.bot_token)

    def is_known_contact(self, user_id: int) -> bool:
        if not self.known_user_ids:
            return True
        return user_id in self.known_user_ids

    async def start(self):
        """Start the Telegram bot (begin polling for messages)."""
        if not self.is_available():
            raise ChannelNotAvailableError("Telegram channel not configured")

        self.logger.info("Starting Telegram bot...")

        self.application = (
            Application.builder()
            .token(self.bot_token)
            .concurrent_updates(True)
            .build()
        )
        self.bot = self.application.bot

        self.application.add_handler(self.build_handler())

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()

        self._is_running = True
        self.logger.info(f"Telegram bot started as @{self.bot.username}")

    def build_handler(self) -> MessageHandler:
        """Handler for newly delivered messages only.

        Commands are plain text for the Router, so there is no CommandHandler.
        Edits of earlier messages are not new turns and never reach the Router.
        """
        return MessageHandler(filters.UpdateType.MESSAGE, self._handle_update)

    async def stop(self):
        """Stop the Telegram bot."""
        if not self.application:
            return

        self.logger.info("Stopping Telegram bot...")

        await self.application.updater.stop()
        await self.application.stop()
        await self.drain()
        await self.application.shutdown()

        self._is_running = False
        self.logger.info("Telegram bot stopped")

    async def reply_text(self, message: IncomingMessage, text: str):
        try:
            await self.bot.send_message(
                chat_id=message.metadata["chat_id"],
                text=text,
                reply_to_message_id=message.metadata.get("telegram_message_id"),
            )
        except TelegramError as e:
            self.logger.error(f"Error sending Telegram message: {e}")
            raise TransportError(f"Telegram send_message failed: {e}") from e

    async def reply_image(self, message: IncomingMessage, path: Path):
        try:
            with open(path, "rb") as photo:
                await self.bot.send_photo(
                    chat_id=message.metadata["chat_id"],
                    photo=photo,
                    reply_to_message_id=message.metadata.get("telegram_message_id"),
                )
        except (TelegramError, OSError) as e:
            self.logger.error(f"Error sending Telegram photo {path}: {e}")
            raise TransportError(f"Telegram send_photo failed: {e}") from e

    async def _handle_update(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Convert a Telegram update and pass it to registered handlers."""
        message = self.to_incoming(update)
        if message is not None:
            self._handle_incoming_message(message)

    def to_incoming(self, update: Update) -> Optional[IncomingMessage]:
        """Build an IncomingMessage from a Telegram update."""
        tg_message = update.effective_message
        user = update.effective_user
        chat = update.effective_chat
        if tg_message is None or user is None or chat is None:
            return None

        from_group = chat.type in GROUP_CHAT_TYPES
        mentioned = from_group and self._mentions_bot(tg_message)

        content = tg_message.text or tg_message.caption or ""
        if mentioned and self.bot.username:
            content = content.replace(f"@{self.bot.username}", "").strip()

        return IncomingMessage(
            content=content,
            sender_id=str(user.id),
            type=self._message_type(tg_message),
            sender_name=user.first_name,
            from_group=from_group,
            mentioned=mentioned,
            from_known_contact=not from_group and self.is_known_contact(user.id),
            from_self=user.id == self.bot.id,
            channel=self,
            timestamp=tg_message.date,
            metadata={
                "telegram_message_id": tg_message.message_id,
                "chat_id": chat.id,
            },
        )

    def _mentions_bot(self, tg_message: TelegramMessage) -> bool:
        entities = tg_message.parse_entities([MessageEntity.MENTION, MessageEntity.TEXT_MENTION])
        username = (self.bot.username or "").lower()

        for entity, text in entities.items():
            if entity.type == MessageEntity.TEXT_MENTION:
                if entity.user is not None and entity.user.id == self.bot.id:
                    return True
            elif username and text.lstrip("@").lower() == username:
                return True

        reply = tg_message.reply_to_message
        return bool(reply and reply.from_user and reply.from_user.id == self.bot.id)

    @staticmethod
    def _message_type(tg_message: TelegramMessage) -> MessageType:
        if tg_message.text is not None:
            return MessageType.TEXT
        if tg_message.photo:
            return MessageType.IMAGE
        if tg_message.voice or tg_message.audio:
            return MessageType.AUDIO
        if tg_message.video:
            return MessageType.VIDEO
        if tg_message.document:
            return MessageType.DOCUMENT
        if tg_message.sticker:
            return MessageType.STICKER
        return MessageType.OTHER
