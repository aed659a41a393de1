"""
Base classes for chat interfaces.

A Channel turns transport events into IncomingMessage objects and delivers
replies for them. The Router only sees IncomingMessage.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class MessageType(Enum):
    """Types of messages a channel can receive."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    STICKER = "sticker"
    OTHER = "other"


@dataclass
class IncomingMessage:
    """A chat message as seen by the Router.

    This is a channel-agnostic representation; the channel fills in the
    sender flags from its own notion of groups, mentions and contacts.
    """
    content: str
    sender_id: str
    type: MessageType = MessageType.TEXT
    sender_name: Optional[str] = None

    from_group: bool = False
    mentioned: bool = False
    from_known_contact: bool = False
    from_self: bool = False

    channel: Optional["Channel"] = None
    timestamp: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @property
    def is_text(self) -> bool:
        return self.type == MessageType.TEXT

    async def reply_text(self, text: str):
        """Reply in the chat this message came from."""
        if self.channel is None:
            raise ChannelNotAvailableError("Message has no channel to reply through")
        await self.channel.reply_text(self, text)

    async def reply_image(self, path: Path):
        """Reply with an image file in the chat this message came from."""
        if self.channel is None:
            raise ChannelNotAvailableError("Message has no channel to reply through")
        await self.channel.reply_image(self, path)


MessageHandler = Callable[[IncomingMessage], Awaitable[None]]


class Channel(ABC):
    """
    Abstract base class for chat channels.

    Incoming messages are handed to every registered handler. Async handlers
    run as independent asyncio tasks, one per message.
    """

    def __init__(self, channel_id: str, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the channel.

        Args:
            channel_id: Unique identifier for this channel instance
            config: Channel-specific configuration
        """
        self.channel_id = channel_id
        self.config = config or {}
        self._message_handlers: List[MessageHandler] = []
        self._tasks: Set[asyncio.Task] = set()
        self._is_running = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def start(self):
        """Start listening for incoming messages."""
        pass

    @abstractmethod
    async def stop(self):
        """Stop listening and release resources."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the channel is configured and usable."""
        pass

    @abstractmethod
    async def reply_text(self, message: IncomingMessage, text: str):
        """
        Send a text reply to the chat of an incoming message.

        Raises:
            TransportError: If the reply cannot be delivered
        """
        pass

    @abstractmethod
    async def reply_image(self, message: IncomingMessage, path: Path):
        """
        Send an image reply to the chat of an incoming message.

        Raises:
            TransportError: If the reply cannot be delivered
        """
        pass

    def register_handler(self, handler: MessageHandler):
        """Register a function to handle incoming messages."""
        self._message_handlers.append(handler)
        self.logger.info(f"Registered message handler: {getattr(handler, '__name__', handler)}")

    def _handle_incoming_message(self, message: IncomingMessage):
        """Dispatch an incoming message to all registered handlers."""
        self.logger.debug(f"Dispatching message from {message.sender_id}")

        for handler in self._message_handlers:
            try:
                result = handler(message)
            except Exception as e:
                self.logger.error(f"Error in message handler: {e}", exc_info=True)
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"Message handler failed: {task.exception()!r}")

    async def drain(self):
        """Wait for in-flight message handlers to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def is_running(self) -> bool:
        return self._is_running

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.channel_id} running={self._is_running}>"


class ChannelError(Exception):
    """Base exception for channel-related errors."""
    pass


class ChannelNotAvailableError(ChannelError):
    """Raised when trying to use a channel that is not available."""
    pass
