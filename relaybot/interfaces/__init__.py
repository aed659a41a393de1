"""
Chat interfaces

Channels adapt a chat transport (Telegram, the terminal) to the Router.
"""

from relaybot.interfaces.base import (
    Channel,
    ChannelError,
    ChannelNotAvailableError,
    IncomingMessage,
    MessageType,
)

__all__ = [
    'Channel',
    'ChannelError',
    'ChannelNotAvailableError',
    'IncomingMessage',
    'MessageType',
]
