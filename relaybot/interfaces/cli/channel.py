"""
Console Channel Implementation

Lets a local user talk to the Router from a terminal. Every line typed is a
direct message from a known contact.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markdown import Markdown

from relaybot.core.errors import TransportError
from relaybot.interfaces.base import Channel, IncomingMessage, MessageType

console = Console()


class ConsoleChannel(Channel):
    """Terminal chat channel rendered with rich."""

    def __init__(self, user_id: str = "console", config: Optional[Dict[str, Any]] = None):
        super().__init__(channel_id="cli", config=config)
        self.user_id = user_id

    async def start(self):
        self._is_running = True
        self.logger.info("Console channel started")

    async def stop(self):
        await self.drain()
        self._is_running = False
        self.logger.info("Console channel stopped")

    def is_available(self) -> bool:
        """Console is always available."""
        return True

    def make_message(self, text: str) -> IncomingMessage:
        return IncomingMessage(
            content=text,
            sender_id=self.user_id,
            type=MessageType.TEXT,
            sender_name=self.user_id,
            from_known_contact=True,
            channel=self,
        )

    def submit(self, text: str):
        """Feed one line of user input to the registered handlers."""
        self._handle_incoming_message(self.make_message(text))

    async def reply_text(self, message: IncomingMessage, text: str):
        try:
            console.print(Markdown(text) if text else "[dim]No content[/dim]")
        except Exception as e:
            raise TransportError(f"Console output failed: {e}") from e

    async def reply_image(self, message: IncomingMessage, path: Path):
        console.print(f"[cyan]ℹ[/cyan] Image saved to [bold]{path}[/bold]")
