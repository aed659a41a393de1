"""
relaybot CLI

Usage:
    relaybot run               - Start the Telegram bridge
    relaybot chat              - Interactive chat in the terminal
    relaybot config            - Show the resolved configuration
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from relaybot.core.config import Config, load_config
from relaybot.core.errors import ConfigurationError
from relaybot.core.logging import setup_logging
from relaybot.core.router import create_router
from relaybot.interfaces.cli.channel import ConsoleChannel

app = typer.Typer(
    name="relaybot",
    help="relaybot - chat bridge to an OpenAI-compatible backend",
    add_completion=False
)
console = Console()

EXIT_WORDS = {"exit", "quit", "/exit", "/quit"}


def _load(config_file: Optional[Path]) -> Config:
    try:
        return load_config(config_file)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)


def mask_secret(value: str) -> str:
    """Hide all but the last four characters of a secret."""
    if not value:
        return "[dim]not set[/dim]"
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]


@app.command()
def run(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yml"),
):
    """Start the Telegram bridge."""
    from relaybot.interfaces.telegram.run import RelayTelegramBot

    config = _load(config_file)
    setup_logging(config.system.log_level, config.paths.logs)

    try:
        bot = RelayTelegramBot(config)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    try:
        asyncio.run(bot.start())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


@app.command()
def chat(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yml"),
    user: str = typer.Option("console", "--user", "-u", help="Session id to chat as"),
):
    """Chat with the backend from the terminal."""
    config = _load(config_file)
    setup_logging("WARNING", None)

    try:
        router = create_router(config)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    channel = ConsoleChannel(user_id=user)
    channel.register_handler(router.handle_incoming)

    async def _loop():
        await channel.start()
        console.print("[cyan]ℹ[/cyan] Type a message, or 'exit' to quit.")
        try:
            while True:
                text = await asyncio.to_thread(console.input, "[bold green]You:[/bold green] ")
                text = text.strip()
                if not text:
                    continue
                if text.lower() in EXIT_WORDS:
                    break
                channel.submit(text)
                await channel.drain()
        finally:
            await channel.stop()

    try:
        asyncio.run(_loop())
    except (KeyboardInterrupt, EOFError):
        console.print()


@app.command("config")
def show_config(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yml"),
):
    """Show the resolved configuration."""
    config = _load(config_file)

    table = Table(title="relaybot configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("llm.base_url", config.llm.base_url)
    table.add_row("llm.model_name", config.llm.model_name)
    table.add_row("llm.api_key", mask_secret(config.llm.api_key))
    table.add_row("llm.timeout_seconds", str(config.llm.timeout_seconds))
    table.add_row("dialogue.max_length", str(config.dialogue.max_length))
    table.add_row("images.size", config.images.size.value)
    table.add_row("images.directory", str(config.images.directory))
    table.add_row("intent.strategy", config.intent.strategy)
    table.add_row("intent.keywords", ", ".join(config.intent.keywords))
    table.add_row("telegram.bot_token", mask_secret(config.telegram.bot_token))
    table.add_row(
        "telegram.known_user_ids",
        ", ".join(str(uid) for uid in config.telegram.known_user_ids) or "[dim]everyone[/dim]",
    )
    table.add_row("system.log_level", config.system.log_level)
    table.add_row("paths.logs", str(config.paths.logs))

    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
