"""relaybot - chat-to-LLM relay bot."""

__version__ = "1.0.0"
