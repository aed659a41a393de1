"""
relaybot error taxonomy.

Per-message errors (TransportError, BackendError) are contained by the Router.
ConfigurationError is fatal and only raised at startup.
"""

from typing import Optional


class RelayBotError(Exception):
    """Base exception for relaybot."""
    pass


class TransportError(RelayBotError):
    """Raised when a reply cannot be delivered or an image cannot be written."""
    pass


class BackendError(RelayBotError):
    """Raised when the generation backend call fails."""

    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendTimeoutError(BackendError):
    """Raised when a backend call exceeds its timeout."""

    retryable = True


class ClassificationAmbiguous(RelayBotError):
    """The classifier could not give a clear answer. Treated as conversational."""
    pass


class ConfigurationError(RelayBotError):
    """Invalid configuration detected at startup."""
    pass
