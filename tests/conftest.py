"""
relaybot Test Configuration

Shared fixtures and configuration for pytest.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from relaybot.core.dialogue import DialogueManager
from relaybot.core.images import ImageSink
from relaybot.core.intent import KeywordClassifier
from relaybot.core.router import Router
from relaybot.core.session import SessionStore
from relaybot.interfaces.base import IncomingMessage, MessageType


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_llm_client():
    """Create a mock generation backend."""
    mock = MagicMock()
    mock.complete = AsyncMock(return_value="Test response")
    mock.generate_image = AsyncMock(return_value=b"\x89PNG\r\n\x1a\nfake")
    mock.health_check = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_channel():
    """Create a mock chat channel that records replies."""
    mock = MagicMock()
    mock.reply_text = AsyncMock()
    mock.reply_image = AsyncMock()
    return mock


@pytest.fixture
def make_message(mock_channel):
    """Factory for incoming messages; defaults to a direct text from a contact."""
    def _make(content: str = "hello", sender_id: str = "alice", **kwargs) -> IncomingMessage:
        fields = {
            "type": MessageType.TEXT,
            "from_group": False,
            "mentioned": False,
            "from_known_contact": True,
            "from_self": False,
            "channel": mock_channel,
        }
        fields.update(kwargs)
        return IncomingMessage(content=content, sender_id=sender_id, **fields)

    return _make


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def dialogue() -> DialogueManager:
    return DialogueManager(max_length=33)


@pytest.fixture
def image_sink(tmp_path: Path) -> ImageSink:
    return ImageSink(tmp_path / "images")


@pytest.fixture
def router(store, dialogue, mock_llm_client, image_sink) -> Router:
    return Router(
        store=store,
        dialogue=dialogue,
        classifier=KeywordClassifier(),
        llm_client=mock_llm_client,
        image_sink=image_sink,
    )
