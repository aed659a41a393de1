"""
Conversation sessions

Per-user conversation history kept in memory for the lifetime of the process.
Sessions are values: DialogueManager derives new sessions and the Router
commits them with SessionStore.replace().
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from relaybot.core.constants import PREAMBLE

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Message author roles understood by the backend."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single chat message."""
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(role=Role(data["role"]), content=data["content"])


def preamble_messages() -> Tuple[Message, ...]:
    """Build the few-shot seed for a new conversation."""
    return tuple(Message(role=Role(role), content=content) for role, content in PREAMBLE)


@dataclass(frozen=True)
class ConversationSession:
    """Ordered conversation history of one user."""
    user_id: str
    messages: Tuple[Message, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.messages)

    @classmethod
    def seeded(cls, user_id: str) -> "ConversationSession":
        """Create a session that starts with the preamble."""
        return cls(user_id=user_id, messages=preamble_messages())

    def with_messages(self, messages: Iterable[Message]) -> "ConversationSession":
        return ConversationSession(user_id=self.user_id, messages=tuple(messages))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible data."""
        return {
            "user_id": self.user_id,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationSession":
        """Restore a session produced by to_dict().

        Raises:
            ValueError: If a message has an unknown role
        """
        return cls(
            user_id=data["user_id"],
            messages=tuple(Message.from_dict(m) for m in data.get("messages", [])),
        )


class SessionStore:
    """
    In-memory mapping of user id to ConversationSession.

    Sessions are created lazily and live until the process exits. Each user
    gets an asyncio.Lock so that concurrent handlers for the same user
    serialize their read-modify-write while other users proceed.
    """

    def __init__(self):
        self._sessions: Dict[str, ConversationSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._map_lock = threading.Lock()

    def get_or_create(self, user_id: str) -> ConversationSession:
        """Return the user's session, creating a seeded one on first use."""
        with self._map_lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = ConversationSession.seeded(user_id)
                self._sessions[user_id] = session
                logger.info(f"Created session for {user_id}")
            return session

    def replace(self, user_id: str, session: ConversationSession):
        """Set the stored session for a user."""
        with self._map_lock:
            self._sessions[user_id] = session
        logger.debug(f"Stored session for {user_id} ({len(session)} messages)")

    def get(self, user_id: str) -> Optional[ConversationSession]:
        with self._map_lock:
            return self._sessions.get(user_id)

    def lock(self, user_id: str) -> asyncio.Lock:
        """Get the lock guarding a user's session.

        Usage:
            async with store.lock(user_id):
                ...
        """
        with self._map_lock:
            user_lock = self._locks.get(user_id)
            if user_lock is None:
                user_lock = asyncio.Lock()
                self._locks[user_id] = user_lock
            return user_lock

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        with self._map_lock:
            return user_id in self._sessions
