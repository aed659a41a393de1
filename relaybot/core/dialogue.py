"""
Dialogue manager

Appends turns to a conversation session and enforces the history bound.
"""

import logging
from typing import List, Tuple

from relaybot.core.constants import MIN_MAX_LENGTH, PREAMBLE
from relaybot.core.errors import ConfigurationError
from relaybot.core.session import ConversationSession, Message, Role

logger = logging.getLogger(__name__)

# One user message plus its assistant reply
TURN_SIZE = 2

# System message plus one exchange
MIN_CONTEXT = len(PREAMBLE)


class DialogueManager:
    """
    Builds the message context sent to the backend.

    The bound is only checked on the user path: once a session holds
    max_length entries, the next user turn first drops the oldest full turn
    that follows the system message. Recording the assistant reply never
    evicts, so a session can hold max_length + 1 entries between turns.
    """

    def __init__(self, max_length: int):
        if max_length < MIN_MAX_LENGTH:
            raise ConfigurationError(
                f"max_length must be at least {MIN_MAX_LENGTH}, got {max_length}"
            )
        self.max_length = max_length

    def append_user_turn(
        self,
        session: ConversationSession,
        text: str,
    ) -> Tuple[ConversationSession, List[Message]]:
        """Append a user message, evicting the oldest turn when full.

        Args:
            session: Current session
            text: User message content

        Returns:
            Tuple of (updated session, full ordered message list for the backend)
        """
        messages = list(session.messages)

        if len(messages) >= self.max_length:
            messages = self._evict_oldest_turn(messages)
            logger.debug(f"Evicted oldest turn for {session.user_id} ({len(messages)} left)")

        messages.append(Message(role=Role.USER, content=text))

        updated = session.with_messages(messages)
        return updated, list(updated.messages)

    def append_assistant_turn(self, session: ConversationSession, text: str) -> ConversationSession:
        """Append the backend reply. No eviction happens here."""
        return session.with_messages(
            session.messages + (Message(role=Role.ASSISTANT, content=text),)
        )

    def _evict_oldest_turn(self, messages: List[Message]) -> List[Message]:
        # The system message stays pinned at the front
        start = 1 if messages and messages[0].role == Role.SYSTEM else 0

        if len(messages) - TURN_SIZE < MIN_CONTEXT:
            return messages

        return messages[:start] + messages[start + TURN_SIZE:]
