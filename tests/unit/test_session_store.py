"""Tests for conversation sessions and the session store."""
import asyncio
import json

import pytest

from relaybot.core.constants import PREAMBLE
from relaybot.core.session import (
    ConversationSession,
    Message,
    Role,
    SessionStore,
    preamble_messages,
)


class TestMessage:
    """Tests for the Message value type."""

    def test_to_dict(self):
        message = Message(role=Role.USER, content="hi")
        assert message.to_dict() == {"role": "user", "content": "hi"}

    def test_is_immutable(self):
        message = Message(role=Role.USER, content="hi")
        with pytest.raises(AttributeError):
            message.content = "changed"

    def test_from_dict_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            Message.from_dict({"role": "narrator", "content": "..."})


class TestConversationSession:
    """Tests for ConversationSession."""

    def test_seeded_session_starts_with_preamble(self):
        session = ConversationSession.seeded("alice")

        assert len(session) == 3
        assert [m.role for m in session.messages] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
        assert [m.content for m in session.messages] == [content for _, content in PREAMBLE]

    def test_serialization_roundtrip(self):
        """Order and roles survive a JSON round trip."""
        session = ConversationSession.seeded("alice").with_messages(
            preamble_messages() + (
                Message(Role.USER, "first"),
                Message(Role.ASSISTANT, "one"),
                Message(Role.USER, "second"),
                Message(Role.ASSISTANT, "two"),
            )
        )

        restored = ConversationSession.from_dict(json.loads(json.dumps(session.to_dict())))

        assert restored == session
        assert [m.role for m in restored.messages] == [m.role for m in session.messages]
        assert [m.content for m in restored.messages][-4:] == ["first", "one", "second", "two"]


class TestSessionStore:
    """Tests for SessionStore."""

    def test_get_or_create_creates_once(self, store):
        first = store.get_or_create("alice")
        second = store.get_or_create("alice")

        assert first is second
        assert "alice" in store
        assert len(store) == 1

    def test_unknown_user_is_not_an_error(self, store):
        assert store.get("nobody") is None
        assert len(store.get_or_create("nobody")) == 3

    def test_sessions_do_not_share_history(self, store):
        alice = store.get_or_create("alice")
        store.replace("alice", alice.with_messages(alice.messages + (Message(Role.USER, "secret"),)))

        bob = store.get_or_create("bob")

        assert len(bob) == 3
        assert all(m.content != "secret" for m in bob.messages)
        assert len(preamble_messages()) == 3

    def test_replace(self, store):
        session = store.get_or_create("alice")
        updated = session.with_messages(session.messages + (Message(Role.USER, "hi"),))

        store.replace("alice", updated)

        assert store.get("alice") is updated

    def test_lock_is_per_user(self, store):
        assert store.lock("alice") is store.lock("alice")
        assert store.lock("alice") is not store.lock("bob")

    @pytest.mark.asyncio
    async def test_same_user_lock_serializes(self, store):
        """Two tasks for one user never hold the lock together."""
        events = []

        async def worker(name):
            async with store.lock("alice"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_users_do_not_block(self, store):
        release = asyncio.Event()

        async def hold_alice():
            async with store.lock("alice"):
                await release.wait()

        holder = asyncio.create_task(hold_alice())
        await asyncio.sleep(0)

        async with store.lock("bob"):
            release.set()

        await holder
