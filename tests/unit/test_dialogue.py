"""Unit tests for the dialogue manager."""
import pytest

from relaybot.core.dialogue import DialogueManager
from relaybot.core.errors import ConfigurationError
from relaybot.core.session import ConversationSession, Role


def run_turns(manager, session, count, start=0):
    """Play `count` full user/assistant turns."""
    for i in range(start, start + count):
        session, _ = manager.append_user_turn(session, f"question {i}")
        session = manager.append_assistant_turn(session, f"answer {i}")
    return session


@pytest.mark.unit
class TestDialogueManagerConfig:
    """Tests for max_length validation."""

    @pytest.mark.parametrize("max_length", [0, 3, 4])
    def test_rejects_too_small_max_length(self, max_length):
        with pytest.raises(ConfigurationError):
            DialogueManager(max_length)

    def test_accepts_minimum(self):
        assert DialogueManager(5).max_length == 5


@pytest.mark.unit
class TestAppendUserTurn:
    """Tests for the user path."""

    def test_first_turn_includes_preamble(self, dialogue):
        session = ConversationSession.seeded("alice")

        updated, context = dialogue.append_user_turn(session, "hello")

        assert [m.role for m in context] == [Role.SYSTEM, Role.USER, Role.ASSISTANT, Role.USER]
        assert context[:3] == list(session.messages)
        assert context[-1].content == "hello"
        assert list(updated.messages) == context

    def test_does_not_mutate_input(self, dialogue):
        session = ConversationSession.seeded("alice")

        dialogue.append_user_turn(session, "hello")

        assert len(session) == 3

    def test_no_eviction_below_max_length(self):
        manager = DialogueManager(33)
        session = run_turns(manager, ConversationSession.seeded("alice"), 15)
        assert len(session) == 33

        updated, _ = manager.append_user_turn(session.with_messages(session.messages[:-1]), "next")

        assert len(updated) == 33

    def test_evicts_exactly_one_turn_when_full(self):
        manager = DialogueManager(33)
        session = run_turns(manager, ConversationSession.seeded("alice"), 15)
        assert len(session) == 33

        updated, context = manager.append_user_turn(session, "next")

        # 33 - 2 evicted + 1 appended
        assert len(updated) == 32
        assert context[-1].content == "next"

    def test_system_message_is_kept(self):
        manager = DialogueManager(5)
        session = run_turns(manager, ConversationSession.seeded("alice"), 6)

        updated, _ = manager.append_user_turn(session, "more")

        assert updated.messages[0].role == Role.SYSTEM
        assert updated.messages[0] == ConversationSession.seeded("x").messages[0]

    def test_eviction_removes_oldest_pair_in_order(self):
        manager = DialogueManager(7)
        session = run_turns(manager, ConversationSession.seeded("alice"), 2)
        # system, preamble user, preamble assistant, q0, a0, q1, a1
        assert len(session) == 7

        updated, _ = manager.append_user_turn(session, "question 2")

        contents = [m.content for m in updated.messages[1:]]
        assert contents == ["question 0", "answer 0", "question 1", "answer 1", "question 2"]

        updated = manager.append_assistant_turn(updated, "answer 2")
        updated, _ = manager.append_user_turn(updated, "question 3")

        contents = [m.content for m in updated.messages[1:]]
        assert contents == ["question 1", "answer 1", "question 2", "answer 2", "question 3"]

    @pytest.mark.parametrize("max_length", [5, 6, 7, 10, 33])
    def test_bound_holds_over_many_turns(self, max_length):
        """After the eviction check the history never exceeds max_length."""
        manager = DialogueManager(max_length)
        session = ConversationSession.seeded("alice")

        for i in range(50):
            before = len(session)
            session, context = manager.append_user_turn(session, f"q{i}")
            after_check = len(session) - 1
            assert after_check <= max_length
            assert before - after_check in (0, 2)

            # Turns stay aligned after the system message
            roles = [m.role for m in context[1:]]
            assert roles[::2] == [Role.USER] * len(roles[::2])
            assert roles[1::2] == [Role.ASSISTANT] * len(roles[1::2])

            session = manager.append_assistant_turn(session, f"a{i}")


@pytest.mark.unit
class TestAppendAssistantTurn:
    """Tests for the assistant path."""

    def test_appends_without_eviction(self):
        manager = DialogueManager(6)
        session = run_turns(manager, ConversationSession.seeded("alice"), 1)
        session, _ = manager.append_user_turn(session, "q")
        assert len(session) == 6

        updated = manager.append_assistant_turn(session, "a")

        # May exceed max_length by one until the next user turn
        assert len(updated) == 7
        assert updated.messages[-1].role == Role.ASSISTANT
        assert updated.messages[-1].content == "a"

    def test_next_user_turn_trims_overflow(self):
        manager = DialogueManager(6)
        session = run_turns(manager, ConversationSession.seeded("alice"), 2)
        assert len(session) == 7

        updated, _ = manager.append_user_turn(session, "q")

        assert len(updated) == 6
